import uuid
from sqlalchemy import Column, Date, DateTime, String, Boolean, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from membership_app.db.deps import Base
from membership_app.utils.datetime_utils import get_current_utc_datetime


class UserProfile(Base):
    """Personal data collected before purchase; owned by the profile service."""

    __tablename__ = "user_profiles"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    birth_date = Column(Date, nullable=True)
    tax_code = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)
    province = Column(String, nullable=True)
    privacy_consent = Column(Boolean, nullable=False, default=False)
    data_consent = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        default=get_current_utc_datetime,
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), onupdate=get_current_utc_datetime)

    user = relationship("User", back_populates="profile")
