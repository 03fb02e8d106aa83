import uuid
from sqlalchemy import (
    Column, DateTime, Enum, ForeignKey, Integer, String, func
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from membership_app.db.deps import Base
from membership_app.utils.datetime_utils import get_current_utc_datetime
from membership_app.utils.enums import MembershipStatus, PaymentStatus


class Membership(Base):
    __tablename__ = "memberships"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Unique across all rows; the last line of defense against double issuance
    membership_number = Column(String, nullable=True, unique=True)
    # Number retired by the sweep or a cancellation, kept for renewal
    previous_membership_number = Column(String, nullable=True, index=True)

    # Rolling window, set when a number is assigned
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)

    status = Column(
        Enum(MembershipStatus, name="membershipstatus"),
        nullable=False,
        default=MembershipStatus.pending,
        index=True,
    )
    payment_status = Column(
        Enum(PaymentStatus, name="paymentstatus"),
        nullable=False,
        default=PaymentStatus.pending,
        index=True,
    )
    payment_provider_id = Column(String, nullable=True)
    payment_amount = Column(Integer, nullable=True)  # cents

    card_assigned_at = Column(DateTime(timezone=True), nullable=True)

    # Python-side default keeps microsecond precision for FIFO ordering
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=get_current_utc_datetime,
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), onupdate=get_current_utc_datetime)
    updated_by = Column(String, nullable=True)

    user = relationship("User", back_populates="memberships")
