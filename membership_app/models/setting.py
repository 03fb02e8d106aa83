from sqlalchemy import Column, DateTime, String
from membership_app.db.deps import Base
from membership_app.utils.datetime_utils import get_current_utc_datetime


class Setting(Base):
    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=get_current_utc_datetime,
        onupdate=get_current_utc_datetime,
    )
