import uuid
from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from membership_app.db.deps import Base
from membership_app.utils.datetime_utils import get_current_utc_datetime


class CardNumberRange(Base):
    __tablename__ = "card_number_ranges"
    __table_args__ = (
        CheckConstraint("start_number <= end_number", name="ck_card_number_ranges_bounds"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    start_number = Column(Integer, nullable=False, index=True)
    end_number = Column(Integer, nullable=False)  # inclusive
    created_by = Column(String, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=get_current_utc_datetime,
        server_default=func.now(),
    )

    @property
    def total_numbers(self) -> int:
        return self.end_number - self.start_number + 1

    def contains(self, number: int) -> bool:
        return self.start_number <= number <= self.end_number

    def label(self) -> str:
        return f"{self.start_number}-{self.end_number}"
