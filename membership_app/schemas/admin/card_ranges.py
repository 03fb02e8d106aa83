from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CardRangeCreateRequest(BaseModel):
    start_number: int = Field(..., ge=1, description="First card number of the range (inclusive)")
    end_number: int = Field(..., ge=1, description="Last card number of the range (inclusive)")


class NumberSpanOut(BaseModel):
    start: int
    end: int

    model_config = ConfigDict(from_attributes=True)


class CardRangeOut(BaseModel):
    id: UUID
    start_number: int
    end_number: int
    created_by: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CardRangeStatsOut(CardRangeOut):
    total_numbers: int
    used_numbers: int
    available_numbers: int
    available_sub_ranges: List[NumberSpanOut]

    @classmethod
    def from_stats(cls, stats) -> "CardRangeStatsOut":
        base = CardRangeOut.model_validate(stats.range).model_dump()
        return cls(
            **base,
            total_numbers=stats.total_numbers,
            used_numbers=stats.used_numbers,
            available_numbers=stats.available_numbers,
            available_sub_ranges=[NumberSpanOut.model_validate(s) for s in stats.available_sub_ranges],
        )


class CardRangeListResponse(BaseModel):
    items: List[CardRangeStatsOut]
    count: int
    available_count: int


class AssignedNumberOut(BaseModel):
    membership_id: UUID
    membership_number: str
    user_id: UUID
    email: str
    first_name: str
    last_name: str
    end_date: Optional[datetime] = None
