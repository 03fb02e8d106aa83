from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints, model_validator

from membership_app.utils.enums import AssignmentMode


DigitStr = Annotated[str, StringConstraints(strip_whitespace=True, pattern=r"^\d{1,9}$")]
CardNumberStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=32)]


class AssignCardsRequest(BaseModel):
    mode: AssignmentMode = Field(description="auto draws from the ranges, range uses start/end, single one number")
    user_ids: List[UUID] = Field(..., min_length=1)
    prefix: str = Field(default="", max_length=16)
    start_number: Optional[DigitStr] = Field(
        default=None, description="Start number as typed; its length sets the zero padding"
    )
    end_number: Optional[DigitStr] = None
    membership_number: Optional[CardNumberStr] = None

    @model_validator(mode="after")
    def validate_mode_fields(self) -> "AssignCardsRequest":
        if self.mode == AssignmentMode.range:
            if not self.start_number or not self.end_number:
                raise ValueError("start_number and end_number are required in range mode")
            if int(self.start_number) > int(self.end_number):
                raise ValueError("start_number must be less than or equal to end_number")
        if self.mode == AssignmentMode.single:
            if not self.membership_number:
                raise ValueError("membership_number is required in single mode")
            if len(self.user_ids) != 1:
                raise ValueError("Exactly one user must be selected in single mode")
        # Keep order, drop duplicates
        self.user_ids = list(dict.fromkeys(self.user_ids))
        return self


class AssignedCardOut(BaseModel):
    user_id: UUID
    email: str
    membership_number: str


class UserWithoutCardOut(BaseModel):
    user_id: UUID
    email: str


class AwaitingUserOut(BaseModel):
    user_id: UUID
    email: str
    first_name: str
    last_name: str
    membership_id: UUID
    payment_date: Optional[datetime] = None
