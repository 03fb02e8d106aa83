from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from membership_app.utils.enums import MembershipStatus, PaymentStatus, SystemState


class MembershipOut(BaseModel):
    id: UUID
    user_id: UUID
    membership_number: Optional[str] = None
    previous_membership_number: Optional[str] = None
    status: MembershipStatus
    payment_status: PaymentStatus
    payment_amount: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    card_assigned_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class MembershipSummaryOut(BaseModel):
    system_state: SystemState
    label: str
    has_active_membership: bool
    membership_number: Optional[str] = None
    previous_membership_number: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    profile_complete: bool
    can_purchase: bool
    message: str

    model_config = ConfigDict(from_attributes=True)


class MembershipFeeUpdateRequest(BaseModel):
    fee_cents: int = Field(..., description="Membership fee in cents", json_schema_extra={"example": 2500})
