"""Member-facing membership endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from membership_app.api.dependencies.auth import get_current_user
from membership_app.core.response import success_response
from membership_app.db.deps import get_db
from membership_app.models.user import User
from membership_app.schemas.membership import MembershipOut, MembershipSummaryOut
from membership_app.services.membership_service import MembershipService

router = APIRouter(prefix="/membership", tags=["membership"])


@router.get("/status")
async def membership_status(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Current lifecycle state; polled by the payment success page."""
    summary = await MembershipService(db).get_membership_summary(current_user.id)
    return success_response(data=MembershipSummaryOut(**asdict(summary)).model_dump())


@router.post("/purchase", status_code=201)
async def start_purchase(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    membership = await MembershipService(db).create_for_payment(current_user.id)
    return success_response(
        msg="Membership created, proceed with payment",
        data=MembershipOut.model_validate(membership).model_dump(),
        status_code=201,
    )


@router.post("/cancel-payment")
async def cancel_payment(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Called when the user abandons the provider checkout."""
    membership = await MembershipService(db).reset_payment_attempt(current_user.id)
    if membership is None:
        return success_response(msg="No payment in progress")
    return success_response(
        msg="Payment attempt canceled, you can retry",
        data=MembershipOut.model_validate(membership).model_dump(),
    )
