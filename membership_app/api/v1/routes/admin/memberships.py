"""Admin actions on memberships."""

from __future__ import annotations

from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from membership_app.core.logging_config import get_logger
from membership_app.core.response import success_response
from membership_app.core.security import require_roles
from membership_app.db.deps import get_db
from membership_app.models.user import Role, User
from membership_app.schemas.membership import MembershipFeeUpdateRequest, MembershipOut
from membership_app.services.membership_service import MembershipService
from membership_app.services.settings_service import get_membership_fee, set_membership_fee

logger = get_logger("admin_memberships")

admin_guard = require_roles(Role.admin)

router = APIRouter(
    prefix="/admin",
    tags=["admin", "memberships"],
    dependencies=[Depends(admin_guard)],
)


@router.post("/memberships/{membership_id}/cancel")
async def cancel_membership(
    membership_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(admin_guard),
):
    membership = await MembershipService(db).cancel(membership_id, admin_id=str(admin.id))
    return success_response(
        msg="Membership canceled",
        data=MembershipOut.model_validate(membership).model_dump(),
    )


@router.post("/memberships/expire")
async def expire_memberships(
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(admin_guard),
):
    """Run the daily expiration sweep on demand."""
    logger.info(f"Admin {admin.id} manually triggered membership expiration check")
    result = await MembershipService(db).sweep_expirations()
    return success_response(
        msg=f"{result.processed} membership(s) expired",
        data=asdict(result),
    )


@router.post("/memberships/renew/{user_id}", status_code=201)
async def renew_membership(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(admin_guard),
):
    result = await MembershipService(db).renew_with_conservation(user_id, admin_id=str(admin.id))
    return success_response(
        msg="Membership renewed",
        data={
            "membership": MembershipOut.model_validate(result.membership).model_dump(),
            "is_renewal": result.is_renewal,
            "conserved_number": result.conserved_number,
        },
        status_code=201,
    )


@router.get("/settings/membership-fee")
async def read_membership_fee(db: AsyncSession = Depends(get_db)):
    return success_response(data={"fee_cents": await get_membership_fee(db)})


@router.put("/settings/membership-fee")
async def update_membership_fee(
    body: MembershipFeeUpdateRequest, db: AsyncSession = Depends(get_db)
):
    fee = await set_membership_fee(db, body.fee_cents)
    return success_response(msg="Membership fee updated", data={"fee_cents": fee})
