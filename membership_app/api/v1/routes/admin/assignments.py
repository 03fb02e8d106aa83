"""Admin endpoints for card number issuance."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from membership_app.core.response import success_response
from membership_app.core.security import require_roles
from membership_app.db.deps import get_db
from membership_app.models.user import Role
from membership_app.schemas.admin.assignments import AssignCardsRequest, AwaitingUserOut
from membership_app.services.card_assignment import CardAssignmentService
from membership_app.utils.enums import AssignmentMode

admin_guard = require_roles(Role.admin)

router = APIRouter(
    prefix="/admin/assignments",
    tags=["admin", "assignments"],
    dependencies=[Depends(admin_guard)],
)


@router.get("/awaiting")
async def list_users_awaiting_card(db: AsyncSession = Depends(get_db)):
    """Paid members without a card number, first payer first."""
    rows = await CardAssignmentService(db).list_users_awaiting_card()
    items = [AwaitingUserOut(**row).model_dump() for row in rows]
    return success_response(data={"items": items, "count": len(items)})


@router.post("")
async def assign_cards(body: AssignCardsRequest, db: AsyncSession = Depends(get_db)):
    service = CardAssignmentService(db)

    if body.mode == AssignmentMode.auto:
        result = await service.assign_auto(body.user_ids)
        assigned_user_ids = [a.user_id for a in result.assigned]
    elif body.mode == AssignmentMode.range:
        result = await service.assign_batch(
            body.prefix, body.start_number, body.end_number, body.user_ids
        )
        assigned_user_ids = [a.user_id for a in result.assigned]
    else:
        result = await service.assign_single(body.user_ids[0], body.membership_number)
        assigned_user_ids = [result.user_id]

    return success_response(
        msg=f"{len(assigned_user_ids)} card number(s) assigned",
        data={
            "mode": body.mode.value,
            "result": asdict(result),
            "assigned_user_ids": assigned_user_ids,
        },
    )
