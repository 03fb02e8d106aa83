"""Admin endpoints for card number ranges."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from membership_app.core.response import success_response
from membership_app.core.security import require_roles
from membership_app.db.deps import get_db
from membership_app.models.user import Role, User
from membership_app.schemas.admin.card_ranges import (
    AssignedNumberOut,
    CardRangeCreateRequest,
    CardRangeListResponse,
    CardRangeOut,
    CardRangeStatsOut,
)
from membership_app.services.card_ranges import CardRangeService

admin_guard = require_roles(Role.admin)

router = APIRouter(
    prefix="/admin/card-ranges",
    tags=["admin", "card-ranges"],
    dependencies=[Depends(admin_guard)],
)


@router.get("")
async def list_card_ranges(db: AsyncSession = Depends(get_db)):
    """Ranges with usage statistics and the free numbers grouped into runs."""
    service = CardRangeService(db)
    stats = await service.list_with_stats()
    items = [CardRangeStatsOut.from_stats(s) for s in stats]
    payload = CardRangeListResponse(
        items=items,
        count=len(items),
        available_count=sum(item.available_numbers for item in items),
    )
    return success_response(data=payload.model_dump())


@router.post("", status_code=201)
async def add_card_range(
    body: CardRangeCreateRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(admin_guard),
):
    card_range = await CardRangeService(db).add_range(
        body.start_number, body.end_number, admin_id=str(admin.id)
    )
    return success_response(
        msg="Card number range created",
        data=CardRangeOut.model_validate(card_range).model_dump(),
        status_code=201,
    )


@router.delete("/{range_id}")
async def delete_card_range(range_id: UUID, db: AsyncSession = Depends(get_db)):
    await CardRangeService(db).remove_range(range_id)
    return success_response(msg="Card number range deleted", data={"id": range_id})


@router.get("/assigned")
async def list_assigned_numbers(db: AsyncSession = Depends(get_db)):
    rows = await CardRangeService(db).list_assigned_numbers()
    items = [AssignedNumberOut(**row).model_dump() for row in rows]
    return success_response(data={"items": items, "count": len(items)})
