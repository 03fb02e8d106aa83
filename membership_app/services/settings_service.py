"""Key/value application settings stored in the database."""

from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from membership_app.core.config import settings
from membership_app.core.exceptions import InvalidMembershipFee
from membership_app.core.logging_config import get_logger
from membership_app.db.deps import atomic
from membership_app.models.setting import Setting


logger = get_logger("settings_service")

MEMBERSHIP_FEE = "MEMBERSHIP_FEE"


def _defaults() -> Dict[str, str]:
    return {MEMBERSHIP_FEE: str(settings.DEFAULT_MEMBERSHIP_FEE_CENTS)}


async def get_setting(db: AsyncSession, key: str) -> Optional[str]:
    row = await db.get(Setting, key)
    if row is not None:
        return row.value
    return _defaults().get(key)


async def set_setting(db: AsyncSession, key: str, value: str) -> None:
    """Upsert within the caller's transaction."""
    row = await db.get(Setting, key)
    if row is None:
        db.add(Setting(key=key, value=value))
    else:
        row.value = value
    await db.flush()


async def get_all_settings(db: AsyncSession) -> Dict[str, str]:
    result = _defaults()
    rows = (await db.execute(select(Setting))).scalars().all()
    for row in rows:
        result[row.key] = row.value
    return result


async def get_membership_fee(db: AsyncSession) -> int:
    """Current membership fee in cents."""
    value = await get_setting(db, MEMBERSHIP_FEE)
    try:
        fee = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid membership fee configuration: {value!r}")
    if fee <= 0:
        raise ValueError(f"Invalid membership fee configuration: {value!r}")
    return fee


async def set_membership_fee(db: AsyncSession, fee_cents: int) -> int:
    if fee_cents <= 0:
        raise InvalidMembershipFee(fee_cents)
    async with atomic(db):
        await set_setting(db, MEMBERSHIP_FEE, str(fee_cents))
    logger.info(f"Membership fee set to {fee_cents} cents")
    return fee_cents
