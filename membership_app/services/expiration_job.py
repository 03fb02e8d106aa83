import asyncio

from membership_app.core.config import settings
from membership_app.core.logging_config import get_logger
from membership_app.db.deps import AsyncSessionLocal
from membership_app.services.membership_service import MembershipService, SweepResult
from membership_app.utils.datetime_utils import get_current_utc_datetime, seconds_until_next_run


logger = get_logger("expiration_job")


async def run_expiration_sweep_once() -> SweepResult:
    """Expire lapsed memberships using a fresh session."""
    async with AsyncSessionLocal() as db:
        result = await MembershipService(db).sweep_expirations(get_current_utc_datetime())
        if result.processed:
            logger.info(f"Expiration job: expired {result.processed} memberships")
        return result


async def run_expiration_sweep_task(
    hour: int = settings.EXPIRATION_SWEEP_HOUR,
    tz_name: str = settings.EXPIRATION_SWEEP_TIMEZONE,
):
    """Background loop: run the expiration sweep once a day at ``hour`` local time."""
    logger.info(f"Starting expiration sweep task (daily at {hour:02d}:00 {tz_name})")
    try:
        while True:
            delay = seconds_until_next_run(get_current_utc_datetime(), hour, tz_name)
            await asyncio.sleep(delay)
            try:
                await run_expiration_sweep_once()
            except Exception as e:
                logger.exception(f"Expiration sweep error: {e}")
    except asyncio.CancelledError:
        logger.info("Expiration sweep task cancelled; shutting down")
        raise
