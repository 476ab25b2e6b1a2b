import asyncio
import logging
from datetime import datetime, timedelta
from studio_booking.config import SLOT_HORIZON_DAYS
from studio_booking.db import SessionLocal
from studio_booking.services.slots import refresh_slot_horizon

logger = logging.getLogger(__name__)


def seconds_until_midnight(now: datetime) -> float:
    """Seconds from ``now`` to the next local midnight."""
    midnight = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return (midnight - now).total_seconds()


def run_slot_refresh(days: int = SLOT_HORIZON_DAYS) -> int:
    """One refresh pass with its own session."""
    db = SessionLocal()
    try:
        return refresh_slot_horizon(db, days)
    finally:
        db.close()


async def slot_refresh_loop(days: int = SLOT_HORIZON_DAYS):
    """
    Keep every active studio stocked with ``days`` days of slots.

    Runs once immediately, then at each midnight. A failed pass is logged
    and retried at the next midnight.
    """
    while True:
        try:
            await asyncio.to_thread(run_slot_refresh, days)
        except Exception:
            logger.exception("Scheduled slot refresh failed")

        delay = seconds_until_midnight(datetime.now())
        logger.info(f"Next slot refresh in {int(delay // 60)} minutes")
        await asyncio.sleep(delay)
