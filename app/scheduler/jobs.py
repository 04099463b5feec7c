"""APScheduler jobs — expired one-time-code sweep every few minutes."""

import logging

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.config import get_settings
from app.interfaces.deps import get_otp_registry

settings = get_settings()
logger = logging.getLogger(__name__)
tz = pytz.timezone(settings.TIMEZONE)

scheduler = AsyncIOScheduler(timezone=tz)


def sweep_expired_codes_job():
    """Periodic job: drop pending signups whose code has expired."""
    try:
        removed = get_otp_registry().sweep()
        if removed:
            logger.info(f"OTP sweep removed {removed} expired pending signup(s)")
    except Exception:
        logger.exception("OTP sweep job failed")


def start_scheduler():
    """Start the APScheduler with the OTP sweep job."""
    scheduler.add_job(
        sweep_expired_codes_job,
        trigger=IntervalTrigger(minutes=settings.OTP_SWEEP_INTERVAL_MINUTES, timezone=tz),
        id="otp_sweep",
        name=f"OTP sweep (every {settings.OTP_SWEEP_INTERVAL_MINUTES} mins)",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(f"Scheduler started — OTP sweep every {settings.OTP_SWEEP_INTERVAL_MINUTES} mins")


def stop_scheduler():
    """Stop the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
