"""APScheduler setup and job registration."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.config import settings
from app.jobs.payout_sync import payout_sync

scheduler = AsyncIOScheduler(timezone=settings.timezone)


def register_jobs() -> None:
    """Register all periodic jobs if not already present."""
    if scheduler.get_job("payout_sync") is None:
        scheduler.add_job(
            payout_sync,
            IntervalTrigger(
                minutes=max(1, settings.payout_sync_interval_minutes),
                timezone=settings.timezone,
            ),
            id="payout_sync",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
