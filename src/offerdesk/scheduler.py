"""APScheduler setup for periodic tasks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.background import BackgroundScheduler

from offerdesk.config import settings

if TYPE_CHECKING:
    from offerdesk.modules.offers.sweeper import ExpirySweeper

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 60  # minutes


def sweep_interval_minutes() -> int:
    return settings.get("scheduler", {}).get("expiry_sweep_interval", DEFAULT_SWEEP_INTERVAL)


def create_scheduler(sweeper: ExpirySweeper, interval_minutes: int | None = None) -> BackgroundScheduler:
    """Create and configure the background scheduler."""
    scheduler = BackgroundScheduler()

    # Offer expiry (every hour by default)
    scheduler.add_job(
        sweeper.sweep,
        "interval",
        minutes=interval_minutes or sweep_interval_minutes(),
        id="offer_expiry",
        name="Offer Expiry Sweep",
        max_instances=1,
        coalesce=True,
    )

    logger.info("Scheduler configured with %d jobs", len(scheduler.get_jobs()))
    return scheduler
