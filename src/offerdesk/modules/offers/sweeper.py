"""Periodic expiry of stale pending offers."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler

from offerdesk.events import SubscriptionRegistry
from offerdesk.models.offer import utcnow
from offerdesk.modules.offers.store import OfferStore
from offerdesk.scheduler import create_scheduler

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Expires pending offers whose ``expires_at`` has passed.

    ``start()`` sweeps once immediately, then schedules the recurring job;
    ``stop()`` tears the scheduler down.
    """

    def __init__(
        self,
        store: OfferStore,
        registry: SubscriptionRegistry,
        interval_minutes: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._registry = registry
        self._interval_minutes = interval_minutes
        self._clock = clock
        self._scheduler: BackgroundScheduler | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    @property
    def scheduler(self) -> BackgroundScheduler | None:
        return self._scheduler

    def sweep(self) -> int:
        """Expire stale offers and notify subscribers. Returns how many changed."""
        expired = self._store.expire_pending(self._clock())
        if expired:
            logger.info("Expired %d stale offers", len(expired))
            self._registry.notify_all()
        return len(expired)

    def start(self) -> None:
        with self._lock:
            if self._scheduler is not None:
                return
            self.sweep()
            scheduler = create_scheduler(self, self._interval_minutes)
            scheduler.start()
            self._scheduler = scheduler
            logger.info("Expiry sweeper started.")

    def stop(self) -> None:
        with self._lock:
            if self._scheduler is None:
                return
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Expiry sweeper stopped.")
