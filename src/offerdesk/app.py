"""Composition root: wires storage, store, registry, sweeper and facade."""

from __future__ import annotations

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Iterator

from offerdesk.config import settings
from offerdesk.database import init_db
from offerdesk.models.offer import OfferRules
from offerdesk.modules.offers.demo import seed_sample_offers
from offerdesk.modules.offers.manager import OfferManager
from offerdesk.modules.offers.store import OFFERS_STORAGE_KEY, OfferStore
from offerdesk.scheduler import sweep_interval_minutes
from offerdesk.storage import KeyValueStore, SqlKeyValueStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def create_app(kv: KeyValueStore | None = None) -> OfferManager:
    """Build an OfferManager from config.yaml. Nothing is loaded or started yet."""
    if kv is None:
        init_db()
        kv = SqlKeyValueStore()

    storage_key = settings.get("storage", {}).get("offers_key", OFFERS_STORAGE_KEY)
    store = OfferStore(kv, storage_key=storage_key)
    return OfferManager.build(
        store,
        rules=OfferRules.from_settings(settings.get("offers")),
        sweep_interval_minutes=sweep_interval_minutes(),
    )


@contextmanager
def lifespan(manager: OfferManager) -> Iterator[OfferManager]:
    """Startup and shutdown around a running manager."""
    logger.info("Starting OfferDesk...")
    manager.initialize()

    demo = settings.get("demo", {})
    if demo.get("seed_sample_offers"):
        seed_sample_offers(manager, demo.get("owner_id", "current-owner"))

    try:
        yield manager
    finally:
        manager.shutdown()
        logger.info("OfferDesk shut down.")


def main() -> None:
    """Entry point: run the sweeper until interrupted."""
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    stop = threading.Event()
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    with lifespan(create_app()) as manager:
        stats = manager.get_stats(settings.get("demo", {}).get("owner_id", "current-owner"))
        logger.info("Offer stats: %s", stats)
        try:
            stop.wait()
        except KeyboardInterrupt:
            pass


if __name__ == "__main__":
    main()
