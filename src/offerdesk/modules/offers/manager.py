"""Public offer lifecycle API used by renter and owner screens."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable

from offerdesk.errors import NotFoundError, OfferDeskError, PersistenceError, ValidationError
from offerdesk.events import (
    InterestKey,
    OwnerKey,
    PropertyKey,
    Subscriber,
    SubscriptionRegistry,
    parse_interest_key,
)
from offerdesk.models.offer import (
    Offer,
    OfferFilters,
    OfferRules,
    OfferStats,
    OfferStatus,
    OfferSubmission,
    OwnerInfo,
    RenterSnapshot,
    derive_offer,
    utcnow,
    validate_submission,
)
from offerdesk.modules.offers.store import OfferStore
from offerdesk.modules.offers.sweeper import ExpirySweeper

logger = logging.getLogger(__name__)

SUBMIT_OK_MESSAGE = "Your offer has been submitted and sent to the property owner's inbox!"
UPDATE_FAILED_MESSAGE = "Could not update offer."
SAVE_FAILED_MESSAGE = "Failed to save offer. Please try again."


@dataclass
class OfferResult:
    offer: Offer | None = None
    error: OfferDeskError | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


class OfferManager:
    """Submits offers, changes their status, and keeps subscribers informed."""

    def __init__(
        self,
        store: OfferStore,
        registry: SubscriptionRegistry,
        sweeper: ExpirySweeper | None = None,
        rules: OfferRules | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.registry = registry
        self.sweeper = sweeper
        self.rules = rules or OfferRules()
        self._clock = clock
        self._initialized = False
        self._init_lock = threading.Lock()

    @classmethod
    def build(
        cls,
        store: OfferStore,
        rules: OfferRules | None = None,
        sweep_interval_minutes: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> OfferManager:
        """Wire a registry and sweeper around an existing store."""
        registry = SubscriptionRegistry(store.matching)
        sweeper = ExpirySweeper(store, registry, sweep_interval_minutes, clock=clock)
        return cls(store, registry, sweeper, rules=rules, clock=clock)

    def now(self) -> datetime:
        return self._clock()

    # --- Lifecycle ---

    def initialize(self) -> None:
        """Load persisted offers and start the expiry sweeper. Safe to call twice."""
        with self._init_lock:
            if self._initialized:
                return
            self.store.load()
            if self.sweeper:
                self.sweeper.start()
            self._initialized = True
            logger.info("OfferManager initialized with %d offers", len(self.store.all()))

    def shutdown(self) -> None:
        with self._init_lock:
            if self.sweeper:
                self.sweeper.stop()
            self._initialized = False

    # --- Renter side ---

    def submit(
        self,
        submission: OfferSubmission,
        renter: RenterSnapshot,
        owner: OwnerInfo,
    ) -> OfferResult:
        """Validate, store and announce a renter's offer to the owner's inbox."""
        self.store.ensure_loaded()

        error = validate_submission(submission, now=self._clock(), rules=self.rules)
        if error:
            logger.info("Rejected offer submission for %s: %s", submission.property_id, error)
            return OfferResult(error=error, message=str(error))

        offer = derive_offer(submission, renter, owner.name, now=self._clock(), rules=self.rules)
        try:
            self.store.insert(offer)
        except PersistenceError as exc:
            return OfferResult(offer=offer, error=exc, message=SAVE_FAILED_MESSAGE)

        self.registry.notify(OwnerKey(offer.owner_id))
        self.registry.notify(PropertyKey(offer.property_id))

        logger.info(
            "Offer %s submitted: %s - %s/month for %s (%s)",
            offer.id,
            offer.renter_name,
            offer.renter_offer_price,
            offer.property_title,
            offer.property_id,
        )
        return OfferResult(offer=offer, message=SUBMIT_OK_MESSAGE)

    # --- Owner side ---

    def update_status(self, offer_id: str, status: OfferStatus | str) -> OfferResult:
        """Accept, reject, counter or otherwise change an offer's status."""
        try:
            status = OfferStatus(status)
        except ValueError:
            error = ValidationError(f"Unknown offer status: {status!r}")
            return OfferResult(error=error, message=UPDATE_FAILED_MESSAGE)

        try:
            offer = self.store.update_status(offer_id, status)
        except ValidationError as exc:
            return OfferResult(error=exc, message=UPDATE_FAILED_MESSAGE)
        except PersistenceError as exc:
            return OfferResult(error=exc, message=SAVE_FAILED_MESSAGE)

        if offer is None:
            logger.warning("Status update for unknown offer %s", offer_id)
            return OfferResult(error=NotFoundError(offer_id), message=UPDATE_FAILED_MESSAGE)

        self.registry.notify_all()
        return OfferResult(offer=offer)

    def get_for_owner(
        self,
        owner_id: str,
        filters: OfferFilters | None = None,
        property_id: str | None = None,
    ) -> list[Offer]:
        if property_id:
            filters = replace(filters or OfferFilters(), property_id=property_id)
        return self.store.query_by_owner(owner_id, filters)

    def get_for_property(self, property_id: str) -> list[Offer]:
        return self.store.query_by_property(property_id)

    def get_offer(self, offer_id: str) -> Offer | None:
        return self.store.find_by_id(offer_id)

    def get_stats(self, owner_id: str) -> OfferStats:
        return self.store.compute_stats(self.store.query_by_owner(owner_id))

    def subscribe(self, key: InterestKey | str, callback: Subscriber) -> Callable[[], None]:
        return self.registry.subscribe(parse_interest_key(key), callback)

    # --- Administrative ---

    def delete_offer(self, offer_id: str) -> bool:
        removed = self.store.remove(offer_id)
        if removed:
            logger.info("Deleted offer %s", offer_id)
            self.registry.notify_all()
        return removed

    def clear_all(self) -> None:
        self.store.clear()
        self.registry.notify_all()
        logger.info("All offers cleared")
