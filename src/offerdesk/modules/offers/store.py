"""Authoritative, persisted collection of offers."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from typing import Callable

from offerdesk.errors import PersistenceError, ValidationError
from offerdesk.events import InterestKey, OwnerKey, PropertyKey
from offerdesk.models.offer import (
    Offer,
    OfferFilters,
    OfferStats,
    OfferStatus,
    check_transition,
    compute_stats,
    utcnow,
)
from offerdesk.storage import KeyValueStore

logger = logging.getLogger(__name__)

OFFERS_STORAGE_KEY = "uplet_offers_storage"


class OfferStore:
    """Holds every offer in memory and mirrors the whole collection to one key.

    Each mutating call loads (if needed), mutates and persists under one lock,
    so concurrent writers cannot lose each other's updates.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        storage_key: str = OFFERS_STORAGE_KEY,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._kv = kv
        self._storage_key = storage_key
        self._clock = clock
        self._offers: list[Offer] = []
        self._loaded = False
        self._lock = threading.RLock()
        self.last_load_error: Exception | None = None

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> list[Offer]:
        """(Re)read the collection. Missing or unreadable data yields an empty one."""
        with self._lock:
            self.last_load_error = None
            try:
                raw = self._kv.get(self._storage_key)
                offers = [Offer.from_dict(r) for r in json.loads(raw)] if raw else []
            except Exception as exc:
                self.last_load_error = exc
                logger.exception("Failed to load offers from %s, starting empty", self._storage_key)
                offers = []
            self._offers = offers
            self._loaded = True
            logger.info("Loaded %d offers", len(offers))
            return list(offers)

    def ensure_loaded(self) -> None:
        with self._lock:
            if not self._loaded:
                self.load()

    def all(self) -> list[Offer]:
        with self._lock:
            self.ensure_loaded()
            return list(self._offers)

    def insert(self, offer: Offer) -> Offer:
        with self._lock:
            self.ensure_loaded()
            if any(o.id == offer.id for o in self._offers):
                raise ValueError(f"Duplicate offer id: {offer.id}")
            self._offers.append(offer)
            self._persist()
            return offer

    def find_by_id(self, offer_id: str) -> Offer | None:
        with self._lock:
            self.ensure_loaded()
            return next((o for o in self._offers if o.id == offer_id), None)

    def query_by_owner(self, owner_id: str, filters: OfferFilters | None = None) -> list[Offer]:
        """Offers for an owner, newest first."""
        with self._lock:
            self.ensure_loaded()
            offers = [o for o in self._offers if o.owner_id == owner_id]
        if filters:
            offers = [o for o in offers if filters.matches(o)]
        return newest_first(offers)

    def query_by_property(self, property_id: str) -> list[Offer]:
        with self._lock:
            self.ensure_loaded()
            return [o for o in self._offers if o.property_id == property_id]

    def matching(self, key: InterestKey) -> list[Offer]:
        """Offers relevant to a subscription key."""
        if isinstance(key, OwnerKey):
            with self._lock:
                self.ensure_loaded()
                return [o for o in self._offers if o.owner_id == key.owner_id]
        if isinstance(key, PropertyKey):
            return self.query_by_property(key.property_id)
        raise TypeError(f"Unsupported interest key: {key!r}")

    def update_status(self, offer_id: str, status: OfferStatus) -> Offer | None:
        """Set a new status. Returns None when the id is unknown."""
        status = OfferStatus(status)
        with self._lock:
            self.ensure_loaded()
            for index, offer in enumerate(self._offers):
                if offer.id != offer_id:
                    continue
                if not check_transition(offer.status, status):
                    raise ValidationError(
                        f"Cannot change offer from {offer.status.value} to {status.value}"
                    )
                updated = offer.with_status(status, self._clock())
                self._offers[index] = updated
                self._persist()
                logger.info("Offer %s status updated to %s", offer_id, status.value)
                return updated
            return None

    def expire_pending(self, now: datetime | None = None) -> list[Offer]:
        """Move every pending offer past its expiry to expired; persist once."""
        now = now or self._clock()
        with self._lock:
            self.ensure_loaded()
            expired: list[Offer] = []
            for index, offer in enumerate(self._offers):
                if offer.is_expired_at(now):
                    self._offers[index] = offer.with_status(OfferStatus.EXPIRED, now)
                    expired.append(self._offers[index])
            if expired:
                self._persist()
            return expired

    def remove(self, offer_id: str) -> bool:
        with self._lock:
            self.ensure_loaded()
            remaining = [o for o in self._offers if o.id != offer_id]
            if len(remaining) == len(self._offers):
                return False
            self._offers = remaining
            self._persist()
            return True

    def clear(self) -> None:
        with self._lock:
            self._offers = []
            self._loaded = True
            try:
                self._kv.remove(self._storage_key)
            except Exception as exc:
                raise PersistenceError(f"Failed to clear offers: {exc}") from exc

    def compute_stats(self, offers: list[Offer]) -> OfferStats:
        return compute_stats(offers, today=self._clock().date())

    def _persist(self) -> None:
        # In-memory state is already mutated; a failure here leaves it ahead of storage.
        payload = json.dumps([o.to_dict() for o in self._offers])
        try:
            self._kv.set(self._storage_key, payload)
        except Exception as exc:
            logger.error("Failed to save offers to %s: %s", self._storage_key, exc)
            raise PersistenceError(f"Failed to save offers: {exc}") from exc


def newest_first(offers: list[Offer]) -> list[Offer]:
    """Sort by created_at descending; ties keep insertion order."""
    return sorted(offers, key=lambda o: o.created_at, reverse=True)
