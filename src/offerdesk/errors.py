"""Error types for offer operations."""

from __future__ import annotations


class OfferDeskError(Exception):
    """Base class for offer errors."""


class ValidationError(OfferDeskError):
    """A submission or status change broke a business rule."""


class NotFoundError(OfferDeskError):
    """No offer exists with the given id."""

    def __init__(self, offer_id: str) -> None:
        super().__init__(f"Offer {offer_id!r} not found")
        self.offer_id = offer_id


class PersistenceError(OfferDeskError):
    """The key-value store failed to read or write."""
