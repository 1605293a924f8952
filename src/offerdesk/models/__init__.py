"""Offer data model and storage models."""

from offerdesk.models.kv import KeyValueEntry
from offerdesk.models.offer import (
    Offer,
    OfferFilters,
    OfferRules,
    OfferStats,
    OfferStatus,
    OfferSubmission,
    OwnerInfo,
    RenterSnapshot,
)

__all__ = [
    "KeyValueEntry",
    "Offer",
    "OfferFilters",
    "OfferRules",
    "OfferStats",
    "OfferStatus",
    "OfferSubmission",
    "OwnerInfo",
    "RenterSnapshot",
]
