"""Offer store, expiry sweeper and lifecycle facade."""

from offerdesk.modules.offers.manager import OfferManager, OfferResult
from offerdesk.modules.offers.store import OfferStore
from offerdesk.modules.offers.sweeper import ExpirySweeper

__all__ = ["ExpirySweeper", "OfferManager", "OfferResult", "OfferStore"]
