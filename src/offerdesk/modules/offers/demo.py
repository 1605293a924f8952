"""Sample offers for demos and manual testing."""

from __future__ import annotations

import logging
from datetime import timedelta

from offerdesk.models.offer import Offer, OfferSubmission, OwnerInfo, RenterSnapshot
from offerdesk.modules.offers.manager import OfferManager

logger = logging.getLogger(__name__)

PROPERTY_TITLE = "Beautiful 2BR Apartment in Tel Aviv"
PROPERTY_IMAGE = "https://images.unsplash.com/photo-1522708323590-d24dbb6b0267?w=400"


def seed_sample_offers(manager: OfferManager, owner_id: str = "current-owner") -> list[Offer]:
    """Submit two sample offers for ``owner_id`` through the normal path.

    Dates are placed relative to the manager's clock so the offers always pass
    validation. Skipped if the owner already has offers.
    """
    if manager.get_for_owner(owner_id):
        return []

    today = manager.now().date()
    owner_start = today + timedelta(days=14)
    owner_end = owner_start + timedelta(days=300)
    property_id = "property_demo_1"

    samples = [
        (
            RenterSnapshot(
                name="Sarah Johnson", age=28, occupation="Software Engineer",
                location="Tel Aviv",
                profile_image="https://images.unsplash.com/photo-1494790108755-2616b612b786?w=100",
                is_verified=True,
            ),
            4800,
            owner_start + timedelta(days=14),
            owner_end,
            "Hi! I'm very interested in your apartment. I'm a responsible tenant with "
            "excellent references and ready to provide additional deposits.",
        ),
        (
            RenterSnapshot(
                name="Michael Chen", age=24, occupation="Graduate Student",
                location="Haifa",
                profile_image="https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=100",
            ),
            3300,
            owner_start,
            owner_start + timedelta(days=182),
            "Hello! I would love to schedule a viewing. I'm available this weekend and "
            "have all necessary documentation ready.",
        ),
    ]

    created = []
    for index, (renter, price, start, end, note) in enumerate(samples, start=1):
        submission = OfferSubmission(
            property_id=property_id,
            owner_id=owner_id,
            renter_id=f"renter_{index}",
            renter_offer_price=price,
            renter_start_date=start,
            renter_end_date=end,
            property_title=PROPERTY_TITLE,
            property_image=PROPERTY_IMAGE,
            owner_price=4500,
            owner_start_date=owner_start,
            owner_end_date=owner_end,
            renter_note=note,
        )
        result = manager.submit(submission, renter, OwnerInfo(name="Property Owner"))
        if result.ok:
            created.append(result.offer)
        else:
            logger.warning("Could not seed sample offer: %s", result.message)

    logger.info("Seeded %d sample offers for %s", len(created), owner_id)
    return created
