"""Shared test fixtures."""

from __future__ import annotations

import os
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"  # In-memory DB for tests

from offerdesk.database import Base
from offerdesk.events import SubscriptionRegistry
from offerdesk.models.offer import Offer, OfferSubmission, RenterSnapshot, derive_offer
from offerdesk.modules.offers.manager import OfferManager
from offerdesk.modules.offers.store import OfferStore
from offerdesk.modules.offers.sweeper import ExpirySweeper
from offerdesk.storage import SqlKeyValueStore

# Import all models to register them
import offerdesk.models.kv  # noqa: F401

OWNER_ID = "owner_1"
PROPERTY_ID = "property_demo_1"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FailingKeyValueStore:
    """Reads fine, refuses every write."""

    def __init__(self, value: str | None = None) -> None:
        self.value = value

    def get(self, key: str) -> str | None:
        return self.value

    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")

    def remove(self, key: str) -> None:
        raise OSError("disk full")


@pytest.fixture
def db_engine():
    """Create a fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def kv_store(db_engine) -> SqlKeyValueStore:
    return SqlKeyValueStore(sessionmaker(bind=db_engine, expire_on_commit=False))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(kv_store: SqlKeyValueStore, clock: FakeClock) -> OfferStore:
    return OfferStore(kv_store, clock=clock)


@pytest.fixture
def registry(store: OfferStore) -> SubscriptionRegistry:
    return SubscriptionRegistry(store.matching)


@pytest.fixture
def sweeper(store: OfferStore, registry: SubscriptionRegistry, clock: FakeClock) -> ExpirySweeper:
    sweeper = ExpirySweeper(store, registry, clock=clock)
    yield sweeper
    sweeper.stop()


@pytest.fixture
def manager(store: OfferStore, registry: SubscriptionRegistry, sweeper: ExpirySweeper, clock: FakeClock) -> OfferManager:
    return OfferManager(store, registry, sweeper, clock=clock)


@pytest.fixture
def submission() -> OfferSubmission:
    """Sarah's offer on the Tel Aviv apartment."""
    return OfferSubmission(
        property_id=PROPERTY_ID,
        owner_id=OWNER_ID,
        renter_id="renter_1",
        renter_offer_price=4800,
        renter_start_date=date(2024, 2, 15),
        renter_end_date=date(2024, 11, 30),
        property_title="Beautiful 2BR Apartment in Tel Aviv",
        property_image="https://images.example.com/apt.jpg",
        owner_price=4500,
        owner_start_date=date(2024, 2, 1),
        owner_end_date=date(2024, 11, 30),
        renter_note="Hi! I'm very interested in your apartment. I'm a responsible tenant.",
    )


@pytest.fixture
def renter() -> RenterSnapshot:
    return RenterSnapshot(
        name="Sarah Johnson",
        age=28,
        occupation="Software Engineer",
        location="Tel Aviv",
        profile_image="https://images.example.com/sarah.jpg",
        is_verified=True,
    )


@pytest.fixture
def make_offer(submission: OfferSubmission, renter: RenterSnapshot, clock: FakeClock):
    """Factory for derived offers; keyword arguments override Offer fields."""

    def _make(**overrides) -> Offer:
        offer = derive_offer(submission, renter, "Dana Owner", now=clock())
        return replace(offer, **overrides)

    return _make
