"""Tests for the expiry sweeper."""

from datetime import timedelta

from offerdesk.events import OwnerKey, SubscriptionRegistry
from offerdesk.models.offer import OfferStatus
from offerdesk.modules.offers.store import OfferStore
from offerdesk.modules.offers.sweeper import ExpirySweeper

from conftest import FakeClock


def test_sweep_expires_stale_pending(store: OfferStore, sweeper: ExpirySweeper, clock: FakeClock, make_offer):
    stale = store.insert(make_offer())
    fresh = store.insert(make_offer(expires_at=clock() + timedelta(hours=72)))
    clock.advance(hours=48)

    assert sweeper.sweep() == 1

    expired = store.find_by_id(stale.id)
    assert expired.status is OfferStatus.EXPIRED
    assert expired.updated_at == clock()
    assert expired.expires_at == stale.expires_at
    assert store.find_by_id(fresh.id).status is OfferStatus.PENDING


def test_sweep_leaves_other_statuses_alone(store: OfferStore, sweeper: ExpirySweeper, clock: FakeClock, make_offer):
    untouched = [
        store.insert(make_offer(status=status))
        for status in (OfferStatus.ACCEPTED, OfferStatus.REJECTED, OfferStatus.COUNTERED)
    ]
    clock.advance(days=5)

    assert sweeper.sweep() == 0
    for offer in untouched:
        assert store.find_by_id(offer.id) == offer


def test_sweep_is_idempotent(store: OfferStore, sweeper: ExpirySweeper, clock: FakeClock, make_offer):
    store.insert(make_offer())
    store.insert(make_offer())
    clock.advance(hours=49)

    assert sweeper.sweep() == 2
    after_first = store.all()

    clock.advance(minutes=5)
    assert sweeper.sweep() == 0
    assert store.all() == after_first


def test_sweep_notifies_only_on_change(
    store: OfferStore, registry: SubscriptionRegistry, sweeper: ExpirySweeper, clock: FakeClock, make_offer
):
    received = []
    registry.subscribe(OwnerKey("owner_1"), received.append)
    store.insert(make_offer())

    sweeper.sweep()
    assert received == []

    clock.advance(hours=48)
    sweeper.sweep()
    assert len(received) == 1
    assert received[0][0].status is OfferStatus.EXPIRED


def test_start_sweeps_immediately_and_schedules(store: OfferStore, sweeper: ExpirySweeper, clock: FakeClock, make_offer):
    offer = store.insert(make_offer())
    clock.advance(hours=50)

    sweeper.start()
    try:
        assert sweeper.running
        assert store.find_by_id(offer.id).status is OfferStatus.EXPIRED

        job = sweeper.scheduler.get_job("offer_expiry")
        assert job is not None
        assert job.trigger.interval == timedelta(minutes=60)

        scheduler = sweeper.scheduler
        sweeper.start()  # no-op while running
        assert sweeper.scheduler is scheduler
    finally:
        sweeper.stop()

    assert not sweeper.running
    assert sweeper.scheduler is None


def test_custom_interval(store: OfferStore, registry: SubscriptionRegistry, clock: FakeClock):
    sweeper = ExpirySweeper(store, registry, interval_minutes=5, clock=clock)
    sweeper.start()
    try:
        assert sweeper.scheduler.get_job("offer_expiry").trigger.interval == timedelta(minutes=5)
    finally:
        sweeper.stop()


def test_stop_without_start(sweeper: ExpirySweeper):
    sweeper.stop()
    assert not sweeper.running
