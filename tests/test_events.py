"""Tests for the subscription registry."""

import pytest

from offerdesk.events import OwnerKey, PropertyKey, SubscriptionRegistry, parse_interest_key


def _registry(offers_by_key=None, calls=None):
    offers_by_key = offers_by_key or {}

    def resolver(key):
        if calls is not None:
            calls.append(key)
        return offers_by_key.get(key, [])

    return SubscriptionRegistry(resolver)


def test_subscribers_called_in_order_with_same_subset():
    key = OwnerKey("owner_1")
    bus = _registry({key: ["offer_a", "offer_b"]})
    received = []

    bus.subscribe(key, lambda offers: received.append(("first", offers)))
    bus.subscribe(key, lambda offers: received.append(("second", offers)))
    bus.notify(key)

    assert received == [
        ("first", ["offer_a", "offer_b"]),
        ("second", ["offer_a", "offer_b"]),
    ]


def test_no_cross_key_delivery():
    bus = _registry()
    received = []

    bus.subscribe(OwnerKey("owner_1"), received.append)
    bus.notify(OwnerKey("owner_2"))
    bus.notify(PropertyKey("owner_1"))

    assert received == []


def test_subscriber_error_does_not_stop_others():
    key = PropertyKey("property_1")
    bus = _registry()
    calls = []

    def bad_handler(offers):
        raise ValueError("boom")

    bus.subscribe(key, bad_handler)
    bus.subscribe(key, lambda offers: calls.append(True))
    bus.notify(key)

    assert calls == [True]


def test_unsubscribe_removes_only_that_registration():
    key = OwnerKey("owner_1")
    bus = _registry()
    calls = []

    def handler(offers):
        calls.append(True)

    dispose_first = bus.subscribe(key, handler)
    bus.subscribe(key, handler)
    dispose_first()
    bus.notify(key)

    assert calls == [True]
    assert bus.subscriber_count(key) == 1


def test_last_unsubscribe_frees_key():
    key = OwnerKey("owner_1")
    bus = _registry()

    dispose = bus.subscribe(key, lambda offers: None)
    assert bus.keys == [key]

    dispose()
    dispose()  # second call is harmless
    assert bus.keys == []


def test_notify_without_subscribers_skips_resolver():
    calls = []
    bus = _registry(calls=calls)

    bus.notify(OwnerKey("owner_1"))
    assert calls == []


def test_notify_all_covers_every_key():
    owner, prop = OwnerKey("owner_1"), PropertyKey("property_1")
    bus = _registry({owner: ["o"], prop: ["p"]})
    received = []

    bus.subscribe(owner, lambda offers: received.append(offers))
    bus.subscribe(prop, lambda offers: received.append(offers))
    bus.notify_all()

    assert received == [["o"], ["p"]]


def test_parse_interest_key():
    assert parse_interest_key("owner:abc") == OwnerKey("abc")
    assert parse_interest_key("property:p-1") == PropertyKey("p-1")
    assert parse_interest_key("owner_current-owner") == OwnerKey("current-owner")
    assert parse_interest_key(OwnerKey("x")) == OwnerKey("x")
    assert str(OwnerKey("abc")) == "owner:abc"


@pytest.mark.parametrize("raw", ["", "owner:", "tenant:1", "abc"])
def test_parse_interest_key_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_interest_key(raw)
