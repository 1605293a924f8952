"""In-process subscription registry for offer change notifications."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Union

if TYPE_CHECKING:
    from offerdesk.models.offer import Offer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OwnerKey:
    owner_id: str

    def __str__(self) -> str:
        return f"owner:{self.owner_id}"


@dataclass(frozen=True)
class PropertyKey:
    property_id: str

    def __str__(self) -> str:
        return f"property:{self.property_id}"


InterestKey = Union[OwnerKey, PropertyKey]

# Type for subscriber callbacks
Subscriber = Callable[[list["Offer"]], None]

# Computes the offers relevant to a key
Resolver = Callable[[InterestKey], list["Offer"]]


def parse_interest_key(key: str | InterestKey) -> InterestKey:
    """Accept ``owner:<id>`` / ``property:<id>`` (or the ``owner_<id>`` form)."""
    if isinstance(key, (OwnerKey, PropertyKey)):
        return key
    for prefix, key_type in (("owner", OwnerKey), ("property", PropertyKey)):
        for sep in (":", "_"):
            head = prefix + sep
            if key.startswith(head) and len(key) > len(head):
                return key_type(key[len(head):])
    raise ValueError(f"Unrecognized interest key: {key!r}")


class SubscriptionRegistry:
    """Fans out the current offer subset for a key to that key's subscribers.

    Callbacks for a key run in registration order. A callback that raises is
    logged and does not stop the ones after it.
    """

    def __init__(self, resolver: Resolver) -> None:
        self._resolver = resolver
        self._subscribers: dict[InterestKey, list[tuple[int, Subscriber]]] = {}
        self._lock = threading.Lock()
        self._tokens = itertools.count()

    def subscribe(self, key: InterestKey, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a disposer for this registration only."""
        token = next(self._tokens)
        with self._lock:
            self._subscribers.setdefault(key, []).append((token, callback))
        logger.debug("Subscribed %s to %s", getattr(callback, "__name__", callback), key)

        def unsubscribe() -> None:
            with self._lock:
                entries = self._subscribers.get(key)
                if entries is None:
                    return
                entries[:] = [e for e in entries if e[0] != token]
                if not entries:
                    del self._subscribers[key]

        return unsubscribe

    @property
    def keys(self) -> list[InterestKey]:
        with self._lock:
            return list(self._subscribers)

    def subscriber_count(self, key: InterestKey) -> int:
        with self._lock:
            return len(self._subscribers.get(key, []))

    def notify(self, key: InterestKey) -> None:
        """Invoke every callback for ``key`` with the offers relevant to it."""
        with self._lock:
            callbacks = [cb for _, cb in self._subscribers.get(key, [])]
        if not callbacks:
            return

        offers = self._resolver(key)
        logger.info("Notifying %d subscriber(s) of %s (%d offers)", len(callbacks), key, len(offers))
        for callback in callbacks:
            try:
                callback(list(offers))
            except Exception:
                logger.exception(
                    "Error in subscriber %s for %s",
                    getattr(callback, "__name__", callback),
                    key,
                )

    def notify_all(self) -> None:
        """Notify every currently registered key."""
        for key in self.keys:
            self.notify(key)
