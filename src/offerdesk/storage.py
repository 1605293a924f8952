"""Key-value persistence backends for the offer collection."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from sqlalchemy.orm import Session

from offerdesk.database import get_session
from offerdesk.models.kv import KeyValueEntry

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Opaque string keys to serialized string values."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class SqlKeyValueStore:
    """Key-value store backed by the ``kv_entries`` table."""

    def __init__(self, session_factory: Callable[[], Session] = get_session) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> str | None:
        session = self._session_factory()
        try:
            entry = session.get(KeyValueEntry, key)
            return entry.value if entry else None
        finally:
            session.close()

    def set(self, key: str, value: str) -> None:
        session = self._session_factory()
        try:
            entry = session.get(KeyValueEntry, key)
            if entry:
                entry.value = value
            else:
                session.add(KeyValueEntry(key=key, value=value))
            session.commit()
            logger.debug("Stored %d bytes under %s", len(value), key)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def remove(self, key: str) -> None:
        session = self._session_factory()
        try:
            entry = session.get(KeyValueEntry, key)
            if entry:
                session.delete(entry)
                session.commit()
        finally:
            session.close()


class MemoryKeyValueStore:
    """Dict-backed store. Contents are lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)
