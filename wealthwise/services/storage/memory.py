"""
In-Memory Storage

Used by tests and by offline runs with no spreadsheet configured.
Values are stored as JSON text so that the same encode/decode failures
as a real backend can happen here.
"""

import json
from typing import Any, Optional

from wealthwise.models.audit import AuditEvent
from wealthwise.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStoreInterface,
    StorageError,
)


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Dictionary-backed key-value store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        """
        Args:
            initial: Raw JSON text per key, e.g. to simulate corrupt data
        """
        self._data: dict[str, str] = dict(initial or {})

    async def get_json(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Invalid JSON under '{key}': {e}")

    async def set_json(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON serializable: {e}")

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def raw(self, key: str) -> Optional[str]:
        """Stored text for a key (for inspection)."""
        return self._data.get(key)

    def keys(self) -> list[str]:
        return sorted(self._data)


class InMemoryAuditStorage(AuditStorageInterface):
    """List-backed audit log."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

    @property
    def events(self) -> list[AuditEvent]:
        """All events in insertion order."""
        return list(self._events)
