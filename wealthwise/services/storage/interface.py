"""
Abstract Storage Interface

DESIGN DECISION: Persistence is split in two layers:
1. KeyValueStoreInterface - dumb JSON blobs by name (Google Sheets,
   in-memory, anything that can hold a string per key)
2. LedgerRepositoryInterface - the typed ledger operations the flows use

The engine never sees either; flows load plain models from a repository,
hand them to the engine, and save what comes back.

Durability is "last write wins". There are no transactions.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from wealthwise.models.assets import AssetSnapshot, UserAssets, UserProfile
from wealthwise.models.audit import AuditEvent


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for a JSON key-value store.

    Values are anything json.dumps accepts.
    """

    @abstractmethod
    async def get_json(self, key: str) -> Optional[Any]:
        """
        Read and decode the value under a key.

        Returns:
            The decoded value, or None if the key is absent

        Raises:
            StorageError: If the backend fails or the stored text is not JSON
        """
        pass

    @abstractmethod
    async def set_json(self, key: str, value: Any) -> None:
        """
        Encode and write a value, replacing any previous one.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass


class LedgerRepositoryInterface(ABC):
    """
    Typed persistence for the ledger and its history.

    CRITICAL: Readers never raise on absent or corrupt data; they return
    the empty default instead.
    """

    @abstractmethod
    async def load(self) -> UserAssets:
        """Current ledger, or an empty ledger."""
        pass

    @abstractmethod
    async def save(self, assets: UserAssets) -> None:
        pass

    @abstractmethod
    async def load_snapshots(self) -> list[AssetSnapshot]:
        """Snapshots ordered by timestamp, or an empty list."""
        pass

    @abstractmethod
    async def save_snapshots(self, snapshots: list[AssetSnapshot]) -> None:
        """Replace the stored snapshot list and stamp the update time."""
        pass

    @abstractmethod
    async def load_last_updated(self) -> Optional[datetime]:
        pass

    @abstractmethod
    async def get_user(self) -> Optional[UserProfile]:
        pass

    @abstractmethod
    async def create_user(self, name: str) -> UserProfile:
        """Create the local profile; seeds the demo ledger if none exists."""
        pass

    @abstractmethod
    async def clear_data(self) -> None:
        """Remove the profile, ledger, snapshots and update time."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
