"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets and in-memory backends are interchangeable behind
KeyValueStoreInterface; LedgerRepository adds the typed ledger layer.
"""

from wealthwise.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    KeyValueStoreInterface,
    LedgerRepositoryInterface,
    NotFoundError,
    StorageError,
)
from wealthwise.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
)
from wealthwise.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
)
from wealthwise.services.storage.repository import LedgerRepository

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStoreInterface",
    "LedgerRepositoryInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
    # Repository
    "LedgerRepository",
]
