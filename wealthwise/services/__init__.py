"""Services package."""

from wealthwise.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStore,
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    KeyValueStoreInterface,
    LedgerRepository,
    LedgerRepositoryInterface,
    NotFoundError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStore",
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    "KeyValueStoreInterface",
    "LedgerRepository",
    "LedgerRepositoryInterface",
    "NotFoundError",
    "StorageError",
]
