"""Shared test fixtures for WealthWise."""

import json
import os
from datetime import datetime

import pytest

from wealthwise.audit import AuditLogger
from wealthwise.config import get_settings
from wealthwise.engine import demo_ledger
from wealthwise.services.storage import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    LedgerRepository,
)


_ENV_PREFIXES = ("GEMINI_", "GOOGLE_SHEETS_", "ENGINE_")


@pytest.fixture(autouse=True)
def offline_settings(monkeypatch):
    """Run every test with default settings and no external services."""
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fixed_now():
    """A mid-month reference time."""
    return datetime(2024, 6, 15, 10, 30)


@pytest.fixture
def ledger():
    return demo_ledger()


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def repository(store, audit_logger, fixed_now):
    return LedgerRepository(store, audit_logger=audit_logger, clock=lambda: fixed_now)


def epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


@pytest.fixture
def legacy_blobs():
    """
    Raw values as the earlier browser build left them in local storage.

    Timestamps are epoch milliseconds, the month is under dateStr, the
    ledger has no income list and the last-updated stamp is a bare number.
    """
    ledger = {
        "liquid": [{"id": "1", "name": "Money market", "amount": 35000, "interestRate": 1.8, "principal": 35000}],
        "financial": [],
        "realEstate": [],
        "protection": [],
        "alternative": [],
        "liabilities": [{"id": "5", "name": "Card", "amount": 5000}],
    }
    april = datetime(2024, 4, 10, 9, 0)
    may = datetime(2024, 5, 20, 18, 45)
    snapshots = [
        {
            "id": str(epoch_ms(moment)),
            "timestamp": epoch_ms(moment),
            "dateStr": key,
            "netWorth": value,
            "totalAssets": value + 5000,
            "totalLiabilities": 5000,
            "data": ledger,
        }
        for moment, key, value in ((april, "2024.04", 28000), (may, "2024.05", 30000))
    ]
    return {
        "ww_user": json.dumps({"name": "Sam", "joinedAt": epoch_ms(datetime(2024, 1, 2, 8, 0))}),
        "ww_current_assets": json.dumps(ledger),
        "ww_snapshots": json.dumps(snapshots),
        "ww_last_updated": str(epoch_ms(may)),
    }


@pytest.fixture
def legacy_store(legacy_blobs):
    return InMemoryKeyValueStore(legacy_blobs)
