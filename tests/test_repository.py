"""Tests for the ledger repository and key-value stores."""

import json
from datetime import datetime

import pytest

from wealthwise.engine import HistorySynthesizer, empty_ledger
from wealthwise.models.audit import AuditEventType
from wealthwise.services.storage import (
    InMemoryKeyValueStore,
    LedgerRepository,
    StorageError,
)
from wealthwise.services.storage.repository import (
    ASSETS_KEY,
    LAST_UPDATED_KEY,
    SNAPSHOTS_KEY,
    USER_KEY,
)


class TestInMemoryStore:
    """Tests for InMemoryKeyValueStore."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, store):
        """Values round-trip through JSON text."""
        await store.set_json("k", {"a": [1, 2]})
        assert await store.get_json("k") == {"a": [1, 2]}
        assert json.loads(store.raw("k")) == {"a": [1, 2]}

    @pytest.mark.asyncio
    async def test_missing_key(self, store):
        """Absent keys read as None."""
        assert await store.get_json("nope") is None

    @pytest.mark.asyncio
    async def test_corrupt_value_raises(self):
        """Invalid JSON is a storage error."""
        store = InMemoryKeyValueStore({"k": "{not json"})
        with pytest.raises(StorageError):
            await store.get_json("k")

    @pytest.mark.asyncio
    async def test_unserialisable_value_raises(self, store):
        """Values json cannot encode are rejected."""
        with pytest.raises(StorageError):
            await store.set_json("k", object())

    @pytest.mark.asyncio
    async def test_delete(self, store):
        """Delete reports whether the key existed."""
        await store.set_json("k", 1)
        assert await store.delete("k") is True
        assert await store.delete("k") is False


class TestLedgerRepository:
    """Tests for LedgerRepository."""

    @pytest.mark.asyncio
    async def test_load_without_data(self, repository):
        """A fresh store gives an empty ledger."""
        ledger = await repository.load()
        assert ledger == empty_ledger()

    @pytest.mark.asyncio
    async def test_save_and_load(self, repository, ledger, store):
        """The ledger is stored as camelCase JSON."""
        await repository.save(ledger)
        assert "realEstate" in json.loads(store.raw(ASSETS_KEY))
        assert await repository.load() == ledger

    @pytest.mark.asyncio
    async def test_corrupt_ledger_is_recovered(self, audit_logger, audit_storage):
        """Unreadable JSON becomes an empty ledger and is audited."""
        store = InMemoryKeyValueStore({ASSETS_KEY: "{oops"})
        repo = LedgerRepository(store, audit_logger=audit_logger)
        assert await repo.load() == empty_ledger()
        events = audit_storage.events
        assert [e.event_type for e in events] == [AuditEventType.LEDGER_RECOVERED]
        assert events[0].entity_id == ASSETS_KEY

    @pytest.mark.asyncio
    async def test_wrong_shape_is_recovered(self):
        """Valid JSON with the wrong shape also gives an empty ledger."""
        store = InMemoryKeyValueStore({ASSETS_KEY: json.dumps({"liquid": "lots"})})
        repo = LedgerRepository(store)
        assert await repo.load() == empty_ledger()

    @pytest.mark.asyncio
    async def test_snapshots_round_trip(self, repository, ledger, fixed_now):
        """Snapshots are stored and loaded in timestamp order."""
        synth = HistorySynthesizer()
        _, snaps = synth.create_snapshot([], ledger, datetime(2024, 5, 2))
        _, snaps = synth.create_snapshot(snaps, ledger, fixed_now)
        await repository.save_snapshots(list(reversed(snaps)))

        loaded = await repository.load_snapshots()
        assert [s.month_key for s in loaded] == ["2024.05", "2024.06"]
        assert loaded[1].data == ledger

    @pytest.mark.asyncio
    async def test_save_snapshots_stamps_last_updated(self, repository, store, fixed_now):
        """Saving snapshots records the save time in milliseconds."""
        assert await repository.load_last_updated() is None
        await repository.save_snapshots([])
        assert await store.get_json(LAST_UPDATED_KEY) == int(fixed_now.timestamp() * 1000)
        assert await repository.load_last_updated() == fixed_now

    @pytest.mark.asyncio
    async def test_corrupt_snapshots_are_recovered(self):
        """A non-list snapshot blob reads as no snapshots."""
        store = InMemoryKeyValueStore({SNAPSHOTS_KEY: json.dumps({"a": 1})})
        assert await LedgerRepository(store).load_snapshots() == []

    @pytest.mark.asyncio
    async def test_invalid_snapshot_entry_is_recovered(self):
        """One broken snapshot discards the unreadable list."""
        store = InMemoryKeyValueStore({SNAPSHOTS_KEY: json.dumps([{"monthKey": "x"}])})
        assert await LedgerRepository(store).load_snapshots() == []

    @pytest.mark.asyncio
    async def test_create_user_seeds_demo_ledger(self, repository):
        """First-time users get example data."""
        profile = await repository.create_user("Alex")
        assert profile.name == "Alex"
        assert (await repository.get_user()).name == "Alex"
        ledger = await repository.load()
        assert ledger.find("4") is not None

    @pytest.mark.asyncio
    async def test_create_user_keeps_existing_ledger(self, repository):
        """An existing ledger is not overwritten."""
        await repository.save(empty_ledger())
        await repository.create_user("Alex")
        assert (await repository.load()).is_empty()

    @pytest.mark.asyncio
    async def test_clear_data(self, repository, store, ledger):
        """Clearing removes every stored key."""
        await repository.create_user("Alex")
        await repository.save_snapshots([])
        await repository.clear_data()
        assert store.keys() == []
        assert await repository.get_user() is None
        for key in (USER_KEY, ASSETS_KEY, SNAPSHOTS_KEY, LAST_UPDATED_KEY):
            assert store.raw(key) is None

    @pytest.mark.parametrize("raw", ["1e300", "99999999999999999", "-1e20"])
    @pytest.mark.asyncio
    async def test_out_of_range_last_updated_is_recovered(self, raw, audit_logger, audit_storage):
        """A stamp no datetime can hold reads as never updated."""
        store = InMemoryKeyValueStore({LAST_UPDATED_KEY: raw})
        repo = LedgerRepository(store, audit_logger=audit_logger)

        assert await repo.load_last_updated() is None
        events = audit_storage.events
        assert [e.event_type for e in events] == [AuditEventType.LEDGER_RECOVERED]
        assert events[0].entity_id == LAST_UPDATED_KEY


class TestLegacyStorage:
    """Data written by the earlier browser build."""

    @pytest.mark.asyncio
    async def test_load_legacy_snapshots(self, legacy_store):
        """Epoch-millisecond timestamps load as naive local time."""
        snapshots = await LedgerRepository(legacy_store).load_snapshots()

        assert [s.month_key for s in snapshots] == ["2024.04", "2024.05"]
        assert snapshots[0].timestamp == datetime(2024, 4, 10, 9, 0)
        assert all(s.timestamp.tzinfo is None for s in snapshots)

    @pytest.mark.asyncio
    async def test_load_legacy_ledger_user_and_stamp(self, legacy_store):
        """The ledger, profile and last-updated stamp all read back."""
        repo = LedgerRepository(legacy_store)

        ledger = await repo.load()
        assert ledger.income == []
        assert ledger.liquid[0].interest_rate == 1.8

        user = await repo.get_user()
        assert user.joined_at == datetime(2024, 1, 2, 8, 0)
        assert await repo.load_last_updated() == datetime(2024, 5, 20, 18, 45)

    @pytest.mark.asyncio
    async def test_append_to_legacy_snapshots(self, legacy_store, ledger, fixed_now):
        """A new snapshot is stored after the legacy ones."""
        repo = LedgerRepository(legacy_store, clock=lambda: fixed_now)
        _, snapshots = HistorySynthesizer().create_snapshot(
            await repo.load_snapshots(), ledger, fixed_now
        )
        await repo.save_snapshots(snapshots)

        stored = await legacy_store.get_json(SNAPSHOTS_KEY)
        assert [s["monthKey"] for s in stored] == ["2024.04", "2024.05", "2024.06"]
        reloaded = await repo.load_snapshots()
        assert reloaded[0].timestamp == datetime(2024, 4, 10, 9, 0)
        assert await repo.load_last_updated() == fixed_now
