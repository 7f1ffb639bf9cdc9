"""
Ledger Repository

Typed ledger persistence over any KeyValueStoreInterface.

Stored keys:
    ww_user            - UserProfile JSON
    ww_current_assets  - UserAssets JSON (camelCase)
    ww_snapshots       - list of AssetSnapshot JSON, oldest first
    ww_last_updated    - epoch milliseconds of the last snapshot save

CRITICAL: Reads never raise. Absent data yields the empty default;
unreadable data is logged, audited and then treated as absent.
Writes propagate StorageError so the caller knows the save failed.
"""

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

import structlog
from pydantic import ValidationError

from wealthwise.engine.ledger import demo_ledger, empty_ledger
from wealthwise.models.assets import AssetSnapshot, UserAssets, UserProfile
from wealthwise.services.storage.interface import (
    KeyValueStoreInterface,
    LedgerRepositoryInterface,
    StorageError,
)

if TYPE_CHECKING:
    from wealthwise.audit.logger import AuditLogger


logger = structlog.get_logger(__name__)

USER_KEY = "ww_user"
ASSETS_KEY = "ww_current_assets"
SNAPSHOTS_KEY = "ww_snapshots"
LAST_UPDATED_KEY = "ww_last_updated"

ALL_KEYS = (USER_KEY, ASSETS_KEY, SNAPSHOTS_KEY, LAST_UPDATED_KEY)


class LedgerRepository(LedgerRepositoryInterface):
    """
    Ledger repository backed by a key-value store.

    Usage:
        repo = LedgerRepository(InMemoryKeyValueStore())
        ledger = await repo.load()
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        audit_logger: Optional["AuditLogger"] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            store: Key-value backend
            audit_logger: Receives an event whenever stored data is recovered
            clock: Source of "now" for the last-updated stamp
        """
        self._store = store
        self._audit = audit_logger
        self._clock = clock

    async def _recover(self, key: str, reason: str) -> None:
        logger.warning("stored_data_recovered", key=key, reason=reason)
        if self._audit:
            await self._audit.log_ledger_recovered(key=key, reason=reason)

    async def _read(self, key: str) -> Optional[Any]:
        """Raw decoded value, or None if absent or unreadable."""
        try:
            return await self._store.get_json(key)
        except StorageError as e:
            await self._recover(key, str(e))
            return None

    # =========================================================================
    # LEDGER
    # =========================================================================

    async def load(self) -> UserAssets:
        raw = await self._read(ASSETS_KEY)
        if raw is None:
            return empty_ledger()
        try:
            return UserAssets.model_validate(raw)
        except ValidationError as e:
            await self._recover(ASSETS_KEY, f"invalid ledger: {e.error_count()} errors")
            return empty_ledger()

    async def save(self, assets: UserAssets) -> None:
        await self._store.set_json(ASSETS_KEY, assets.to_storage_dict())

    # =========================================================================
    # HISTORY
    # =========================================================================

    async def load_snapshots(self) -> list[AssetSnapshot]:
        raw = await self._read(SNAPSHOTS_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            await self._recover(SNAPSHOTS_KEY, "snapshot list is not an array")
            return []
        try:
            snapshots = [AssetSnapshot.model_validate(item) for item in raw]
        except ValidationError as e:
            await self._recover(SNAPSHOTS_KEY, f"invalid snapshot: {e.error_count()} errors")
            return []
        snapshots.sort(key=lambda s: s.timestamp)
        return snapshots

    async def save_snapshots(self, snapshots: list[AssetSnapshot]) -> None:
        await self._store.set_json(
            SNAPSHOTS_KEY,
            [snapshot.to_storage_dict() for snapshot in snapshots],
        )
        stamp = int(self._clock().timestamp() * 1000)
        await self._store.set_json(LAST_UPDATED_KEY, stamp)

    async def load_last_updated(self) -> Optional[datetime]:
        raw = await self._read(LAST_UPDATED_KEY)
        if raw is None:
            return None
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            await self._recover(LAST_UPDATED_KEY, "timestamp is not a number")
            return None
        try:
            return datetime.fromtimestamp(raw / 1000)
        except (OverflowError, OSError, ValueError) as e:
            await self._recover(LAST_UPDATED_KEY, f"timestamp out of range: {e}")
            return None

    # =========================================================================
    # USER SESSION
    # =========================================================================

    async def get_user(self) -> Optional[UserProfile]:
        raw = await self._read(USER_KEY)
        if raw is None:
            return None
        try:
            return UserProfile.model_validate(raw)
        except ValidationError as e:
            await self._recover(USER_KEY, f"invalid profile: {e.error_count()} errors")
            return None

    async def create_user(self, name: str) -> UserProfile:
        """
        Create the local profile.

        A first-time user gets the demo ledger so the dashboard is not
        empty. An existing ledger is left alone.
        """
        profile = UserProfile(name=name)
        await self._store.set_json(USER_KEY, profile.model_dump(mode="json", by_alias=True))

        if await self._read(ASSETS_KEY) is None:
            await self.save(demo_ledger())

        return profile

    async def clear_data(self) -> None:
        for key in ALL_KEYS:
            await self._store.delete(key)
