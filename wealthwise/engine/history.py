"""
Net-Worth History

Snapshots are keyed by calendar month ("YYYY.MM"). At most one snapshot
exists per month: saving again in the same month replaces it.

The trend shown to the user is a fixed window of months ending with the
current one. Months without a snapshot are backfilled from an anchor
value (the latest snapshot, or the live ledger if there is none) along a
simulated growth curve.

DESIGN DECISION: Backfill noise is off by default so the series is
reproducible. It can be switched on with ENGINE_BACKFILL_NOISE_PCT and a
seeded random.Random.

All datetimes are naive local time; month keys follow the local calendar.
"""

import math
import random
from collections.abc import Sequence
from datetime import date, datetime
from typing import Optional, Union

from wealthwise.config import EngineSettings, get_settings
from wealthwise.engine.ledger import net_worth, total_assets, total_liabilities
from wealthwise.models.assets import (
    AssetHistoryItem,
    AssetSnapshot,
    UserAssets,
    to_local_naive,
)

# Points in the trend window, current month included
HISTORY_MONTHS = 7


def month_key(moment: Union[date, datetime]) -> str:
    """Calendar month of a date as 'YYYY.MM'."""
    return f"{moment.year:04d}.{moment.month:02d}"


def shift_months(moment: Union[date, datetime], delta: int) -> date:
    """First day of the month `delta` months away from `moment`."""
    index = moment.year * 12 + (moment.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)


class HistorySynthesizer:
    """
    Creates snapshots and builds the net-worth trend.

    Operates on snapshot lists supplied by the caller and returns new
    lists; persisting them is the repository's job.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            settings: Engine settings (growth, noise)
            rng: Random source for backfill noise. Noise is only applied
                 when both rng is given and backfill_noise_pct > 0.
        """
        self._settings = settings or get_settings().engine
        self._rng = rng

    def create_snapshot(
        self,
        snapshots: Sequence[AssetSnapshot],
        ledger: UserAssets,
        now: Optional[datetime] = None,
    ) -> tuple[AssetSnapshot, list[AssetSnapshot]]:
        """
        Capture the ledger for the month of `now`.

        Any existing snapshot for the same month is dropped. The input
        sequence is not modified.

        Returns:
            (new_snapshot, updated_list sorted ascending by timestamp)
        """
        now = to_local_naive(now or datetime.now())
        key = month_key(now)

        snapshot = AssetSnapshot(
            timestamp=now,
            month_key=key,
            net_worth=net_worth(ledger),
            total_assets=total_assets(ledger),
            total_liabilities=total_liabilities(ledger),
            data=ledger.model_copy(deep=True),
        )

        updated = [s for s in snapshots if s.month_key != key]
        updated.append(snapshot)
        updated.sort(key=lambda s: s.timestamp)

        return snapshot, updated

    def history(
        self,
        snapshots: Sequence[AssetSnapshot],
        current_net_worth: float,
        now: Optional[Union[date, datetime]] = None,
    ) -> list[AssetHistoryItem]:
        """
        Build the trend window, oldest month first, current month last.

        Args:
            snapshots: Known snapshots (any order)
            current_net_worth: Net worth of the live ledger; the anchor
                               when there are no snapshots at all
            now: Reference date (defaults to today)

        Returns:
            Exactly HISTORY_MONTHS items
        """
        now = now or datetime.now()
        points = HISTORY_MONTHS

        real_values = {s.month_key: s.net_worth for s in snapshots}
        if snapshots:
            anchor = max(snapshots, key=lambda s: s.timestamp).net_worth
        else:
            anchor = current_net_worth

        items = []
        for months_back in range(points - 1, -1, -1):
            key = month_key(shift_months(now, -months_back))
            if key in real_values:
                items.append(AssetHistoryItem(month_key=key, value=real_values[key]))
            else:
                # Curve steps are counted from the oldest month of the window
                steps = (points - 1) - months_back
                items.append(AssetHistoryItem(
                    month_key=key,
                    value=self._backfill(anchor, steps),
                    is_backfilled=True,
                ))
        return items

    def _backfill(self, anchor: float, steps: int) -> float:
        if anchor == 0:
            return 0
        value = anchor / math.pow(1 + self._settings.backfill_monthly_growth, steps)
        noise_pct = self._settings.backfill_noise_pct
        if self._rng is not None and noise_pct > 0:
            value *= 1 + self._rng.uniform(-noise_pct, noise_pct) / 100
        return math.floor(value)
