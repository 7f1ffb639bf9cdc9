"""
Financial Calculation Engine

Pure, synchronous calculations over in-memory values:
- ledger:     totals, net worth, allocation, item mutation helpers
- projection: weighted return and compounding
- rules:      deterministic offline goal analysis
- history:    monthly snapshots and the backfilled trend
- goals:      goal evaluation with optional advisor
"""

from wealthwise.engine.ledger import (
    DuplicateItemError,
    ItemNotFoundError,
    LedgerError,
    add_item,
    allocation_breakdown,
    asset_items,
    category_total,
    category_totals,
    demo_ledger,
    empty_ledger,
    net_worth,
    remove_item,
    total_assets,
    total_liabilities,
    update_item,
)
from wealthwise.engine.projection import (
    compound_forward,
    portfolio_return,
    project_net_worth,
    wealth_projection,
    weighted_average_return,
)
from wealthwise.engine.rules import (
    COMPLETION_THRESHOLD_PCT,
    classify_goal,
    completion_percent,
    generate_offline_analysis,
)
from wealthwise.engine.history import (
    HISTORY_MONTHS,
    HistorySynthesizer,
    month_key,
    shift_months,
)
from wealthwise.engine.goals import (
    GoalEvaluator,
    retirement_capital,
)

__all__ = [
    # Ledger
    "DuplicateItemError",
    "ItemNotFoundError",
    "LedgerError",
    "add_item",
    "allocation_breakdown",
    "asset_items",
    "category_total",
    "category_totals",
    "demo_ledger",
    "empty_ledger",
    "net_worth",
    "remove_item",
    "total_assets",
    "total_liabilities",
    "update_item",
    # Projection
    "compound_forward",
    "portfolio_return",
    "project_net_worth",
    "wealth_projection",
    "weighted_average_return",
    # Rules
    "COMPLETION_THRESHOLD_PCT",
    "classify_goal",
    "completion_percent",
    "generate_offline_analysis",
    # History
    "HISTORY_MONTHS",
    "HistorySynthesizer",
    "month_key",
    "shift_months",
    # Goals
    "GoalEvaluator",
    "retirement_capital",
]
