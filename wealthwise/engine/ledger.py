"""
Asset Ledger Calculations

Pure functions over a UserAssets value. Nothing here reads or writes
storage, and nothing here raises for bad numbers: ratios are guarded
inline and yield 0 or an empty result.

Mutation helpers (add/update/remove) return a NEW ledger. They keep every
item in exactly one category and ids unique across the whole ledger.
"""

from collections.abc import Iterable
from typing import Optional

from wealthwise.models.assets import (
    ASSET_CATEGORIES,
    CATEGORY_FIELDS,
    CATEGORY_INFO,
    AllocationSlice,
    AssetCategory,
    AssetItem,
    UserAssets,
)


class LedgerError(Exception):
    """Base exception for ledger mutations."""
    pass


class ItemNotFoundError(LedgerError):
    """No item with the given id in the given category."""
    pass


class DuplicateItemError(LedgerError):
    """An item id is already used somewhere in the ledger."""
    pass


# =============================================================================
# TOTALS
# =============================================================================

def category_total(items: Iterable[AssetItem]) -> float:
    """Sum of amounts; 0 for an empty sequence."""
    return sum((item.amount for item in items), 0.0)


def category_totals(ledger: UserAssets) -> dict[AssetCategory, float]:
    """Total of every category, income and liabilities included."""
    return {
        category: category_total(ledger.items_for(category))
        for category in AssetCategory
    }


def total_assets(ledger: UserAssets) -> float:
    """Sum over all categories except liabilities and income."""
    return sum(
        (category_total(ledger.items_for(category)) for category in ASSET_CATEGORIES),
        0.0,
    )


def total_liabilities(ledger: UserAssets) -> float:
    return category_total(ledger.liabilities)


def net_worth(ledger: UserAssets) -> float:
    """Total assets minus total liabilities. May be negative."""
    return total_assets(ledger) - total_liabilities(ledger)


def asset_items(ledger: UserAssets) -> list[AssetItem]:
    """All items counted as assets (income and liabilities excluded)."""
    return [
        item
        for category in ASSET_CATEGORIES
        for item in ledger.items_for(category)
    ]


def allocation_breakdown(ledger: UserAssets) -> list[AllocationSlice]:
    """
    Share of each asset category in total assets.

    Percentages are rounded to one decimal. Categories with a zero total
    are omitted, and a ledger without assets yields an empty list.
    """
    assets_total = total_assets(ledger)
    if assets_total == 0:
        return []

    slices = []
    for category in ASSET_CATEGORIES:
        amount = category_total(ledger.items_for(category))
        if amount == 0:
            continue
        info = CATEGORY_INFO[category]
        slices.append(AllocationSlice(
            category=category,
            label=info.label,
            color=info.color,
            amount=amount,
            percentage=round(amount / assets_total * 100, 1),
        ))
    return slices


# =============================================================================
# MUTATION HELPERS
# =============================================================================

def _with_items(
    ledger: UserAssets,
    category: AssetCategory,
    items: list[AssetItem],
) -> UserAssets:
    updated = ledger.model_copy(deep=True)
    setattr(
        updated,
        CATEGORY_FIELDS[AssetCategory(category)],
        [item.model_copy(deep=True) for item in items],
    )
    return updated


def add_item(
    ledger: UserAssets,
    category: AssetCategory,
    name: str = "",
    amount: float = 0.0,
    interest_rate: Optional[float] = 0.0,
    principal: Optional[float] = 0.0,
    item_id: Optional[str] = None,
    note: Optional[str] = None,
) -> UserAssets:
    """
    Append a new item to a category.

    New items start at zero like the quick-add buttons of the dashboard.

    Raises:
        DuplicateItemError: If item_id is already used in the ledger
    """
    fields = {
        "name": name,
        "amount": amount,
        "interest_rate": interest_rate,
        "principal": principal,
        "note": note,
    }
    if item_id is not None:
        if ledger.find(item_id) is not None:
            raise DuplicateItemError(f"Item id already in ledger: {item_id}")
        fields["id"] = item_id

    item = AssetItem(**fields)
    items = list(ledger.items_for(category)) + [item]
    return _with_items(ledger, category, items)


def update_item(
    ledger: UserAssets,
    category: AssetCategory,
    item_id: str,
    **changes,
) -> UserAssets:
    """
    Change fields of one item in place of its old version.

    The id and the category of an item cannot be changed here; move an
    item by removing it and adding it elsewhere.

    Raises:
        ItemNotFoundError: If the category holds no item with that id
    """
    if "id" in changes:
        raise LedgerError("An item's id cannot be changed")

    items = []
    found = False
    for item in ledger.items_for(category):
        if item.id == item_id:
            found = True
            merged = item.model_dump()
            merged.update(changes)
            item = AssetItem.model_validate(merged)
        items.append(item)

    if not found:
        raise ItemNotFoundError(f"No item {item_id} in {AssetCategory(category).value}")
    return _with_items(ledger, category, items)


def remove_item(
    ledger: UserAssets,
    category: AssetCategory,
    item_id: str,
) -> UserAssets:
    """
    Delete one item.

    Raises:
        ItemNotFoundError: If the category holds no item with that id
    """
    items = [item for item in ledger.items_for(category) if item.id != item_id]
    if len(items) == len(ledger.items_for(category)):
        raise ItemNotFoundError(f"No item {item_id} in {AssetCategory(category).value}")
    return _with_items(ledger, category, items)


# =============================================================================
# FACTORIES
# =============================================================================

def empty_ledger() -> UserAssets:
    """A ledger with every category present and empty."""
    return UserAssets()


def demo_ledger() -> UserAssets:
    """Example data a new user starts with."""
    return UserAssets(
        income=[
            AssetItem(id="inc1", name="After-tax salary (annual)", amount=150000),
            AssetItem(id="inc2", name="Year-end bonus", amount=30000),
        ],
        liquid=[
            AssetItem(id="1", name="Money market fund", amount=35000,
                      interest_rate=1.8, principal=35000),
        ],
        financial=[
            AssetItem(id="3", name="CSI 300 index fund", amount=18000,
                      interest_rate=8.0, principal=20000),
            AssetItem(id="31", name="3-year treasury bond", amount=50000,
                      interest_rate=2.3, principal=50000),
        ],
        real_estate=[
            AssetItem(id="4", name="Primary residence (estimate)", amount=2500000,
                      interest_rate=1.5, principal=2000000),
        ],
        liabilities=[
            AssetItem(id="5", name="Mortgage principal outstanding", amount=800000,
                      interest_rate=3.1),
        ],
    )
