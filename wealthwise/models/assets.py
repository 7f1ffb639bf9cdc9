"""
Core Asset Models for WealthWise

These models define the schemas for the ledger and its history.
They are designed to:
1. Keep the category set closed (no free-form category keys)
2. Round-trip the camelCase JSON blobs the ledger is persisted as
3. Be plain data - all arithmetic lives in wealthwise.engine

DESIGN DECISION: Money is modelled as float. The projection formulas are
specified on IEEE doubles and results must match them exactly; there is
no currency conversion or tax rounding that would call for Decimal.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


def generate_item_id() -> str:
    """Generate a unique ledger item id."""
    return uuid4().hex


def to_local_naive(value: datetime) -> datetime:
    """
    Convert an aware datetime to naive local time.

    Stored blobs may carry epoch milliseconds, which pydantic parses as
    UTC-aware; everything else in the engine is naive local time.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AssetCategory(str, Enum):
    """
    Ledger categories.

    DESIGN DECISION: This enumeration is closed. Every total in the engine
    walks it, so adding a member forces every calculation to consider it.
    Values are the keys used in persisted JSON.
    """
    INCOME = "income"              # Annual cash flow, not a stock
    LIQUID = "liquid"
    FINANCIAL = "financial"
    REAL_ESTATE = "realEstate"
    PROTECTION = "protection"
    ALTERNATIVE = "alternative"
    LIABILITIES = "liabilities"    # Subtracted from net worth

    @property
    def is_liability(self) -> bool:
        return self is AssetCategory.LIABILITIES

    @property
    def is_asset(self) -> bool:
        """True for categories counted in total assets."""
        return self not in (AssetCategory.INCOME, AssetCategory.LIABILITIES)


ASSET_CATEGORIES: tuple[AssetCategory, ...] = tuple(
    category for category in AssetCategory if category.is_asset
)

# Category -> UserAssets attribute. Must cover every AssetCategory member.
CATEGORY_FIELDS: dict[AssetCategory, str] = {
    AssetCategory.INCOME: "income",
    AssetCategory.LIQUID: "liquid",
    AssetCategory.FINANCIAL: "financial",
    AssetCategory.REAL_ESTATE: "real_estate",
    AssetCategory.PROTECTION: "protection",
    AssetCategory.ALTERNATIVE: "alternative",
    AssetCategory.LIABILITIES: "liabilities",
}


class CategoryInfo(BaseModel):
    """Display metadata for a category."""

    model_config = ConfigDict(frozen=True)

    category: AssetCategory
    label: str
    description: str
    color: str
    suggestions: tuple[str, ...] = ()


CATEGORY_INFO: dict[AssetCategory, CategoryInfo] = {
    AssetCategory.INCOME: CategoryInfo(
        category=AssetCategory.INCOME,
        label="Income",
        description="Annual after-tax cash flow",
        color="#0ea5e9",
        suggestions=("After-tax salary (annual)", "Year-end bonus", "Side income"),
    ),
    AssetCategory.LIQUID: CategoryInfo(
        category=AssetCategory.LIQUID,
        label="Liquid Assets",
        description="Money available at any time",
        color="#10b981",
        suggestions=(
            "Mobile wallet balance",
            "Money market fund",
            "Bank demand deposit",
            "Certificate of deposit",
        ),
    ),
    AssetCategory.FINANCIAL: CategoryInfo(
        category=AssetCategory.FINANCIAL,
        label="Financial Investments",
        description="Money that makes money (bonds and gold included)",
        color="#3b82f6",
        suggestions=(
            "Brokerage account",
            "Treasury bonds / reverse repo",
            "Gold ETF",
            "Broad index fund",
            "Bank wealth product",
        ),
    ),
    AssetCategory.REAL_ESTATE: CategoryInfo(
        category=AssetCategory.REAL_ESTATE,
        label="Property & Tangibles",
        description="Fixed assets and things you use",
        color="#6366f1",
        suggestions=(
            "Primary residence",
            "Investment property",
            "Physical gold",
            "Private car",
        ),
    ),
    AssetCategory.PROTECTION: CategoryInfo(
        category=AssetCategory.PROTECTION,
        label="Protection & Pensions",
        description="Safety net and retirement money",
        color="#f43f5e",
        suggestions=(
            "Housing provident fund",
            "Social security account",
            "Whole life insurance",
            "Annuity",
            "Critical illness cash value",
        ),
    ),
    AssetCategory.ALTERNATIVE: CategoryInfo(
        category=AssetCategory.ALTERNATIVE,
        label="Alternative & Business",
        description="High risk and everything else",
        color="#f59e0b",
        suggestions=(
            "Private equity",
            "Cryptocurrency",
            "Money lent out",
            "Art collection",
        ),
    ),
    AssetCategory.LIABILITIES: CategoryInfo(
        category=AssetCategory.LIABILITIES,
        label="Liabilities",
        description="Mortgage, car loan, credit cards",
        color="#64748b",
        suggestions=("Mortgage", "Car loan", "Credit card bill", "Consumer loan"),
    ),
}


# =============================================================================
# LEDGER MODELS
# =============================================================================

class AssetItem(BaseModel):
    """
    A single holding or debt.

    `amount` is the current market value. It is not forced to be
    non-negative; LedgerValidator flags negative values for review instead.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: str = Field(
        default_factory=generate_item_id,
        description="Unique item id"
    )
    name: str = Field(
        default="",
        max_length=200,
        description="Human-readable name"
    )
    amount: float = Field(
        default=0.0,
        description="Current market value"
    )
    interest_rate: Optional[float] = Field(
        default=None,
        description="Estimated annual yield in percent (may be negative)"
    )
    principal: Optional[float] = Field(
        default=None,
        description="Originally invested amount; defaults to amount"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=1000,
    )

    @property
    def effective_principal(self) -> float:
        """Invested principal, falling back to the current amount."""
        return self.amount if self.principal is None else self.principal

    @property
    def unrealized_gain(self) -> float:
        return self.amount - self.effective_principal

    @property
    def unrealized_gain_pct(self) -> float:
        """Unrealized gain as a percentage of principal."""
        if self.effective_principal == 0:
            return 0.0
        return self.unrealized_gain / self.effective_principal * 100


class UserAssets(BaseModel):
    """
    The ledger: one ordered list of items per category.

    Missing categories in stored JSON default to empty lists, so older
    blobs without an `income` key still load.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    income: list[AssetItem] = Field(default_factory=list)
    liquid: list[AssetItem] = Field(default_factory=list)
    financial: list[AssetItem] = Field(default_factory=list)
    real_estate: list[AssetItem] = Field(default_factory=list)
    protection: list[AssetItem] = Field(default_factory=list)
    alternative: list[AssetItem] = Field(default_factory=list)
    liabilities: list[AssetItem] = Field(default_factory=list)

    def items_for(self, category: AssetCategory) -> list[AssetItem]:
        """Get the item list of a category."""
        return getattr(self, CATEGORY_FIELDS[AssetCategory(category)])

    def all_items(self) -> list[tuple[AssetCategory, AssetItem]]:
        """Every item paired with its category, in category order."""
        return [
            (category, item)
            for category in AssetCategory
            for item in self.items_for(category)
        ]

    def find(self, item_id: str) -> Optional[tuple[AssetCategory, AssetItem]]:
        for category, item in self.all_items():
            if item.id == item_id:
                return category, item
        return None

    def is_empty(self) -> bool:
        return not self.all_items()

    def to_storage_dict(self) -> dict:
        """Convert to the camelCase JSON shape used for persistence."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# HISTORY MODELS
# =============================================================================

class AssetSnapshot(BaseModel):
    """
    Point-in-time capture of the ledger and its totals.

    CRITICAL: Snapshots are immutable once created. A second save in the
    same month produces a new snapshot that replaces this one.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(default_factory=generate_item_id)
    timestamp: datetime = Field(
        ...,
        description="When the snapshot was taken"
    )
    month_key: str = Field(
        ...,
        validation_alias=AliasChoices("monthKey", "month_key", "dateStr"),
        pattern=r"^\d{4}\.\d{2}$",
        description="Calendar month as YYYY.MM"
    )
    net_worth: float
    total_assets: float
    total_liabilities: float
    data: UserAssets = Field(
        default_factory=UserAssets,
        description="Deep copy of the ledger at snapshot time"
    )

    @field_validator("timestamp")
    @classmethod
    def timestamp_is_local(cls, v: datetime) -> datetime:
        return to_local_naive(v)

    def to_storage_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class AssetHistoryItem(BaseModel):
    """One point of the net-worth trend."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    month_key: str
    value: float
    is_backfilled: bool = Field(
        default=False,
        description="True if no snapshot existed and the value was simulated"
    )


# =============================================================================
# DERIVED VIEW MODELS
# =============================================================================

class AllocationSlice(BaseModel):
    """Share of one asset category in total assets."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    category: AssetCategory
    label: str
    color: str
    amount: float
    percentage: float = Field(
        description="Percent of total assets, one decimal"
    )


class WealthProjection(BaseModel):
    """Net worth compounded forward at the portfolio's weighted return."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    annual_rate: float = Field(description="Weighted average annual return in percent")
    current_net_worth: float
    horizons: dict[int, float] = Field(
        default_factory=dict,
        description="Years from now -> projected net worth"
    )


class UserProfile(BaseModel):
    """The (single) local user."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    name: str = Field(..., min_length=1, max_length=100)
    joined_at: datetime = Field(default_factory=datetime.now)

    @field_validator("joined_at")
    @classmethod
    def joined_at_is_local(cls, v: datetime) -> datetime:
        return to_local_naive(v)
