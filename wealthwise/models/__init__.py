"""
Data Models Package

This package contains all Pydantic models used in WealthWise.
All data flowing through the system must conform to these schemas.
"""

from wealthwise.models.assets import (
    ASSET_CATEGORIES,
    CATEGORY_FIELDS,
    CATEGORY_INFO,
    AllocationSlice,
    AssetCategory,
    AssetHistoryItem,
    AssetItem,
    AssetSnapshot,
    CategoryInfo,
    UserAssets,
    UserProfile,
    WealthProjection,
    generate_item_id,
)
from wealthwise.models.goals import (
    AnalysisSource,
    ChatMessage,
    ChatRole,
    GoalAnalysisResult,
    GoalContext,
    GoalInputs,
    GoalType,
    GoalVerdict,
)
from wealthwise.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from wealthwise.models.validation import (
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Asset models
    "ASSET_CATEGORIES",
    "CATEGORY_FIELDS",
    "CATEGORY_INFO",
    "AllocationSlice",
    "AssetCategory",
    "AssetHistoryItem",
    "AssetItem",
    "AssetSnapshot",
    "CategoryInfo",
    "UserAssets",
    "UserProfile",
    "WealthProjection",
    "generate_item_id",
    # Goal models
    "AnalysisSource",
    "ChatMessage",
    "ChatRole",
    "GoalAnalysisResult",
    "GoalContext",
    "GoalInputs",
    "GoalType",
    "GoalVerdict",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
]
