"""Validation result models."""

from typing import Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Where the issue is, e.g. 'liquid[2].amount' or 'ids'"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'duplicate_id', 'negative_amount')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    item_id: Optional[str] = None
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of the two-stage ledger validation.

    Stage 1: Structural validation (ids, membership)
    Stage 2: Semantic validation (plausibility of values)
    """

    structure_valid: bool
    semantic_valid: bool
    is_valid: bool = Field(
        ...,
        description="True when nothing blocks saving"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
