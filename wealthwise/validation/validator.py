"""
Two-Stage Ledger Validation

DESIGN DECISION: A ledger is checked in two distinct stages before it is
saved:

STAGE 1 - STRUCTURAL VALIDATION:
- Every item has a non-blank id
- Ids are unique across the whole ledger (mutations look items up by id)
- Failures here are errors and block the save

STAGE 2 - SEMANTIC VALIDATION:
- Negative amounts or principals
- Implausible yields
- Unnamed items
- Findings here are warnings; the save goes ahead

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from collections import Counter
from typing import Optional

from wealthwise.config import AppSettings, get_settings
from wealthwise.engine.ledger import LedgerError
from wealthwise.models.assets import AssetCategory, UserAssets
from wealthwise.models.validation import ValidationIssue, ValidationResult


class LedgerValidationError(LedgerError):
    """Raised when a ledger fails structural validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"Ledger failed validation: {messages}")


def _item_path(category: AssetCategory, index: int, attr: str) -> str:
    return f"{category.value}[{index}].{attr}"


class LedgerValidator:
    """
    Validates a ledger through a two-stage pipeline.

    Stage 2 only runs when stage 1 passes.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_structure(
        self,
        ledger: UserAssets,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Structural validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        for category in AssetCategory:
            for index, item in enumerate(ledger.items_for(category)):
                if not item.id or not item.id.strip():
                    issues.append(ValidationIssue(
                        field=_item_path(category, index, "id"),
                        issue_type="missing_id",
                        message=f"Item {index + 1} in {category.value} has no id",
                        severity="error",
                        suggested_fix="Re-add the item so it gets a generated id",
                    ))

        counts = Counter(item.id for _, item in ledger.all_items() if item.id)
        for item_id, count in counts.items():
            if count > 1:
                issues.append(ValidationIssue(
                    field="ids",
                    issue_type="duplicate_id",
                    message=f"Id '{item_id}' is used by {count} items",
                    severity="error",
                    item_id=item_id,
                    suggested_fix="Give each item its own id",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        ledger: UserAssets,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        max_rate = self._settings.max_reasonable_rate_pct

        for category in AssetCategory:
            for index, item in enumerate(ledger.items_for(category)):
                label = item.name or f"Item {index + 1} in {category.value}"

                if not item.name:
                    issues.append(ValidationIssue(
                        field=_item_path(category, index, "name"),
                        issue_type="missing_name",
                        message=f"Item {index + 1} in {category.value} has no name",
                        severity="warning",
                        item_id=item.id,
                        suggested_fix="Name the item so it can be recognised later",
                    ))

                if item.amount < 0:
                    issues.append(ValidationIssue(
                        field=_item_path(category, index, "amount"),
                        issue_type="negative_amount",
                        message=f"{label} has a negative amount ({item.amount:,.2f})",
                        severity="warning",
                        item_id=item.id,
                        suggested_fix=(
                            "Record debts as positive amounts under liabilities"
                            if not category.is_liability
                            else "Liabilities are entered as positive amounts"
                        ),
                    ))

                if item.interest_rate is not None and abs(item.interest_rate) > max_rate:
                    issues.append(ValidationIssue(
                        field=_item_path(category, index, "interestRate"),
                        issue_type="implausible_rate",
                        message=f"{label} has an unusual yield of {item.interest_rate}%",
                        severity="warning",
                        item_id=item.id,
                        suggested_fix="Rates are annual percentages, e.g. 3.5 for 3.5%",
                    ))

                if item.principal is not None and item.principal < 0:
                    issues.append(ValidationIssue(
                        field=_item_path(category, index, "principal"),
                        issue_type="negative_principal",
                        message=f"{label} has a negative principal ({item.principal:,.2f})",
                        severity="warning",
                        item_id=item.id,
                    ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, ledger: UserAssets) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        structure_valid, structure_issues = self._validate_structure(ledger)
        all_issues.extend(structure_issues)

        semantic_valid = False
        if structure_valid:
            semantic_valid, semantic_issues = self._validate_semantic(ledger)
            all_issues.extend(semantic_issues)

        warnings = [
            issue.message for issue in all_issues if issue.severity == "warning"
        ]

        return ValidationResult(
            structure_valid=structure_valid,
            semantic_valid=semantic_valid,
            is_valid=structure_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def validate_or_raise(self, ledger: UserAssets) -> ValidationResult:
        """Validate and raise LedgerValidationError on blocking issues."""
        result = self.validate(ledger)
        if not result.is_valid:
            raise LedgerValidationError(result)
        return result

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show to non-technical users.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if not result.structure_valid:
            lines.append("❌ The ledger cannot be saved:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please double-check the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
