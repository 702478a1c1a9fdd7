"""
Two-Stage Snapshot Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - STRUCTURE VALIDATION (raw payload):
- Top-level object with `income` and `expenses` arrays
- Every record has a positive numeric amount
- Expenses carry a category id
- Dates parse as ISO-8601
- This catches hand-edited and half-broken imports

STAGE 2 - SEMANTIC VALIDATION (typed snapshot):
- Dangling category references
- Allocation percentages that do not add up to 100
- Duplicate record ids
- Dates too far in the future
- Basis month with no income
- This catches data that loads but will produce surprising budgets

IMPORTANT: Validation NEVER fixes anything. import_data and load() stay
lenient; this is what a host runs to tell the user what is off.
"""

import json
from collections import Counter
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from budget_engine.aggregation.periods import filter_by_month, parse_record_date
from budget_engine.config import get_settings
from budget_engine.models.finance import FinanceSnapshot, parse_iso_datetime
from budget_engine.models.reports import ValidationIssue, ValidationResult
from budget_engine.services.storage.migrations import migrate_snapshot


HUNDRED = Decimal("100")

Payload = Union[FinanceSnapshot, dict, str]


def _positive_amount(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        return False
    try:
        return Decimal(str(value)) > 0
    except InvalidOperation:
        return False


def _parses_as_date(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parse_iso_datetime(value)
    except ValueError:
        return False
    return True


class SnapshotValidator:
    """
    Validates snapshots through a two-stage pipeline.

    Stage 1: Structure validation on the raw payload
    Stage 2: Semantic validation on the typed snapshot (only if stage 1 passes)
    """

    def __init__(self, future_date_tolerance_days: Optional[int] = None):
        if future_date_tolerance_days is None:
            future_date_tolerance_days = get_settings().budget.future_date_tolerance_days
        self.future_date_tolerance_days = future_date_tolerance_days

    def _validate_structure(self, payload: Any) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Structure validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not isinstance(payload, dict):
            issues.append(ValidationIssue(
                field="snapshot",
                issue_type="invalid_type",
                message="Data must be a JSON object",
                severity="error",
                suggested_fix="Export the data again from the dashboard",
            ))
            return False, issues

        for collection in ("income", "expenses"):
            records = payload.get(collection)
            if not isinstance(records, list):
                issues.append(ValidationIssue(
                    field=collection,
                    issue_type="missing",
                    message=f"'{collection}' must be present and be a list",
                    severity="error",
                ))
                continue

            for index, record in enumerate(records):
                path = f"{collection}[{index}]"
                if not isinstance(record, dict):
                    issues.append(ValidationIssue(
                        field=path,
                        issue_type="invalid_type",
                        message=f"{path} is not an object",
                        severity="error",
                    ))
                    continue

                if not _positive_amount(record.get("amount")):
                    issues.append(ValidationIssue(
                        field=f"{path}.amount",
                        issue_type="invalid_value",
                        message=f"{path} must have an amount greater than zero",
                        severity="error",
                        suggested_fix="Enter a positive amount",
                    ))

                if collection == "expenses":
                    category_id = record.get("categoryId", record.get("category_id"))
                    if not isinstance(category_id, str) or not category_id:
                        issues.append(ValidationIssue(
                            field=f"{path}.categoryId",
                            issue_type="missing",
                            message=f"{path} has no category",
                            severity="error",
                            suggested_fix="Pick a category for this expense",
                        ))

                if not _parses_as_date(record.get("date")):
                    issues.append(ValidationIssue(
                        field=f"{path}.date",
                        issue_type="invalid_value",
                        message=f"{path} has a date that cannot be read",
                        severity="error",
                        suggested_fix="Use a date like 2024-03-15",
                    ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        snapshot: FinanceSnapshot,
        today: date,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        # Duplicate ids break update/delete by id
        for collection in ("income", "expenses", "categories"):
            counts = Counter(record.id for record in getattr(snapshot, collection))
            for record_id, count in counts.items():
                if count > 1:
                    issues.append(ValidationIssue(
                        field=collection,
                        issue_type="duplicate_id",
                        message=f"Id '{record_id}' appears {count} times in {collection}",
                        severity="error",
                        suggested_fix="Remove or re-create the duplicated records",
                    ))

        category_ids = {category.id for category in snapshot.categories}
        dangling = sorted({
            expense.category_id
            for expense in snapshot.expenses
            if expense.category_id not in category_ids
        })
        for category_id in dangling:
            issues.append(ValidationIssue(
                field="expenses.categoryId",
                issue_type="dangling_reference",
                message=f"Expenses reference missing category '{category_id}' (shown as Other)",
                severity="warning",
                suggested_fix="Move these expenses to an existing category",
            ))

        total = snapshot.settings.budget_allocation.total
        if total != HUNDRED:
            issues.append(ValidationIssue(
                field="settings.budgetAllocation",
                issue_type="invalid_allocation",
                message=f"Budget allocation adds up to {total}%, not 100%",
                severity="warning",
                suggested_fix="Adjust the percentages so they total 100%",
            ))

        latest = today + timedelta(days=self.future_date_tolerance_days)
        for collection in ("income", "expenses"):
            for record in getattr(snapshot, collection):
                if parse_record_date(record.date) > latest:
                    issues.append(ValidationIssue(
                        field=f"{collection}.date",
                        issue_type="future_date",
                        message=f"Record '{record.id}' is dated in the future ({record.date})",
                        severity="warning",
                        suggested_fix="Please verify the date is correct",
                    ))

        basis_month = snapshot.settings.budget_basis_month
        if basis_month and not filter_by_month(snapshot.income, basis_month):
            issues.append(ValidationIssue(
                field="settings.budgetBasisMonth",
                issue_type="no_income",
                message=f"No income recorded for basis month {basis_month}",
                severity="info",
                suggested_fix="Add income for that month or pick another basis month",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, payload: Payload, today: Optional[date] = None) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            payload: A typed snapshot, a raw dict or exported JSON text
            today: Reference date for the future-date check

        Returns:
            ValidationResult with all issues found
        """
        today = today or date.today()

        if isinstance(payload, FinanceSnapshot):
            raw = payload.model_dump(mode="json", by_alias=True)
        elif isinstance(payload, str):
            try:
                raw = json.loads(payload)
            except ValueError:
                raw = None
        else:
            raw = payload

        structure_valid, issues = self._validate_structure(raw)

        semantic_valid = False
        if structure_valid:
            snapshot = payload if isinstance(payload, FinanceSnapshot) else migrate_snapshot(raw)
            semantic_valid, semantic_issues = self._validate_semantic(snapshot, today)
            issues.extend(semantic_issues)

        return ValidationResult(
            structure_valid=structure_valid,
            semantic_valid=semantic_valid,
            issues=issues,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Plain-text summary for showing to the user."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        if result.has_errors:
            lines.append("Some data needs fixing:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   - {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     ({issue.suggested_fix})")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   - {warning}")

        return "\n".join(lines)
