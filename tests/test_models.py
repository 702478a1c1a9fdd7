"""
Tests for Budget Engine

Test strategy:
1. Unit tests for models and pure engine functions
2. Integration tests for the service with in-memory storage
3. No network or real rate feeds (seeded mock source)
"""

import json
from decimal import Decimal

import pytest

from budget_engine.errors import InsufficientDataError
from budget_engine.models import (
    AllocationBucket,
    BudgetAllocation,
    Category,
    CategoryUtilization,
    Expense,
    FinanceSnapshot,
    Income,
    MonthlyTotals,
    RecalcResult,
    UserSettings,
    ValidationIssue,
    ValidationResult,
)


class TestLedgerModels:
    """Tests for income, expense and category models."""

    def test_income_creation(self):
        """Test Income model creation with generated id."""
        income = Income(amount=Decimal("2000"), date="2024-06-05", currency="eur")
        assert income.amount == Decimal("2000")
        assert income.currency == "EUR"
        assert income.id

    def test_income_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(ValueError):
            Income(amount=Decimal("0"), date="2024-06-05")
        with pytest.raises(ValueError):
            Income(amount=Decimal("-10"), date="2024-06-05")

    def test_income_rejects_unparseable_date(self):
        """Test that dates must be ISO-8601."""
        with pytest.raises(ValueError):
            Income(amount=Decimal("10"), date="05/06/2024")

    def test_income_accepts_datetime_with_zulu(self):
        """Test that date-times with a Z suffix parse and are kept as given."""
        income = Income(amount=Decimal("10"), date="2024-06-05T10:30:00Z")
        assert income.date == "2024-06-05T10:30:00Z"
        assert income.occurred_at.day == 5

    def test_basic_format_dates_are_rewritten(self):
        """Test that compact ISO dates are stored in the extended form."""
        assert Income(amount=Decimal("10"), date="20240615").date == "2024-06-15"
        assert Income(amount=Decimal("10"), date="20240615T103000").date == "2024-06-15T10:30:00"

    def test_expense_requires_category_id(self):
        """Test that an empty category id is rejected."""
        with pytest.raises(ValueError):
            Expense(amount=Decimal("5"), date="2024-06-05", category_id="")

    def test_expense_reads_camel_case(self):
        """Test that persisted camelCase keys populate fields."""
        expense = Expense.model_validate(
            {"categoryId": "1", "amount": 5, "date": "2024-06-05"}
        )
        assert expense.category_id == "1"

    def test_category_bucket_defaults_to_essentials(self):
        """Test that a missing bucket falls back to essentials."""
        category = Category.model_validate({"name": "Misc", "allocationBucket": None})
        assert category.allocation_bucket == AllocationBucket.ESSENTIALS

    def test_category_rejects_negative_limit(self):
        """Test that limits cannot be negative."""
        with pytest.raises(ValueError):
            Category(name="Misc", limit=Decimal("-1"))


class TestSettingsModels:
    """Tests for allocation and user settings."""

    def test_default_allocation_totals_100(self):
        """Test the 50/20/30 default split."""
        allocation = BudgetAllocation()
        assert allocation.total == Decimal("100")
        assert allocation.percent_for(AllocationBucket.FUN) == Decimal("30")

    def test_allocation_sum_not_enforced(self):
        """Test that the model accepts allocations that do not sum to 100."""
        allocation = BudgetAllocation(essentials=60, investments=30, fun=30)
        assert allocation.total == Decimal("120")

    def test_basis_month_pattern(self):
        """Test that the basis month must be YYYY-MM."""
        assert UserSettings(budget_basis_month="2024-06").budget_basis_month == "2024-06"
        with pytest.raises(ValueError):
            UserSettings(budget_basis_month="2024-13")

    def test_auto_calc_limits_unset_by_default(self):
        """Test that auto recalculation is opt-in."""
        assert UserSettings().auto_calc_limits is None


class TestSnapshot:
    """Tests for snapshot serialization."""

    def test_to_json_uses_camel_case_and_numbers(self):
        """Test that the wire format matches the dashboard's."""
        snapshot = FinanceSnapshot(
            expenses=[Expense(amount=Decimal("12.5"), date="2024-06-05", category_id="1")],
        )
        data = json.loads(snapshot.to_json())
        assert data["expenses"][0]["categoryId"] == "1"
        assert data["expenses"][0]["amount"] == 12.5
        assert "lastUpdated" in data
        assert data["settings"]["defaultCurrency"] == "EUR"

    def test_round_trip_through_json(self):
        """Test that a snapshot loads back from its own JSON."""
        snapshot = FinanceSnapshot(
            income=[Income(amount=Decimal("2000"), date="2024-06-05", id="i1")],
        )
        loaded = FinanceSnapshot.model_validate_json(snapshot.to_json())
        assert loaded.income[0].id == "i1"
        assert loaded.income[0].amount == Decimal("2000")


class TestReportModels:
    """Tests for derived report fields."""

    def test_monthly_totals_balance(self):
        """Test that balance is income minus expenses."""
        totals = MonthlyTotals(
            month="2024-06",
            currency="EUR",
            total_income=Decimal("1000"),
            total_expenses=Decimal("1200"),
        )
        assert totals.balance == Decimal("-200")

    def test_over_budget_is_derived_not_stored(self):
        """Test that over_budget comes from utilization and is not dumped."""
        row = CategoryUtilization(
            category=Category(name="Dining"),
            spent=Decimal("120"),
            limit=Decimal("100"),
            utilization=Decimal("120"),
            warning=True,
        )
        assert row.over_budget is True
        assert row.remaining == Decimal("-20")
        assert "over_budget" not in row.model_dump()

    def test_recalc_result_raise_for_failure(self):
        """Test that failed results can raise on request."""
        result = RecalcResult(ok=False, month="2024-06", reason="no_income")
        assert not result
        with pytest.raises(InsufficientDataError):
            result.raise_for_failure()


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            structure_valid=False,
            semantic_valid=False,
            issues=[
                ValidationIssue(
                    field="income[0].amount",
                    issue_type="invalid_value",
                    message="Amount must be greater than zero",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors
        assert result.error_count == 1
        assert not result.is_valid

    def test_validation_result_warnings_only(self):
        """Test result with only warnings."""
        result = ValidationResult(
            structure_valid=True,
            semantic_valid=True,
            issues=[
                ValidationIssue(
                    field="expenses.categoryId",
                    issue_type="dangling_reference",
                    message="Expenses reference missing category 'x'",
                    severity="warning",
                ),
            ],
        )
        assert not result.has_errors
        assert result.is_valid
        assert result.warnings == ["Expenses reference missing category 'x'"]

    def test_severity_must_be_known(self):
        """Test that unknown severities are rejected."""
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")
