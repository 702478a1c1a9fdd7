"""Tests for periods, totals, spending and utilization."""

from datetime import date
from decimal import Decimal

import pytest

from budget_engine.aggregation import (
    OTHER_CATEGORY_ID,
    budget_utilization,
    category_spending,
    daily_totals,
    dashboard_stats,
    filter_by_date_range,
    filter_by_month,
    month_bounds,
    monthly_budget,
    monthly_totals,
    shift_month,
    week_bounds,
)
from budget_engine.ledger import create_category, create_expense, create_income
from budget_engine.models import AllocationBucket, FinanceSnapshot, TimePeriod


class TestPeriods:
    """Tests for month and rolling-window filters."""

    def test_month_bounds_inclusive(self):
        """Test first and last day of a month, leap year included."""
        assert month_bounds("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))

    def test_month_bounds_rejects_bad_key(self):
        """Test that malformed month keys raise."""
        with pytest.raises(ValueError):
            month_bounds("2024-6")

    def test_filter_by_month_includes_both_ends(self):
        """Test that first and last day are in, neighbours out."""
        records = [
            create_income(1, "2024-05-31"),
            create_income(2, "2024-06-01"),
            create_income(3, "2024-06-30T23:00:00Z"),
            create_income(4, "2024-07-01"),
        ]
        kept = filter_by_month(records, "2024-06")
        assert [record.amount for record in kept] == [Decimal("2"), Decimal("3")]

    def test_weekly_window_is_calendar_week(self):
        """Test that weekly covers Sunday to Saturday around today."""
        today = date(2024, 6, 19)  # Wednesday
        records = [
            create_income(1, "2024-06-13"),
            create_income(2, "2024-06-15"),
            create_income(3, "2024-06-16"),
            create_income(4, "2024-06-21"),
            create_income(5, "2024-06-22"),
            create_income(6, "2024-06-23"),
        ]
        kept = filter_by_date_range(records, TimePeriod.WEEKLY, today)
        assert [record.amount for record in kept] == [Decimal("3"), Decimal("4"), Decimal("5")]

    def test_week_bounds_on_sunday_and_saturday(self):
        """Test that the week edges map to themselves."""
        assert week_bounds(date(2024, 6, 16)) == (date(2024, 6, 16), date(2024, 6, 22))
        assert week_bounds(date(2024, 6, 22)) == (date(2024, 6, 16), date(2024, 6, 22))

    def test_shift_month_crosses_years(self):
        """Test month stepping across December and January."""
        assert shift_month("2024-01", -1) == "2023-12"
        assert shift_month("2023-11", 3) == "2024-02"
        assert shift_month("2024-06", 0) == "2024-06"

    def test_daily_and_monthly_windows(self):
        """Test daily (today only) and monthly (calendar month) windows."""
        today = date(2024, 6, 15)
        records = [create_income(1, "2024-06-01"), create_income(2, "2024-06-15")]
        assert len(filter_by_date_range(records, "daily", today)) == 1
        assert len(filter_by_date_range(records, "monthly", today)) == 2


class TestTotals:
    """Tests for monthly and daily totals."""

    def test_monthly_totals_convert_to_target(self, rates):
        """Test that income and expenses are converted before summing."""
        income = [create_income(1000, "2024-06-01"), create_income(110, "2024-06-02", currency="USD")]
        expenses = [create_expense("c", 55, "2024-06-03", currency="USD")]
        totals = monthly_totals(income, expenses, "2024-06", "EUR", rates)
        assert totals.total_income == Decimal("1100")
        assert totals.total_expenses == Decimal("50")
        assert totals.balance == Decimal("1050")

    def test_daily_totals_add_up_to_monthly(self, spending_snapshot, rates):
        """Test additivity: per-day totals sum to the month's totals."""
        snapshot = spending_snapshot
        days = daily_totals(snapshot.income, snapshot.expenses, "2024-06", "EUR", rates)
        totals = monthly_totals(snapshot.income, snapshot.expenses, "2024-06", "EUR", rates)

        assert len(days) == 30
        assert sum(day.total_income for day in days) == totals.total_income
        assert sum(day.total_expenses for day in days) == totals.total_expenses


class TestCategorySpending:
    """Tests for category_spending()."""

    def test_every_category_listed_largest_first(self, spending_snapshot, rates):
        """Test ordering and that unused categories still appear."""
        snapshot = spending_snapshot
        rows = category_spending(snapshot.expenses, snapshot.categories, "EUR", rates)

        assert [row.category.id for row in rows] == ["groceries", "dining", "education"]
        assert rows[0].spent == Decimal("100")
        assert rows[2].spent == Decimal("0")
        assert rows[2].percentage == Decimal("0")
        assert abs(sum(row.percentage for row in rows) - Decimal("100")) < Decimal("1e-20")

    def test_ties_keep_category_order(self, rates):
        """Test that the sort is stable for equal spend."""
        categories = [create_category(name, id=name) for name in ("a", "b", "c")]
        expenses = [create_expense("c", 10, "2024-06-01"), create_expense("a", 10, "2024-06-01")]
        rows = category_spending(expenses, categories, "EUR", rates)
        assert [row.category.id for row in rows] == ["a", "c", "b"]

    def test_dangling_spend_goes_to_other(self, rates):
        """Test that expenses on deleted categories are grouped as Other."""
        categories = [create_category("Food", id="food")]
        expenses = [
            create_expense("food", 10, "2024-06-01"),
            create_expense("deleted", 25, "2024-06-01"),
        ]
        rows = category_spending(expenses, categories, "EUR", rates)

        other = [row for row in rows if row.category.id == OTHER_CATEGORY_ID]
        assert len(other) == 1
        assert other[0].category.name == "Other"
        assert other[0].spent == Decimal("25")

    def test_no_other_without_dangling_spend(self, spending_snapshot, rates):
        """Test that Other only appears when needed."""
        snapshot = spending_snapshot
        rows = category_spending(snapshot.expenses, snapshot.categories, "EUR", rates)
        assert all(row.category.id != OTHER_CATEGORY_ID for row in rows)


class TestBudgetUtilization:
    """Tests for budget_utilization()."""

    def test_usd_expense_over_eur_limit(self, rates):
        """Test that 50 USD against a 45 EUR limit is just over budget."""
        category = create_category("Dining", limit=45, id="dining")
        expense = create_expense("dining", 50, "2024-06-10", currency="USD")

        spending = category_spending([expense], [category], "EUR", rates)
        (row,) = budget_utilization(spending, "EUR", rates)

        assert row.spent.quantize(Decimal("0.01")) == Decimal("45.45")
        assert Decimal("101") < row.utilization < Decimal("101.1")
        assert row.over_budget is True
        assert row.warning is True

    def test_warning_threshold(self, rates):
        """Test warning at 80% without being over budget."""
        category = create_category("Food", limit=100, id="food")
        spending = category_spending(
            [create_expense("food", 80, "2024-06-01")], [category], "EUR", rates
        )
        (row,) = budget_utilization(spending)
        assert row.warning is True
        assert row.over_budget is False

    def test_zero_limit_is_zero_utilization(self, rates):
        """Test that categories without a limit never divide by zero."""
        category = create_category("Food", limit=0, id="food")
        spending = category_spending(
            [create_expense("food", 80, "2024-06-01")], [category], "EUR", rates
        )
        (row,) = budget_utilization(spending)
        assert row.utilization == Decimal("0")
        assert row.over_budget is False

    def test_more_spend_never_lowers_utilization(self, rates):
        """Test monotonicity when an expense is added."""
        category = create_category("Food", limit=200, id="food")
        expenses = [create_expense("food", 50, "2024-06-01")]
        before = budget_utilization(category_spending(expenses, [category], "EUR", rates))
        expenses.append(create_expense("food", 1, "2024-06-02"))
        after = budget_utilization(category_spending(expenses, [category], "EUR", rates))
        assert after[0].utilization >= before[0].utilization

    def test_limit_converted_when_rates_given(self, rates):
        """Test that a USD limit is compared in the target currency."""
        category = create_category("Trip", limit=110, currency="USD", id="trip")
        spending = category_spending(
            [create_expense("trip", 50, "2024-06-01")], [category], "EUR", rates
        )
        (row,) = budget_utilization(spending, "EUR", rates)
        assert row.limit == Decimal("100")
        assert row.utilization == Decimal("50")


class TestDashboardViews:
    """Tests for dashboard_stats() and monthly_budget()."""

    def test_dashboard_stats(self, spending_snapshot, rates):
        """Test headline figures for the current month."""
        stats = dashboard_stats(spending_snapshot, rates, today=date(2024, 6, 25), top_n=2)

        assert stats.month == "2024-06"
        assert stats.monthly_income == Decimal("1000")
        assert stats.monthly_expenses == Decimal("130")
        assert stats.current_balance == Decimal("870")
        assert stats.savings_rate == Decimal("87")
        assert stats.budget_utilization == Decimal("13")
        assert [top.name for top in stats.top_categories] == ["Groceries", "Dining"]

    def test_dashboard_stats_without_income(self, rates):
        """Test that rates are 0 rather than dividing by zero."""
        stats = dashboard_stats(FinanceSnapshot(), rates, today=date(2024, 6, 1))
        assert stats.savings_rate == Decimal("0")
        assert stats.budget_utilization == Decimal("0")

    def test_monthly_budget_per_bucket(self, spending_snapshot, rates):
        """Test allocated vs spent for each bucket."""
        budget = monthly_budget(spending_snapshot, rates, month="2024-06")

        essentials = budget.bucket(AllocationBucket.ESSENTIALS)
        assert essentials.allocated == Decimal("500")
        assert essentials.spent == Decimal("100")
        assert essentials.category_count == 2

        fun = budget.bucket(AllocationBucket.FUN)
        assert fun.allocated == Decimal("300")
        assert fun.spent == Decimal("30")
        assert fun.remaining == Decimal("270")

    def test_dashboard_stats_top_zero(self, spending_snapshot, rates):
        """Test that an explicit top_n of 0 lists no categories."""
        stats = dashboard_stats(spending_snapshot, rates, today=date(2024, 6, 25), top_n=0)
        assert stats.top_categories == []

    def test_real_category_named_other_keeps_its_bucket(self, rates):
        """Test that only the synthetic row is left out of bucket spend."""
        snapshot = FinanceSnapshot(
            income=[create_income(1000, "2024-06-01")],
            categories=[
                create_category("Misc", id=OTHER_CATEGORY_ID,
                                allocation_bucket=AllocationBucket.FUN),
            ],
            expenses=[
                create_expense(OTHER_CATEGORY_ID, 40, "2024-06-02"),
                create_expense("deleted", 25, "2024-06-03"),
            ],
        )
        budget = monthly_budget(snapshot, rates, month="2024-06")

        fun = budget.bucket(AllocationBucket.FUN)
        assert fun.spent == Decimal("40")
        assert fun.category_count == 1
        assert budget.bucket(AllocationBucket.ESSENTIALS).spent == Decimal("0")
