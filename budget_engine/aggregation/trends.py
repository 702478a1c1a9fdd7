"""
Trends and Period Reports

Multi-month views built on the single-month aggregation functions:
1. monthly_trend: income, expenses and balance for the trailing N months
2. period_report: totals and category breakdown for a calendar range
   (this month, last month, the last three months, this year)

All figures are in the snapshot's default currency.
"""

from datetime import date
from typing import Optional, Union

from budget_engine.aggregation.engine import ZERO, category_spending, monthly_totals, sum_converted
from budget_engine.aggregation.periods import (
    current_month,
    filter_by_dates,
    month_bounds,
    shift_month,
)
from budget_engine.currency.converter import RateTable
from budget_engine.models.finance import FinanceSnapshot
from budget_engine.models.reports import MonthlyTotals, PeriodReport, ReportPeriod


TREND_MONTHS = 6


def trailing_months(count: int, today: Optional[date] = None) -> list[str]:
    """Month keys for the last `count` months, oldest first, ending with today's."""
    latest = current_month(today)
    return [shift_month(latest, -offset) for offset in range(count - 1, -1, -1)]


def monthly_trend(
    snapshot: FinanceSnapshot,
    rates: RateTable,
    months: int = TREND_MONTHS,
    today: Optional[date] = None,
) -> list[MonthlyTotals]:
    """Per-month totals for the trailing months, oldest first."""
    currency = snapshot.settings.default_currency
    return [
        monthly_totals(snapshot.income, snapshot.expenses, month, currency, rates)
        for month in trailing_months(months, today)
    ]


def period_range(
    period: Union[ReportPeriod, str],
    today: Optional[date] = None,
) -> tuple[date, date]:
    """First and last day (inclusive) of a report period."""
    today = today or date.today()
    period = ReportPeriod(period)
    month = current_month(today)

    if period == ReportPeriod.LAST_MONTH:
        return month_bounds(shift_month(month, -1))
    if period == ReportPeriod.LAST_3_MONTHS:
        return month_bounds(shift_month(month, -2))[0], month_bounds(month)[1]
    if period == ReportPeriod.CURRENT_YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)
    return month_bounds(month)


def period_report(
    snapshot: FinanceSnapshot,
    rates: RateTable,
    period: Union[ReportPeriod, str] = ReportPeriod.CURRENT_MONTH,
    today: Optional[date] = None,
    category_id: Optional[str] = None,
) -> PeriodReport:
    """
    Income, expenses and spend per category over a report period.

    With `category_id`, only that category's expenses are counted; income
    is always the whole period's. The daily average divides expenses by
    the days elapsed so far, so a running month is not diluted by days
    still to come.
    """
    today = today or date.today()
    period = ReportPeriod(period)
    currency = snapshot.settings.default_currency
    start, end = period_range(period, today)

    expenses = filter_by_dates(snapshot.expenses, start, end)
    if category_id is not None:
        expenses = [expense for expense in expenses if expense.category_id == category_id]
    income = filter_by_dates(snapshot.income, start, end)

    total_expenses = sum_converted(expenses, currency, rates)
    elapsed_days = (min(today, end) - start).days + 1
    average = total_expenses / elapsed_days if elapsed_days > 0 else ZERO

    spending = category_spending(expenses, snapshot.categories, currency, rates)

    return PeriodReport(
        period=period,
        start=start.isoformat(),
        end=end.isoformat(),
        currency=currency,
        category_id=category_id,
        total_income=sum_converted(income, currency, rates),
        total_expenses=total_expenses,
        average_daily_spend=average,
        categories=[row for row in spending if row.spent > ZERO],
    )
