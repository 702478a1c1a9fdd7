"""
Aggregation Engine

DESIGN DECISION: Aggregation is pure and currency-normalized.
Every function takes plain collections (or a snapshot) plus an injected
rate table and returns a report model. Nothing here reads storage,
fetches rates or mutates its inputs.

Amounts are converted to the target currency before they are summed, so
a month with income in EUR and USD reports one consistent total.

Expenses pointing at a deleted category are never an error: they are
reported under a synthetic "Other" category.
"""

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Optional

from budget_engine.aggregation.periods import (
    current_month,
    filter_by_month,
    month_days,
    parse_record_date,
)
from budget_engine.config import get_settings
from budget_engine.currency.converter import RateTable, convert, to_decimal
from budget_engine.log import get_logger
from budget_engine.models.finance import (
    AllocationBucket,
    Category,
    Expense,
    FinanceSnapshot,
    Income,
)
from budget_engine.models.reports import (
    BucketSummary,
    CategorySpending,
    CategoryUtilization,
    DailyTotals,
    DashboardStats,
    MonthlyBudget,
    MonthlyTotals,
    TopCategory,
)


logger = get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

OTHER_CATEGORY_ID = "other"
OTHER_CATEGORY_NAME = "Other"


def other_category(currency: str) -> Category:
    """The stand-in for expenses whose category no longer exists."""
    return Category(
        id=OTHER_CATEGORY_ID,
        name=OTHER_CATEGORY_NAME,
        icon="tag",
        color="#9CA3AF",
        limit=ZERO,
        currency=currency,
    )


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return ZERO
    return part / whole * HUNDRED


def sum_converted(
    records: Iterable[Income],
    target_currency: str,
    rates: RateTable,
) -> Decimal:
    """Sum record amounts after converting each to the target currency."""
    return sum(
        (convert(record.amount, record.currency, target_currency, rates) for record in records),
        ZERO,
    )


# =============================================================================
# TOTALS
# =============================================================================

def monthly_totals(
    income: Iterable[Income],
    expenses: Iterable[Expense],
    month_key: str,
    target_currency: str,
    rates: RateTable,
) -> MonthlyTotals:
    """
    Total income, expenses and balance for one calendar month.

    Both lists are filtered to [month start, month end] inclusive and
    converted to `target_currency` before summing.
    """
    month_income = filter_by_month(income, month_key)
    month_expenses = filter_by_month(expenses, month_key)

    return MonthlyTotals(
        month=month_key,
        currency=target_currency.upper(),
        total_income=sum_converted(month_income, target_currency, rates),
        total_expenses=sum_converted(month_expenses, target_currency, rates),
    )


def daily_totals(
    income: Iterable[Income],
    expenses: Iterable[Expense],
    month_key: str,
    target_currency: str,
    rates: RateTable,
) -> list[DailyTotals]:
    """
    Per-day totals for every day of a month.

    Summing these gives the same figures as monthly_totals.
    """
    days = {day: [ZERO, ZERO] for day in month_days(month_key)}

    for record in filter_by_month(income, month_key):
        days[parse_record_date(record.date)][0] += convert(
            record.amount, record.currency, target_currency, rates
        )
    for record in filter_by_month(expenses, month_key):
        days[parse_record_date(record.date)][1] += convert(
            record.amount, record.currency, target_currency, rates
        )

    return [
        DailyTotals(day=day.isoformat(), total_income=totals[0], total_expenses=totals[1])
        for day, totals in days.items()
    ]


# =============================================================================
# CATEGORY SPENDING
# =============================================================================

def category_spending(
    expenses: Iterable[Expense],
    categories: Sequence[Category],
    target_currency: str,
    rates: RateTable,
) -> list[CategorySpending]:
    """
    Converted spend per category, largest first.

    Every category appears, even with no expenses (spent 0, percentage 0).
    `percentage` is the category's share of total spend. Ties keep the
    order of `categories`. Spend on unknown category ids is grouped under
    a trailing "Other" entry that only appears when such spend exists.
    """
    known_ids = {category.id for category in categories}
    spent: dict[str, Decimal] = {category.id: ZERO for category in categories}
    dangling = ZERO
    dangling_ids: set[str] = set()

    for expense in expenses:
        amount = convert(expense.amount, expense.currency, target_currency, rates)
        if expense.category_id in known_ids:
            spent[expense.category_id] += amount
        else:
            dangling += amount
            dangling_ids.add(expense.category_id)

    rows = [(category, spent[category.id], False) for category in categories]
    if dangling_ids:
        logger.debug(
            "dangling_category_reference",
            category_ids=sorted(dangling_ids),
            amount=str(dangling),
        )
        rows.append((other_category(target_currency.upper()), dangling, True))

    total = sum((amount for _, amount, _ in rows), ZERO)

    results = [
        CategorySpending(
            category=category,
            spent=amount,
            percentage=_percent(amount, total),
            unassigned=unassigned,
        )
        for category, amount, unassigned in rows
    ]
    # sorted() is stable, including with reverse=True
    return sorted(results, key=lambda row: row.spent, reverse=True)


def budget_utilization(
    spending: Iterable[CategorySpending],
    target_currency: Optional[str] = None,
    rates: Optional[RateTable] = None,
    warning_threshold: Optional[float] = None,
    over_budget_threshold: Optional[float] = None,
) -> list[CategoryUtilization]:
    """
    Compare each category's spend with its limit.

    utilization = spent / limit * 100 (0 when the limit is 0)
    warning     = utilization >= warning threshold (80 by default)
    over_budget = utilization > over-budget threshold (100 by default), derived

    When both `target_currency` and `rates` are given, each limit is first
    converted from the category's currency; otherwise limits are taken as-is.
    """
    budget_settings = get_settings().budget
    warn_at = to_decimal(
        budget_settings.warning_threshold if warning_threshold is None else warning_threshold
    )
    over_at = to_decimal(
        budget_settings.over_budget_threshold
        if over_budget_threshold is None
        else over_budget_threshold
    )

    report = []
    for row in spending:
        limit = row.category.limit
        if target_currency is not None and rates is not None:
            limit = convert(limit, row.category.currency, target_currency, rates)

        utilization = row.spent / limit * HUNDRED if limit > 0 else ZERO
        report.append(CategoryUtilization(
            category=row.category,
            spent=row.spent,
            limit=limit,
            utilization=utilization,
            warning=utilization >= warn_at,
            over_budget_threshold=over_at,
        ))
    return report


# =============================================================================
# DASHBOARD VIEWS
# =============================================================================

def dashboard_stats(
    snapshot: FinanceSnapshot,
    rates: RateTable,
    today: Optional[date] = None,
    top_n: Optional[int] = None,
) -> DashboardStats:
    """Headline figures for the current month in the default currency."""
    month = current_month(today)
    currency = snapshot.settings.default_currency
    if top_n is None:
        top_n = get_settings().budget.top_categories

    totals = monthly_totals(snapshot.income, snapshot.expenses, month, currency, rates)
    spending = category_spending(
        filter_by_month(snapshot.expenses, month),
        snapshot.categories,
        currency,
        rates,
    )

    return DashboardStats(
        month=month,
        currency=currency,
        current_balance=totals.balance,
        monthly_income=totals.total_income,
        monthly_expenses=totals.total_expenses,
        budget_utilization=_percent(totals.total_expenses, totals.total_income),
        savings_rate=_percent(totals.balance, totals.total_income),
        top_categories=[
            TopCategory(name=row.category.name, amount=row.spent, percentage=row.percentage)
            for row in spending[:top_n]
        ],
    )


def monthly_budget(
    snapshot: FinanceSnapshot,
    rates: RateTable,
    month: Optional[str] = None,
    today: Optional[date] = None,
) -> MonthlyBudget:
    """
    Allocated vs spent for each bucket in a month.

    Allocated = converted month income x bucket percentage.
    Spent = month spend of the bucket's categories. "Other" spend belongs
    to no bucket and is left out.
    """
    month = month or current_month(today)
    currency = snapshot.settings.default_currency
    allocation = snapshot.settings.budget_allocation

    income_total = sum_converted(filter_by_month(snapshot.income, month), currency, rates)
    spending = category_spending(
        filter_by_month(snapshot.expenses, month),
        snapshot.categories,
        currency,
        rates,
    )

    buckets = []
    for bucket in AllocationBucket:
        percent = allocation.percent_for(bucket)
        rows = [
            row for row in spending
            if not row.unassigned and row.category.allocation_bucket == bucket
        ]
        buckets.append(BucketSummary(
            bucket=bucket,
            percent=percent,
            allocated=income_total * percent / HUNDRED,
            spent=sum((row.spent for row in rows), ZERO),
            category_count=len(rows),
        ))

    return MonthlyBudget(
        month=month,
        currency=currency,
        total_income=income_total,
        buckets=buckets,
    )
