"""Aggregation package: totals, spending breakdowns, utilization."""

from budget_engine.aggregation.engine import (
    OTHER_CATEGORY_ID,
    OTHER_CATEGORY_NAME,
    budget_utilization,
    category_spending,
    daily_totals,
    dashboard_stats,
    monthly_budget,
    monthly_totals,
    other_category,
    sum_converted,
)
from budget_engine.aggregation.periods import (
    current_month,
    filter_by_date_range,
    filter_by_dates,
    filter_by_month,
    in_month,
    month_bounds,
    parse_record_date,
    shift_month,
    week_bounds,
)
from budget_engine.aggregation.trends import (
    monthly_trend,
    period_range,
    period_report,
    trailing_months,
)

__all__ = [
    "OTHER_CATEGORY_ID",
    "OTHER_CATEGORY_NAME",
    "budget_utilization",
    "category_spending",
    "current_month",
    "daily_totals",
    "dashboard_stats",
    "filter_by_date_range",
    "filter_by_dates",
    "filter_by_month",
    "in_month",
    "month_bounds",
    "monthly_budget",
    "monthly_totals",
    "monthly_trend",
    "other_category",
    "parse_record_date",
    "period_range",
    "period_report",
    "shift_month",
    "sum_converted",
    "trailing_months",
    "week_bounds",
]
