"""
Budget insights: short observations derived from the current month.

Savings rate tiers:   >= 20 success, >= 10 info, >= 0 warning, < 0 warning
Utilization tiers:    > 90 warning, > 70 info (expenses as % of income)
Per category:         one warning for each category over its limit
"""

from datetime import date
from typing import Optional

from budget_engine.aggregation.engine import (
    budget_utilization,
    category_spending,
    dashboard_stats,
)
from budget_engine.aggregation.periods import filter_by_month
from budget_engine.currency.converter import RateTable, format_currency
from budget_engine.models.finance import FinanceSnapshot
from budget_engine.models.reports import BudgetInsight, InsightType


def budget_insights(
    snapshot: FinanceSnapshot,
    rates: RateTable,
    today: Optional[date] = None,
) -> list[BudgetInsight]:
    stats = dashboard_stats(snapshot, rates, today=today)
    insights = []

    rate = stats.savings_rate
    if rate >= 20:
        insights.append(BudgetInsight(
            type=InsightType.SUCCESS,
            title="Excellent savings",
            description=f"You are saving {rate:.1f}% of your income this month.",
        ))
    elif rate >= 10:
        insights.append(BudgetInsight(
            type=InsightType.INFO,
            title="Good savings",
            description=f"You are saving {rate:.1f}% of your income this month.",
            action="Try to push your savings rate above 20%.",
        ))
    elif rate >= 0:
        insights.append(BudgetInsight(
            type=InsightType.WARNING,
            title="Low savings",
            description=f"You are only saving {rate:.1f}% of your income this month.",
            action="Review your expenses.",
        ))
    else:
        insights.append(BudgetInsight(
            type=InsightType.WARNING,
            title="Spending more than you earn",
            description=f"Expenses exceed income by {abs(rate):.1f}% this month.",
            action="Review your expenses.",
        ))

    used = stats.budget_utilization
    if used > 90:
        insights.append(BudgetInsight(
            type=InsightType.WARNING,
            title="High budget utilization",
            description=f"You have spent {used:.1f}% of this month's income.",
            action="Monitor spending for the rest of the month.",
        ))
    elif used > 70:
        insights.append(BudgetInsight(
            type=InsightType.INFO,
            title="Moderate budget utilization",
            description=f"You have spent {used:.1f}% of this month's income.",
        ))

    currency = snapshot.settings.default_currency
    spending = category_spending(
        filter_by_month(snapshot.expenses, stats.month),
        snapshot.categories,
        currency,
        rates,
    )
    for row in budget_utilization(spending, currency, rates):
        if row.over_budget:
            overspend = format_currency(row.spent - row.limit, currency)
            insights.append(BudgetInsight(
                type=InsightType.WARNING,
                title=f"{row.category.name} is over budget",
                description=(
                    f"{row.category.name} is at {row.utilization:.0f}% of its limit "
                    f"({overspend} over)."
                ),
                action=f"Cut back on {row.category.name} or raise its limit.",
            ))

    return insights
