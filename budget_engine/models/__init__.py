"""
Data Models Package

This package contains all Pydantic models used by the budget engine.
Every snapshot and report flowing through the engine conforms to these schemas.
"""

from budget_engine.models.finance import (
    BASE_CURRENCY,
    SCHEMA_VERSION,
    AllocationBucket,
    AutomaticPayment,
    BudgetAllocation,
    Category,
    CurrencyRate,
    DashboardMode,
    Expense,
    FinanceSnapshot,
    Income,
    PaymentFrequency,
    TimePeriod,
    UserSettings,
)
from budget_engine.models.reports import (
    BucketSummary,
    BudgetInsight,
    CategorySpending,
    CategoryUtilization,
    DailyTotals,
    DashboardStats,
    InsightType,
    MonthlyBudget,
    MonthlyTotals,
    PeriodReport,
    RecalcMode,
    RecalcResult,
    RecalcTrigger,
    ReportPeriod,
    TopCategory,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Snapshot models
    "BASE_CURRENCY",
    "SCHEMA_VERSION",
    "AllocationBucket",
    "AutomaticPayment",
    "BudgetAllocation",
    "Category",
    "CurrencyRate",
    "DashboardMode",
    "Expense",
    "FinanceSnapshot",
    "Income",
    "PaymentFrequency",
    "TimePeriod",
    "UserSettings",
    # Report models
    "BucketSummary",
    "BudgetInsight",
    "CategorySpending",
    "CategoryUtilization",
    "DailyTotals",
    "DashboardStats",
    "InsightType",
    "MonthlyBudget",
    "MonthlyTotals",
    "PeriodReport",
    "RecalcMode",
    "RecalcResult",
    "RecalcTrigger",
    "ReportPeriod",
    "TopCategory",
    "ValidationIssue",
    "ValidationResult",
]
