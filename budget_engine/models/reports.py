"""
Report Models

Everything the engine returns that is not a snapshot: totals, spending
breakdowns, utilization, recalculation results, dashboard stats and
validation results.

These are computed values. None of them are persisted.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from budget_engine.errors import InsufficientDataError
from budget_engine.models.finance import (
    AllocationBucket,
    Category,
    utc_now,
)


# =============================================================================
# AGGREGATION RESULTS
# =============================================================================

class MonthlyTotals(BaseModel):
    """Income, expenses and balance for one calendar month."""

    month: str = Field(..., description="YYYY-MM")
    currency: str
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")

    @computed_field
    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expenses


class DailyTotals(BaseModel):
    """Income and expenses for one day."""

    day: str = Field(..., description="YYYY-MM-DD")
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")


class CategorySpending(BaseModel):
    """Converted spend for one category and its share of total spend."""

    category: Category
    spent: Decimal = Decimal("0")
    percentage: Decimal = Decimal("0")
    unassigned: bool = Field(
        default=False,
        description="True for the synthetic \"Other\" row of unknown category ids"
    )


class CategoryUtilization(BaseModel):
    """How much of a category's limit has been used."""

    category: Category
    spent: Decimal
    limit: Decimal
    utilization: Decimal = Field(
        ...,
        description="spent / limit * 100, or 0 when there is no limit"
    )
    warning: bool
    over_budget_threshold: Decimal = Field(default=Decimal("100"), exclude=True)

    @property
    def over_budget(self) -> bool:
        """Derived, never stored."""
        return self.utilization > self.over_budget_threshold

    @property
    def remaining(self) -> Decimal:
        return self.limit - self.spent


class BucketSummary(BaseModel):
    """Allocated vs spent for one bucket in a month."""

    bucket: AllocationBucket
    percent: Decimal
    allocated: Decimal
    spent: Decimal
    category_count: int = 0

    @property
    def remaining(self) -> Decimal:
        return self.allocated - self.spent


class MonthlyBudget(BaseModel):
    """Per-bucket budget picture for one month."""

    month: str
    currency: str
    total_income: Decimal
    buckets: list[BucketSummary] = Field(default_factory=list)

    def bucket(self, bucket: AllocationBucket) -> BucketSummary:
        for summary in self.buckets:
            if summary.bucket == bucket:
                return summary
        raise KeyError(bucket)


class ReportPeriod(str, Enum):
    """Calendar ranges a report can cover, relative to today."""
    CURRENT_MONTH = "current_month"
    LAST_MONTH = "last_month"
    LAST_3_MONTHS = "last_3_months"
    CURRENT_YEAR = "current_year"


class PeriodReport(BaseModel):
    """Totals and spending breakdown over a date range."""

    period: ReportPeriod
    start: str = Field(..., description="First day, YYYY-MM-DD")
    end: str = Field(..., description="Last day, YYYY-MM-DD")
    currency: str
    category_id: Optional[str] = Field(
        default=None,
        description="Expenses were limited to this category"
    )
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    average_daily_spend: Decimal = Field(
        default=Decimal("0"),
        description="Expenses divided by the days of the range elapsed so far"
    )
    categories: list[CategorySpending] = Field(
        default_factory=list,
        description="Categories with spend in the range, largest first"
    )

    @computed_field
    @property
    def net_savings(self) -> Decimal:
        return self.total_income - self.total_expenses


class TopCategory(BaseModel):
    name: str
    amount: Decimal
    percentage: Decimal


class DashboardStats(BaseModel):
    """Headline numbers for the current month."""

    month: str
    currency: str
    current_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    budget_utilization: Decimal = Field(
        ...,
        description="Expenses as a percentage of income"
    )
    savings_rate: Decimal = Field(
        ...,
        description="Balance as a percentage of income"
    )
    top_categories: list[TopCategory] = Field(default_factory=list)


# =============================================================================
# ALLOCATION RESULTS
# =============================================================================

class RecalcResult(BaseModel):
    """
    Outcome of a category limit recalculation.

    On failure `categories` is the unchanged input list, so callers can
    always use it.
    """

    ok: bool
    month: str
    month_income: Decimal = Decimal("0")
    pools: dict[AllocationBucket, Decimal] = Field(default_factory=dict)
    categories: list[Category] = Field(default_factory=list)
    reason: Optional[str] = Field(
        default=None,
        description="Why the recalculation did not run (e.g. 'no_income')"
    )

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_failure(self) -> None:
        """Raise InsufficientDataError if the recalculation failed."""
        if not self.ok:
            raise InsufficientDataError(
                f"Cannot recalculate limits for {self.month}: {self.reason}"
            )


class RecalcMode(str, Enum):
    """How a detected change should trigger recalculation."""
    AUTO = "auto"        # Run immediately
    MANUAL = "manual"    # Ask the user first
    NONE = "none"        # Nothing relevant changed


class RecalcTrigger(BaseModel):
    mode: RecalcMode
    reasons: list[str] = Field(default_factory=list)

    @property
    def should_prompt(self) -> bool:
        return self.mode == RecalcMode.MANUAL


class InsightType(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"


class BudgetInsight(BaseModel):
    """A short observation about the user's budget."""

    type: InsightType
    title: str
    description: str
    action: Optional[str] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field or record path with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'dangling_reference')"
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
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """
    Result of the two-stage snapshot validation.

    Stage 1: Structure (raw payload shape, record fields)
    Stage 2: Semantics (references, allocation, duplicates, dates)
    """

    validated_at: datetime = Field(default_factory=utc_now)
    structure_valid: bool
    semantic_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.structure_valid and self.semantic_valid

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
