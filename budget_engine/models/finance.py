"""
Core Data Models for the Budget Engine

These models define the strict schemas for every snapshot the engine
reads or writes. They are designed to:
1. Reject impossible records at creation (non-positive amounts, negative limits)
2. Serialize to the dashboard's camelCase JSON format
3. Stay immutable in practice: engine functions copy, never mutate

DESIGN DECISION: Money and percentages are Decimal. Floats from JSON are
accepted and converted on validation.
"""

import re
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


SCHEMA_VERSION = 2
BASE_CURRENCY = "EUR"
MONTH_KEY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

_EXTENDED_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")

# Written as a JSON number, kept as Decimal in Python
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


def new_record_id() -> str:
    """Generate a unique record identifier."""
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_iso_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 date or date-time string.

    Accepts '2024-06-15', '2024-06-15T10:30:00' and '2024-06-15T10:30:00.000Z'.
    Raises ValueError if the string cannot be parsed.
    """
    return datetime.fromisoformat(value.strip())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AllocationBucket(str, Enum):
    """
    The three allocation buckets a spending category can belong to.

    Income is split across these by percentage, then each bucket's pool
    is split across its categories.
    """
    ESSENTIALS = "essentials"
    INVESTMENTS = "investments"
    FUN = "fun"


class DashboardMode(str, Enum):
    """Dashboard complexity mode."""
    SIMPLE = "simple"
    PRO = "pro"


class TimePeriod(str, Enum):
    """Rolling windows used to filter records."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class PaymentFrequency(str, Enum):
    """How often an automatic payment runs."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# =============================================================================
# BASE
# =============================================================================

class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Income(CamelModel):
    """A single income record."""

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Unique record ID"
    )
    amount: Money = Field(
        ...,
        gt=0,
        description="Amount received, in `currency`"
    )
    currency: str = Field(
        default=BASE_CURRENCY,
        min_length=1,
        max_length=10,
        description="Currency code of the amount"
    )
    date: str = Field(
        ...,
        description="ISO-8601 date or date-time"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500
    )

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        """
        Dates must parse. Extended strings ('2024-06-15...') are kept as
        stored; any other accepted form ('20240615') is rewritten to the
        extended one so that a record's month is always its first 7 characters.
        """
        try:
            parsed = parse_iso_datetime(v)
        except ValueError:
            raise ValueError(f"Invalid ISO-8601 date: {v!r}")
        if _EXTENDED_DATE.match(v):
            return v
        if "T" in v or " " in v:
            return parsed.isoformat()
        return parsed.date().isoformat()

    @property
    def occurred_at(self) -> datetime:
        return parse_iso_datetime(self.date)


class Expense(Income):
    """
    A single expense record.

    `category_id` should resolve to an existing Category, but nothing
    enforces it: deleted categories leave dangling references that the
    engine reports as "Other".
    """

    category_id: str = Field(
        ...,
        min_length=1,
        description="ID of the category this expense belongs to"
    )


class Category(CamelModel):
    """
    A spending category with a monthly limit.

    `icon` is a stable string key. Resolving it to something drawable is the
    presentation layer's job.
    """

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Unique category ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    icon: str = Field(
        default="tag",
        max_length=50,
        description="Icon key"
    )
    color: str = Field(
        default="#6B7280",
        max_length=30
    )
    limit: Money = Field(
        default=Decimal("0"),
        ge=0,
        description="Monthly spending limit in `currency`"
    )
    currency: str = Field(
        default=BASE_CURRENCY,
        min_length=1,
        max_length=10
    )
    allocation_bucket: AllocationBucket = Field(
        default=AllocationBucket.ESSENTIALS,
        description="Bucket whose pool funds this category"
    )

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator('allocation_bucket', mode='before')
    @classmethod
    def default_bucket(cls, v):
        """Unset buckets fall back to essentials."""
        if v is None or v == "":
            return AllocationBucket.ESSENTIALS
        return v


class AutomaticPayment(CamelModel):
    """
    A recurring payment that turns into an expense each time it falls due.

    `max_executions` of None means the payment runs until it is paused or
    deleted. Once it reaches its maximum it is deactivated and `next_due`
    keeps the date of the last run.
    """

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Unique payment ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100
    )
    amount: Money = Field(
        ...,
        gt=0,
        description="Amount charged each run, in the default currency"
    )
    category_id: str = Field(
        ...,
        min_length=1,
        description="Category of the generated expenses"
    )
    frequency: PaymentFrequency = Field(default=PaymentFrequency.MONTHLY)
    next_due: str = Field(
        ...,
        description="YYYY-MM-DD of the next run"
    )
    active: bool = Field(default=True)
    times_executed: int = Field(default=0, ge=0)
    max_executions: Optional[int] = Field(
        default=None,
        ge=1,
        description="Stop after this many runs; None runs indefinitely"
    )
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator('next_due')
    @classmethod
    def validate_next_due(cls, v: str) -> str:
        """Store the due date as a plain calendar date."""
        try:
            return parse_iso_datetime(v).date().isoformat()
        except ValueError:
            raise ValueError(f"Invalid due date: {v!r}")

    @property
    def finished(self) -> bool:
        return self.max_executions is not None and self.times_executed >= self.max_executions


# =============================================================================
# SETTINGS
# =============================================================================

class BudgetAllocation(CamelModel):
    """
    Percentage split of income across buckets.

    Intended to sum to 100, but the model does not enforce it. See
    SettingsStore.validate_allocation and the allocator's allocation policy.
    """

    essentials: Money = Field(default=Decimal("50"), ge=0)
    investments: Money = Field(default=Decimal("20"), ge=0)
    fun: Money = Field(default=Decimal("30"), ge=0)

    @property
    def total(self) -> Decimal:
        return self.essentials + self.investments + self.fun

    def percent_for(self, bucket: AllocationBucket) -> Decimal:
        """Get the percentage assigned to a bucket."""
        return getattr(self, AllocationBucket(bucket).value)

    def as_dict(self) -> dict[AllocationBucket, Decimal]:
        return {bucket: self.percent_for(bucket) for bucket in AllocationBucket}


class CurrencyRate(CamelModel):
    """Units of `code` per one unit of the base currency."""

    code: str = Field(..., min_length=1, max_length=10)
    name: str = Field(default="")
    rate: Money = Field(..., gt=0)
    symbol: str = Field(default="")

    @field_validator('code')
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.upper()


class UserSettings(CamelModel):
    """The single settings instance carried by a snapshot."""

    default_currency: str = Field(
        default=BASE_CURRENCY,
        min_length=1,
        max_length=10
    )
    mode: DashboardMode = Field(default=DashboardMode.SIMPLE)
    budget_allocation: BudgetAllocation = Field(default_factory=BudgetAllocation)
    custom_allocation: bool = Field(default=False)
    auto_calc_limits: Optional[bool] = Field(
        default=None,
        description="Recalculate limits automatically when income or allocation change"
    )
    budget_basis_month: Optional[str] = Field(
        default=None,
        pattern=MONTH_KEY_PATTERN,
        description="YYYY-MM month whose income drives recalculation"
    )

    @field_validator('default_currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


# =============================================================================
# SNAPSHOT
# =============================================================================

class FinanceSnapshot(CamelModel):
    """
    Everything the engine knows about one user's finances.

    Engine functions take a snapshot and return a new one; callers replace
    their copy with the returned value.
    """

    income: list[Income] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    automatic_payments: list[AutomaticPayment] = Field(default_factory=list)
    settings: UserSettings = Field(default_factory=UserSettings)
    last_updated: datetime = Field(default_factory=utc_now)
    schema_version: int = Field(default=SCHEMA_VERSION, ge=1)

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize with camelCase keys."""
        return self.model_dump_json(by_alias=True, indent=indent)
