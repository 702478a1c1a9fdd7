"""
Ledger Operations

Create, update and delete income, expenses and categories on a snapshot.

DESIGN DECISION: Every operation returns a NEW snapshot. The input is
never touched, so callers can keep the previous snapshot around (the
recalculation trigger compares old and new).

Updates are field merges that go through full model validation again, so
a merge can never produce a record with a non-positive amount or a
negative limit. Deleting a category does not touch its expenses.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError

from budget_engine.errors import RecordValidationError
from budget_engine.models.finance import (
    BASE_CURRENCY,
    AllocationBucket,
    AutomaticPayment,
    Category,
    Expense,
    FinanceSnapshot,
    Income,
    PaymentFrequency,
)


ModelT = TypeVar("ModelT", bound=BaseModel)

Number = Union[Decimal, int, float, str]

OTHER_LABEL = "Other"


# Bootstrap categories for a brand-new snapshot
DEFAULT_CATEGORIES: list[Category] = [
    Category(id="1", name="Groceries", icon="shopping-cart", color="#22C55E",
             limit=Decimal("400"), allocation_bucket=AllocationBucket.ESSENTIALS),
    Category(id="2", name="Transportation", icon="car", color="#3B82F6",
             limit=Decimal("150"), allocation_bucket=AllocationBucket.ESSENTIALS),
    Category(id="3", name="Utilities", icon="zap", color="#F59E0B",
             limit=Decimal("120"), allocation_bucket=AllocationBucket.ESSENTIALS),
    Category(id="4", name="Entertainment", icon="film", color="#EF4444",
             limit=Decimal("200"), allocation_bucket=AllocationBucket.FUN),
    Category(id="5", name="Dining Out", icon="utensils-crossed", color="#8B5CF6",
             limit=Decimal("180"), allocation_bucket=AllocationBucket.FUN),
    Category(id="6", name="Shopping", icon="shopping-bag", color="#EC4899",
             limit=Decimal("150"), allocation_bucket=AllocationBucket.FUN),
    Category(id="7", name="Healthcare", icon="heart", color="#10B981",
             limit=Decimal("100"), allocation_bucket=AllocationBucket.ESSENTIALS),
    Category(id="8", name="Education", icon="book-open", color="#06B6D4",
             limit=Decimal("80"), allocation_bucket=AllocationBucket.ESSENTIALS),
    Category(id="9", name="Savings & Investments", icon="trending-up", color="#84CC16",
             limit=Decimal("500"), allocation_bucket=AllocationBucket.INVESTMENTS),
    Category(id="10", name="Subscriptions", icon="repeat", color="#F97316",
             limit=Decimal("60"), allocation_bucket=AllocationBucket.FUN),
]


def default_categories() -> list[Category]:
    return [category.model_copy() for category in DEFAULT_CATEGORIES]


def build_record(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    """
    Validate a dict into a model, raising RecordValidationError on failure.
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise RecordValidationError(
            f"Invalid {model.__name__}: {problems}",
            errors=e.errors(include_url=False),
        ) from e


def _without_none(**fields: Any) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


# =============================================================================
# CONSTRUCTORS
# =============================================================================

def create_income(
    amount: Number,
    date: str,
    currency: str = BASE_CURRENCY,
    description: Optional[str] = None,
    id: Optional[str] = None,
) -> Income:
    """Create a validated income record (amount must be > 0)."""
    return build_record(Income, _without_none(
        id=id,
        amount=amount,
        date=date,
        currency=currency,
        description=description,
    ))


def create_expense(
    category_id: str,
    amount: Number,
    date: str,
    currency: str = BASE_CURRENCY,
    description: Optional[str] = None,
    id: Optional[str] = None,
) -> Expense:
    """Create a validated expense record (amount > 0, category id required)."""
    return build_record(Expense, _without_none(
        id=id,
        category_id=category_id,
        amount=amount,
        date=date,
        currency=currency,
        description=description,
    ))


def create_category(
    name: str,
    limit: Number = 0,
    currency: str = BASE_CURRENCY,
    allocation_bucket: Union[AllocationBucket, str] = AllocationBucket.ESSENTIALS,
    icon: Optional[str] = None,
    color: Optional[str] = None,
    id: Optional[str] = None,
) -> Category:
    """Create a validated category (limit must be >= 0)."""
    return build_record(Category, _without_none(
        id=id,
        name=name,
        limit=limit,
        currency=currency,
        allocation_bucket=allocation_bucket,
        icon=icon,
        color=color,
    ))


def create_automatic_payment(
    name: str,
    amount: Number,
    category_id: str,
    next_due: str,
    frequency: Union[PaymentFrequency, str] = PaymentFrequency.MONTHLY,
    max_executions: Optional[int] = None,
    id: Optional[str] = None,
) -> AutomaticPayment:
    """Create a validated automatic payment, active from `next_due`."""
    return build_record(AutomaticPayment, _without_none(
        id=id,
        name=name,
        amount=amount,
        category_id=category_id,
        next_due=next_due,
        frequency=frequency,
        max_executions=max_executions,
    ))


# =============================================================================
# GENERIC COLLECTION HELPERS
# =============================================================================

def _append(snapshot: FinanceSnapshot, field: str, record: BaseModel) -> FinanceSnapshot:
    items = list(getattr(snapshot, field))
    items.append(record)
    return snapshot.model_copy(update={field: items})


def _merge(
    snapshot: FinanceSnapshot,
    field: str,
    model: type[ModelT],
    record_id: str,
    updates: dict[str, Any],
) -> FinanceSnapshot:
    updates = {key: value for key, value in updates.items() if key != "id"}
    items = []
    for item in getattr(snapshot, field):
        if item.id == record_id:
            item = build_record(model, {**item.model_dump(), **updates})
        items.append(item)
    return snapshot.model_copy(update={field: items})


def _replace(snapshot: FinanceSnapshot, field: str, record: BaseModel) -> FinanceSnapshot:
    items = [
        record if item.id == record.id else item
        for item in getattr(snapshot, field)
    ]
    return snapshot.model_copy(update={field: items})


def _remove(snapshot: FinanceSnapshot, field: str, record_id: str) -> FinanceSnapshot:
    items = [item for item in getattr(snapshot, field) if item.id != record_id]
    return snapshot.model_copy(update={field: items})


# =============================================================================
# INCOME
# =============================================================================

def add_income(snapshot: FinanceSnapshot, income: Income) -> FinanceSnapshot:
    return _append(snapshot, "income", income)


def update_income(snapshot: FinanceSnapshot, income_id: str, **updates: Any) -> FinanceSnapshot:
    """Merge fields into an income record. Unknown ids leave the snapshot as is."""
    return _merge(snapshot, "income", Income, income_id, updates)


def replace_income(snapshot: FinanceSnapshot, income: Income) -> FinanceSnapshot:
    return _replace(snapshot, "income", income)


def delete_income(snapshot: FinanceSnapshot, income_id: str) -> FinanceSnapshot:
    return _remove(snapshot, "income", income_id)


# =============================================================================
# EXPENSES
# =============================================================================

def add_expense(snapshot: FinanceSnapshot, expense: Expense) -> FinanceSnapshot:
    return _append(snapshot, "expenses", expense)


def update_expense(snapshot: FinanceSnapshot, expense_id: str, **updates: Any) -> FinanceSnapshot:
    """Merge fields into an expense. Unknown ids leave the snapshot as is."""
    return _merge(snapshot, "expenses", Expense, expense_id, updates)


def replace_expense(snapshot: FinanceSnapshot, expense: Expense) -> FinanceSnapshot:
    return _replace(snapshot, "expenses", expense)


def delete_expense(snapshot: FinanceSnapshot, expense_id: str) -> FinanceSnapshot:
    return _remove(snapshot, "expenses", expense_id)


# =============================================================================
# CATEGORIES
# =============================================================================

def add_category(snapshot: FinanceSnapshot, category: Category) -> FinanceSnapshot:
    return _append(snapshot, "categories", category)


def update_category(snapshot: FinanceSnapshot, category_id: str, **updates: Any) -> FinanceSnapshot:
    """Merge fields into a category. Unknown ids leave the snapshot as is."""
    return _merge(snapshot, "categories", Category, category_id, updates)


def replace_category(snapshot: FinanceSnapshot, category: Category) -> FinanceSnapshot:
    return _replace(snapshot, "categories", category)


def delete_category(snapshot: FinanceSnapshot, category_id: str) -> FinanceSnapshot:
    """Remove a category. Its expenses stay and become "Other" spend."""
    return _remove(snapshot, "categories", category_id)


# =============================================================================
# AUTOMATIC PAYMENTS
# =============================================================================

def add_automatic_payment(snapshot: FinanceSnapshot, payment: AutomaticPayment) -> FinanceSnapshot:
    return _append(snapshot, "automatic_payments", payment)


def update_automatic_payment(
    snapshot: FinanceSnapshot,
    payment_id: str,
    **updates: Any,
) -> FinanceSnapshot:
    """Merge fields into a payment (pause with active=False). Unknown ids are ignored."""
    return _merge(snapshot, "automatic_payments", AutomaticPayment, payment_id, updates)


def delete_automatic_payment(snapshot: FinanceSnapshot, payment_id: str) -> FinanceSnapshot:
    """Remove a payment. Expenses it already generated stay."""
    return _remove(snapshot, "automatic_payments", payment_id)


# =============================================================================
# LOOKUP
# =============================================================================

def find_category(categories: Sequence[Category], category_id: str) -> Optional[Category]:
    for category in categories:
        if category.id == category_id:
            return category
    return None


def category_label(categories: Sequence[Category], category_id: str) -> str:
    """Display name for a category id; dangling ids read as "Other"."""
    category = find_category(categories, category_id)
    return category.name if category else OTHER_LABEL
