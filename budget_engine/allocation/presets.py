"""
Category Presets and Limit Suggestions

A preset is a themed group of sub-categories ("Transportation" -> fuel,
parking, ...) with typical monthly amounts. Adding a preset creates one
category per sub-category with a suggested limit:

    pool        = round(month income * bucket percent / 100)
    scale       = pool / sum(avg limits of the preset)
    suggestion  = round(avg limit * scale)

so the preset's categories together roughly use up their bucket's pool.
Without income the preset's average limits are used unchanged.

DESIGN DECISION: These suggestions only seed NEW categories. They are not
a second way of computing limits: once a recalculation runs, the allocator's
equal split is the only source of truth.
"""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from budget_engine.aggregation.periods import current_month
from budget_engine.allocation.allocator import basis_month_income, round_limit
from budget_engine.currency.converter import RateTable
from budget_engine.errors import PresetNotFoundError
from budget_engine.ledger.operations import create_category
from budget_engine.models.finance import (
    AllocationBucket,
    BudgetAllocation,
    Category,
    FinanceSnapshot,
)


ZERO = Decimal("0")
HUNDRED = Decimal("100")
MANUAL_SHARE_OF_FUN = Decimal("0.05")


class PresetSubcategory(BaseModel):
    name: str
    avg_limit: Decimal = Field(..., ge=0)


class CategoryPreset(BaseModel):
    """A themed group of categories funded by one bucket."""

    name: str
    icon: str
    color: str
    bucket: AllocationBucket
    subcategories: list[PresetSubcategory]

    @property
    def avg_total(self) -> Decimal:
        return sum((sub.avg_limit for sub in self.subcategories), ZERO)


def _preset(name, icon, color, bucket, subcategories) -> CategoryPreset:
    return CategoryPreset(
        name=name,
        icon=icon,
        color=color,
        bucket=bucket,
        subcategories=[
            PresetSubcategory(name=sub_name, avg_limit=Decimal(avg))
            for sub_name, avg in subcategories
        ],
    )


CATEGORY_PRESETS: dict[str, CategoryPreset] = {
    preset.name: preset for preset in [
        _preset("Bills & Essentials", "home", "blue", AllocationBucket.ESSENTIALS, [
            ("Rent/Mortgage", 800), ("Utilities", 120), ("Insurance", 150),
            ("Phone", 45), ("Internet", 50), ("Groceries", 400),
        ]),
        _preset("Transportation", "car", "green", AllocationBucket.ESSENTIALS, [
            ("Fuel/Gas", 120), ("Public Transport", 80), ("Car Maintenance", 100),
            ("Parking", 60), ("Uber/Taxi", 80),
        ]),
        _preset("Shopping & Personal", "shopping-cart", "purple", AllocationBucket.FUN, [
            ("Clothing", 150), ("Electronics", 200), ("Home & Garden", 100),
            ("Personal Care", 80), ("Gifts", 100),
        ]),
        _preset("Food & Dining", "utensils", "orange", AllocationBucket.FUN, [
            ("Restaurants", 200), ("Fast Food", 80), ("Coffee & Drinks", 60),
            ("Delivery", 120), ("Snacks & Treats", 50),
        ]),
        _preset("Entertainment", "gamepad", "pink", AllocationBucket.FUN, [
            ("Movies & Shows", 40), ("Gaming", 60), ("Sports & Events", 100),
            ("Hobbies", 80), ("Subscriptions", 50), ("Books & Media", 30),
        ]),
        _preset("Work & Business", "briefcase", "indigo", AllocationBucket.INVESTMENTS, [
            ("Office Supplies", 50), ("Software & Tools", 80), ("Business Meals", 100),
            ("Travel & Hotels", 200), ("Education & Courses", 150),
        ]),
        _preset("Health & Wellness", "heart", "red", AllocationBucket.ESSENTIALS, [
            ("Medical & Doctor", 100), ("Pharmacy & Meds", 60), ("Fitness & Gym", 50),
            ("Beauty & Spa", 80), ("Mental Health", 120),
        ]),
    ]
}


def get_preset(name: str) -> CategoryPreset:
    try:
        return CATEGORY_PRESETS[name]
    except KeyError:
        raise PresetNotFoundError(f"Unknown category preset: {name}") from None


def suggest_preset_limit(
    month_income: Decimal,
    allocation_percent: Decimal,
    avg_limit: Decimal,
    preset_avg_total: Decimal,
) -> Decimal:
    """Scale a sub-category's average limit to the user's bucket pool."""
    pool = round_limit(month_income * allocation_percent / HUNDRED)
    if month_income <= 0 or pool <= 0 or preset_avg_total <= 0:
        return avg_limit
    return round_limit(avg_limit * pool / preset_avg_total)


def suggest_manual_limit(month_income: Decimal, allocation: BudgetAllocation) -> Decimal:
    """Default limit for a hand-made category: 5% of the fun pool, 0 without income."""
    if month_income <= 0:
        return ZERO
    return round_limit(month_income * allocation.fun / HUNDRED * MANUAL_SHARE_OF_FUN)


def preset_limits(
    preset: CategoryPreset,
    month_income: Decimal,
    allocation: BudgetAllocation,
) -> dict[str, Decimal]:
    """Suggested limit for every sub-category of a preset."""
    percent = allocation.percent_for(preset.bucket)
    return {
        sub.name: suggest_preset_limit(month_income, percent, sub.avg_limit, preset.avg_total)
        for sub in preset.subcategories
    }


def add_preset_categories(
    snapshot: FinanceSnapshot,
    preset_name: str,
    selected: Optional[Sequence[str]] = None,
    month: Optional[str] = None,
    rates: Optional[RateTable] = None,
    today: Optional[date] = None,
) -> tuple[FinanceSnapshot, list[Category]]:
    """
    Create categories from a preset.

    Sub-categories whose name already exists (case-insensitive) are skipped.
    If `selected` is non-empty only those sub-categories are added.
    Limits are suggested from `month` income (current month by default).

    Returns:
        (new snapshot, categories that were added)

    Raises:
        PresetNotFoundError: if the preset does not exist
    """
    preset = get_preset(preset_name)
    settings = snapshot.settings
    existing = {category.name.lower() for category in snapshot.categories}
    wanted = set(selected or [])

    month = month or current_month(today)
    currency = settings.default_currency if rates is not None else None
    month_income = basis_month_income(snapshot.income, month, currency, rates)
    limits = preset_limits(preset, month_income, settings.budget_allocation)

    added = [
        create_category(
            name=sub.name,
            limit=limits[sub.name],
            currency=settings.default_currency,
            allocation_bucket=preset.bucket,
            icon=preset.icon,
            color=preset.color,
        )
        for sub in preset.subcategories
        if sub.name.lower() not in existing and (not wanted or sub.name in wanted)
    ]
    if not added:
        return snapshot, []

    new_snapshot = snapshot.model_copy(update={
        "categories": [*snapshot.categories, *added],
    })
    return new_snapshot, added
