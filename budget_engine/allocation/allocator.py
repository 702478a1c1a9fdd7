"""
Budget Allocator

Splits a basis month's income into bucket pools and derives per-category
limits from them.

ALGORITHM:
1. month = explicit basis month, else settings.budget_basis_month, else current month
2. month income = sum of income dated in that month
3. month income <= 0 -> failure, categories unchanged
4. pool[bucket] = month income * percent[bucket] / 100
5. group categories by bucket
6. each category in a bucket of N gets round(pool / N), the same value for all
7. buckets without categories leave their pool unused

DESIGN DECISION: The split is equal, not weighted by past spending, and
the algorithm does not know whether it was triggered automatically or
by the user. Running it twice on the same inputs gives the same limits,
and a failed run fails the same way every time.

The preset limit suggestions in presets.py are a separate formula and
must stay separate: they seed new categories, this recalculates all of them.
"""

from collections.abc import Iterable
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from budget_engine.aggregation.periods import current_month
from budget_engine.config import get_settings
from budget_engine.config.settings import AllocationPolicy, IncomeBasis
from budget_engine.currency.converter import RateTable, convert
from budget_engine.log import get_logger
from budget_engine.models.finance import (
    AllocationBucket,
    BudgetAllocation,
    Category,
    FinanceSnapshot,
    Income,
    UserSettings,
)
from budget_engine.models.reports import RecalcResult


logger = get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
WHOLE = Decimal("1")

NO_INCOME = "no_income"
INVALID_ALLOCATION = "invalid_allocation"


def round_limit(value: Decimal) -> Decimal:
    """Round to whole currency units, halves away from zero."""
    return value.quantize(WHOLE, rounding=ROUND_HALF_UP)


def resolve_basis_month(
    settings: UserSettings,
    basis_month: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    return basis_month or settings.budget_basis_month or current_month(today)


def basis_month_income(
    income: Iterable[Income],
    month: str,
    target_currency: Optional[str] = None,
    rates: Optional[RateTable] = None,
) -> Decimal:
    """
    Sum income whose date starts with the month key.

    Without a target currency and rate table the raw amounts are summed,
    whatever their currency.
    """
    records = [record for record in income if record.date.startswith(month)]
    if target_currency is None or rates is None:
        return sum((record.amount for record in records), ZERO)
    return sum(
        (convert(record.amount, record.currency, target_currency, rates) for record in records),
        ZERO,
    )


def effective_percentages(
    allocation: BudgetAllocation,
    policy: AllocationPolicy,
) -> Optional[dict[AllocationBucket, Decimal]]:
    """
    Apply the allocation policy to the stored percentages.

    - as_is: use them even if they do not sum to 100
    - normalize: scale them so they sum to 100
    - reject: use them only if they sum to exactly 100

    Returns None when the allocation cannot be used.
    """
    percents = allocation.as_dict()
    total = allocation.total

    if policy == "as_is":
        return percents
    if policy == "reject":
        return percents if total == HUNDRED else None
    if total <= 0:
        return None
    if total == HUNDRED:
        return percents
    return {bucket: percent * HUNDRED / total for bucket, percent in percents.items()}


def bucket_pools(
    month_income: Decimal,
    percents: dict[AllocationBucket, Decimal],
) -> dict[AllocationBucket, Decimal]:
    return {
        bucket: month_income * percents[bucket] / HUNDRED
        for bucket in AllocationBucket
    }


def split_pools(
    categories: Iterable[Category],
    pools: dict[AllocationBucket, Decimal],
) -> list[Category]:
    """Give every category an equal, rounded share of its bucket's pool."""
    categories = list(categories)
    counts = {bucket: 0 for bucket in AllocationBucket}
    for category in categories:
        counts[category.allocation_bucket] += 1

    shares = {
        bucket: round_limit(pools[bucket] / count)
        for bucket, count in counts.items()
        if count > 0
    }
    return [
        category.model_copy(update={"limit": shares[category.allocation_bucket]})
        for category in categories
    ]


def recalc_category_limits(
    snapshot: FinanceSnapshot,
    basis_month: Optional[str] = None,
    rates: Optional[RateTable] = None,
    policy: Optional[AllocationPolicy] = None,
    income_basis: Optional[IncomeBasis] = None,
    today: Optional[date] = None,
) -> RecalcResult:
    """
    Recalculate every category limit from a basis month's income.

    Args:
        snapshot: Current snapshot (not modified)
        basis_month: 'YYYY-MM' override for settings.budget_basis_month
        rates: Rate table. With income_basis 'converted', income is converted
               to the default currency; without rates it is summed raw.
        policy: Allocation policy override (defaults to BudgetSettings)
        income_basis: 'converted' or 'raw' override (defaults to BudgetSettings)
        today: Reference date for the current-month fallback

    Returns:
        RecalcResult. On failure `categories` is the unchanged input.
    """
    budget_settings = get_settings().budget
    policy = policy or budget_settings.allocation_policy
    income_basis = income_basis or budget_settings.income_basis

    settings = snapshot.settings
    month = resolve_basis_month(settings, basis_month, today)
    unchanged = list(snapshot.categories)

    target_currency = settings.default_currency if income_basis == "converted" else None
    month_income = basis_month_income(snapshot.income, month, target_currency, rates)

    if month_income <= 0:
        logger.debug("recalc_no_income", month=month)
        return RecalcResult(
            ok=False,
            month=month,
            month_income=month_income,
            categories=unchanged,
            reason=NO_INCOME,
        )

    percents = effective_percentages(settings.budget_allocation, policy)
    if percents is None:
        logger.debug(
            "recalc_invalid_allocation",
            month=month,
            total=str(settings.budget_allocation.total),
            policy=policy,
        )
        return RecalcResult(
            ok=False,
            month=month,
            month_income=month_income,
            categories=unchanged,
            reason=INVALID_ALLOCATION,
        )

    pools = bucket_pools(month_income, percents)
    return RecalcResult(
        ok=True,
        month=month,
        month_income=month_income,
        pools=pools,
        categories=split_pools(snapshot.categories, pools),
    )


def apply_recalculation(snapshot: FinanceSnapshot, result: RecalcResult) -> FinanceSnapshot:
    """Put recalculated categories into a snapshot; failures change nothing."""
    if not result.ok:
        return snapshot
    return snapshot.model_copy(update={"categories": list(result.categories)})
