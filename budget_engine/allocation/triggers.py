"""
Recalculation triggers.

Limits depend on income and on the allocation split. When either changes
between two snapshots, limits are stale and one of two things happens:
- auto_calc_limits is on: recalculate right away
- otherwise: ask the user, who may confirm or ignore it
"""

from budget_engine.models.finance import FinanceSnapshot
from budget_engine.models.reports import RecalcMode, RecalcTrigger


INCOME_CHANGED = "income_changed"
ALLOCATION_CHANGED = "allocation_changed"


def detect_recalc_trigger(
    previous: FinanceSnapshot,
    current: FinanceSnapshot,
) -> RecalcTrigger:
    """Compare two snapshots and decide whether limits need recalculating."""
    reasons = []
    if previous.income != current.income:
        reasons.append(INCOME_CHANGED)
    if previous.settings.budget_allocation != current.settings.budget_allocation:
        reasons.append(ALLOCATION_CHANGED)

    if not reasons:
        return RecalcTrigger(mode=RecalcMode.NONE)

    mode = RecalcMode.AUTO if current.settings.auto_calc_limits else RecalcMode.MANUAL
    return RecalcTrigger(mode=mode, reasons=reasons)
