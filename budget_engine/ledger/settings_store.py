"""
Settings Store

Holds the single UserSettings instance and its bootstrap defaults.

DESIGN DECISION: validate_allocation is a helper for whoever edits the
allocation. The allocator never calls it; what happens to allocations
that do not sum to 100 is decided by the allocation policy in config.
"""

from decimal import Decimal
from typing import Any, Union

from budget_engine.ledger.operations import build_record
from budget_engine.models.finance import (
    BudgetAllocation,
    DashboardMode,
    FinanceSnapshot,
    UserSettings,
)


HUNDRED = Decimal("100")

DEFAULT_ALLOCATION = BudgetAllocation(
    essentials=Decimal("50"),
    investments=Decimal("20"),
    fun=Decimal("30"),
)


def default_settings() -> UserSettings:
    """Settings used when no snapshot exists yet."""
    return UserSettings(
        default_currency="EUR",
        mode=DashboardMode.SIMPLE,
        budget_allocation=DEFAULT_ALLOCATION.model_copy(),
        custom_allocation=False,
        auto_calc_limits=None,
        budget_basis_month=None,
    )


def validate_allocation(allocation: BudgetAllocation) -> bool:
    """Check that bucket percentages add up to exactly 100."""
    return allocation.total == HUNDRED


def merge_settings(settings: UserSettings, **changes: Any) -> UserSettings:
    """Field-merge changes into settings, re-validating the result."""
    return build_record(UserSettings, {**settings.model_dump(), **changes})


def update_settings(snapshot: FinanceSnapshot, **changes: Any) -> FinanceSnapshot:
    """Return a snapshot with merged settings."""
    return snapshot.model_copy(update={
        "settings": merge_settings(snapshot.settings, **changes),
    })


class SettingsStore:
    """
    Holder for one UserSettings instance.

    Each change replaces the held instance; instances themselves are
    never mutated, so references handed out earlier stay valid.
    """

    def __init__(self, settings: UserSettings | None = None):
        self._settings = settings or default_settings()

    @property
    def settings(self) -> UserSettings:
        return self._settings

    def update(self, **changes: Any) -> UserSettings:
        self._settings = merge_settings(self._settings, **changes)
        return self._settings

    def set_allocation(
        self,
        allocation: Union[BudgetAllocation, dict[str, Any]],
    ) -> bool:
        """
        Store a custom allocation.

        Returns False (and changes nothing) if it does not sum to 100.
        """
        if isinstance(allocation, dict):
            allocation = build_record(BudgetAllocation, allocation)
        if not validate_allocation(allocation):
            return False
        self.update(budget_allocation=allocation, custom_allocation=True)
        return True

    def reset_allocation(self) -> UserSettings:
        """Go back to the 50/20/30 default split."""
        return self.update(
            budget_allocation=DEFAULT_ALLOCATION.model_copy(),
            custom_allocation=False,
        )

    def set_custom_allocation(self, enabled: bool) -> UserSettings:
        """Toggle custom allocation; turning it off restores the defaults."""
        if not enabled:
            return self.reset_allocation()
        return self.update(custom_allocation=True)
