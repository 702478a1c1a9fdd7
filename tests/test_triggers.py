"""Tests for recalculation triggers."""

from budget_engine.allocation import ALLOCATION_CHANGED, INCOME_CHANGED, detect_recalc_trigger
from budget_engine.ledger import add_income, create_income, update_settings
from budget_engine.models import BudgetAllocation, FinanceSnapshot, RecalcMode


class TestDetectRecalcTrigger:
    """Tests for detect_recalc_trigger()."""

    def test_nothing_changed(self):
        """Test that identical snapshots need nothing."""
        snapshot = FinanceSnapshot()
        trigger = detect_recalc_trigger(snapshot, snapshot)
        assert trigger.mode == RecalcMode.NONE
        assert not trigger.should_prompt

    def test_income_change_prompts_by_default(self):
        """Test that with auto_calc_limits unset the user is asked."""
        before = FinanceSnapshot()
        after = add_income(before, create_income(100, "2024-06-01"))
        trigger = detect_recalc_trigger(before, after)
        assert trigger.mode == RecalcMode.MANUAL
        assert trigger.reasons == [INCOME_CHANGED]
        assert trigger.should_prompt

    def test_auto_mode(self):
        """Test that auto_calc_limits makes the trigger automatic."""
        before = update_settings(FinanceSnapshot(), auto_calc_limits=True)
        after = add_income(before, create_income(100, "2024-06-01"))
        assert detect_recalc_trigger(before, after).mode == RecalcMode.AUTO

    def test_allocation_change(self):
        """Test allocation changes, alone and together with income."""
        before = FinanceSnapshot()
        after = update_settings(
            before, budget_allocation=BudgetAllocation(essentials=40, investments=30, fun=30)
        )
        assert detect_recalc_trigger(before, after).reasons == [ALLOCATION_CHANGED]

        both = add_income(after, create_income(100, "2024-06-01"))
        assert detect_recalc_trigger(before, both).reasons == [INCOME_CHANGED, ALLOCATION_CHANGED]

    def test_other_settings_do_not_trigger(self):
        """Test that unrelated settings changes are ignored."""
        before = FinanceSnapshot()
        after = update_settings(before, mode="pro")
        assert detect_recalc_trigger(before, after).mode == RecalcMode.NONE
