"""Allocation package: limit recalculation, presets, triggers, insights."""

from budget_engine.allocation.allocator import (
    INVALID_ALLOCATION,
    NO_INCOME,
    apply_recalculation,
    basis_month_income,
    bucket_pools,
    effective_percentages,
    recalc_category_limits,
    resolve_basis_month,
    round_limit,
    split_pools,
)
from budget_engine.allocation.insights import budget_insights
from budget_engine.allocation.presets import (
    CATEGORY_PRESETS,
    CategoryPreset,
    PresetSubcategory,
    add_preset_categories,
    get_preset,
    preset_limits,
    suggest_manual_limit,
    suggest_preset_limit,
)
from budget_engine.allocation.triggers import (
    ALLOCATION_CHANGED,
    INCOME_CHANGED,
    detect_recalc_trigger,
)

__all__ = [
    "ALLOCATION_CHANGED",
    "CATEGORY_PRESETS",
    "INCOME_CHANGED",
    "INVALID_ALLOCATION",
    "NO_INCOME",
    "CategoryPreset",
    "PresetSubcategory",
    "add_preset_categories",
    "apply_recalculation",
    "basis_month_income",
    "bucket_pools",
    "budget_insights",
    "detect_recalc_trigger",
    "effective_percentages",
    "get_preset",
    "preset_limits",
    "recalc_category_limits",
    "resolve_basis_month",
    "round_limit",
    "split_pools",
    "suggest_manual_limit",
    "suggest_preset_limit",
]
