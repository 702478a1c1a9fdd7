"""Configuration package."""

from budget_engine.config.settings import (
    BudgetSettings,
    LogSettings,
    RateSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "BudgetSettings",
    "LogSettings",
    "RateSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
