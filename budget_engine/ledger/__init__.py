"""Ledger package: record lifecycle, lookups and settings."""

from budget_engine.ledger.operations import (
    DEFAULT_CATEGORIES,
    OTHER_LABEL,
    add_automatic_payment,
    add_category,
    add_expense,
    add_income,
    build_record,
    category_label,
    create_automatic_payment,
    create_category,
    create_expense,
    create_income,
    default_categories,
    delete_automatic_payment,
    delete_category,
    delete_expense,
    delete_income,
    find_category,
    replace_category,
    replace_expense,
    replace_income,
    update_automatic_payment,
    update_category,
    update_expense,
    update_income,
)
from budget_engine.ledger.payments import (
    due_payments,
    run_due_payments,
    step_due_date,
)
from budget_engine.ledger.settings_store import (
    DEFAULT_ALLOCATION,
    SettingsStore,
    default_settings,
    merge_settings,
    update_settings,
    validate_allocation,
)

__all__ = [
    "DEFAULT_ALLOCATION",
    "DEFAULT_CATEGORIES",
    "OTHER_LABEL",
    "SettingsStore",
    "add_automatic_payment",
    "add_category",
    "add_expense",
    "add_income",
    "build_record",
    "category_label",
    "create_automatic_payment",
    "create_category",
    "create_expense",
    "create_income",
    "default_categories",
    "default_settings",
    "delete_automatic_payment",
    "delete_category",
    "delete_expense",
    "delete_income",
    "due_payments",
    "find_category",
    "merge_settings",
    "replace_category",
    "replace_expense",
    "replace_income",
    "run_due_payments",
    "step_due_date",
    "update_automatic_payment",
    "update_category",
    "update_expense",
    "update_income",
    "update_settings",
    "validate_allocation",
]
