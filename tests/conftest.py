"""Shared fixtures for budget engine tests."""

from decimal import Decimal

import pytest

from budget_engine.config import get_settings
from budget_engine.ledger import create_category, create_expense, create_income
from budget_engine.models import AllocationBucket, FinanceSnapshot


RATES = {"EUR": Decimal("1"), "USD": Decimal("1.1")}


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep settings and storage files local to each test."""
    monkeypatch.setenv("BUDGET_STORAGE_DATA_DIR", str(tmp_path / "data"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def rates():
    return dict(RATES)


@pytest.fixture
def june_snapshot():
    """Two essentials categories, one fun category, 2000 EUR income in June 2024."""
    return FinanceSnapshot(
        income=[create_income(2000, "2024-06-05", id="inc-1")],
        expenses=[],
        categories=[
            create_category("Rent", id="e1", allocation_bucket=AllocationBucket.ESSENTIALS),
            create_category("Groceries", id="e2", allocation_bucket=AllocationBucket.ESSENTIALS),
            create_category("Dining", id="f1", allocation_bucket=AllocationBucket.FUN),
        ],
    )


@pytest.fixture
def spending_snapshot():
    """June 2024 with income and a few expenses across categories."""
    return FinanceSnapshot(
        income=[create_income(1000, "2024-06-01", id="inc-1")],
        expenses=[
            create_expense("groceries", 60, "2024-06-03", id="exp-1"),
            create_expense("groceries", 40, "2024-06-20", id="exp-2"),
            create_expense("dining", 30, "2024-06-10", id="exp-3"),
        ],
        categories=[
            create_category("Groceries", limit=400, id="groceries"),
            create_category("Dining", limit=100, id="dining",
                            allocation_bucket=AllocationBucket.FUN),
            create_category("Education", limit=50, id="education"),
        ],
    )
