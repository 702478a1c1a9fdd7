"""Tests for persistence, migrations and rate sources."""

import json
import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from budget_engine.ledger import add_income, create_income
from budget_engine.models import AllocationBucket, CurrencyRate, FinanceSnapshot
from budget_engine.models.finance import SCHEMA_VERSION
from budget_engine.services import MockRateSource
from budget_engine.services.storage import (
    SNAPSHOT_KEY,
    InMemoryStorage,
    JsonFileStorage,
    StorageError,
    default_snapshot,
    migrate_snapshot,
)


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def saved(storage):
    snapshot = add_income(default_snapshot(), create_income(2000, "2024-06-01", id="i1"))
    return storage.save(snapshot)


class TestSnapshotPersistence:
    """Tests for load/save/export/import/clear."""

    def test_empty_storage_loads_defaults(self, storage):
        """Test that a new user starts with the default categories."""
        snapshot = storage.load()
        assert snapshot.income == []
        assert len(snapshot.categories) == 10
        assert snapshot.settings.budget_allocation.total == Decimal("100")

    def test_save_stamps_and_round_trips(self, storage):
        """Test that save returns a stamped copy that loads back."""
        snapshot = add_income(default_snapshot(), create_income(2000, "2024-06-01", id="i1"))
        old_stamp = snapshot.last_updated
        stored = storage.save(snapshot)

        assert stored is not snapshot
        assert stored.last_updated >= old_stamp
        loaded = storage.load()
        assert [income.id for income in loaded.income] == ["i1"]
        assert loaded.income[0].amount == Decimal("2000")

    def test_import_missing_expenses_is_rejected(self, storage, saved):
        """Test that an import without expenses leaves stored data untouched."""
        before = storage.export_data()
        assert storage.import_data('{"income":[],"categories":[]}') is False
        assert storage.export_data() == before
        assert [income.id for income in storage.load().income] == ["i1"]

    def test_import_invalid_json_is_rejected(self, storage, saved):
        """Test that unparseable text is rejected."""
        assert storage.import_data("not json") is False
        assert storage.import_data("[]") is False
        assert len(storage.load().income) == 1

    def test_import_replaces_snapshot(self, storage, saved):
        """Test that a valid payload replaces stored data."""
        payload = {
            "income": [{"id": "new", "amount": 10, "currency": "EUR", "date": "2024-07-01"}],
            "expenses": [],
            "categories": [],
        }
        assert storage.import_data(json.dumps(payload)) is True

        loaded = storage.load()
        assert [income.id for income in loaded.income] == ["new"]
        assert loaded.categories == []

    def test_import_without_categories_gets_defaults(self, storage):
        """Test that a missing categories key falls back to the defaults."""
        assert storage.import_data('{"income": [], "expenses": []}') is True
        assert len(storage.load().categories) == 10

    def test_export_is_pretty_camel_case(self, storage, saved):
        """Test export format."""
        exported = storage.export_data()
        assert '\n  "income"' in exported
        data = json.loads(exported)
        assert data["income"][0]["amount"] == 2000
        assert "lastUpdated" in data

    def test_clear_removes_everything(self, storage, saved):
        """Test that clear resets snapshot and rate cache."""
        custom = [CurrencyRate(code="EUR", rate=Decimal("1")), CurrencyRate(code="USD", rate=Decimal("2"))]
        storage.save_currency_rates(custom)
        storage.clear()

        assert storage.load().income == []
        assert len(storage.get_currency_rates()) == 7

    def test_corrupt_snapshot_loads_defaults(self, storage):
        """Test that unreadable stored text does not break load()."""
        storage._set(SNAPSHOT_KEY, "{oops")
        assert len(storage.load().categories) == 10


class TestRateCache:
    """Tests for the currency rate cache."""

    def test_defaults_without_cache(self, storage):
        """Test that the shipped table is served before any refresh."""
        rates = storage.get_currency_rates(now=NOW)
        assert [rate.code for rate in rates][:2] == ["EUR", "USD"]

    def test_fresh_cache_is_served(self, storage):
        """Test rates younger than the TTL."""
        custom = [CurrencyRate(code="EUR", rate=Decimal("1")), CurrencyRate(code="USD", rate=Decimal("1.2"))]
        storage.save_currency_rates(custom, now=NOW)

        rates = storage.get_currency_rates(now=NOW + timedelta(minutes=30))
        assert [(rate.code, rate.rate) for rate in rates] == [("EUR", Decimal("1")), ("USD", Decimal("1.2"))]

    def test_stale_cache_falls_back(self, storage):
        """Test rates older than the TTL."""
        custom = [CurrencyRate(code="USD", rate=Decimal("1.2"))]
        storage.save_currency_rates(custom, now=NOW)

        rates = storage.get_currency_rates(now=NOW + timedelta(hours=2))
        assert len(rates) == 7


class TestMigrations:
    """Tests for migrate_snapshot()."""

    @pytest.fixture
    def legacy_payload(self):
        return {
            "income": [
                {"id": "i1", "amount": 2000, "currency": "EUR", "date": "2024-06-01"},
                {"id": "bad", "amount": -5, "currency": "EUR", "date": "2024-06-01"},
            ],
            "expenses": [
                {"id": "e1", "categoryId": "c1", "amount": 20, "currency": "EUR", "date": "2024-06-02"},
                {"id": "e2", "amount": 20, "currency": "EUR", "date": "2024-06-02"},
            ],
            "categories": [
                {"id": "c1", "name": "Games", "icon": {"type": "component"}, "allocation": "fun", "limit": 50},
            ],
            "settings": {"defaultCurrency": "usd", "budgetBasisMonth": "June"},
        }

    def test_upgrades_legacy_bucket_and_icon(self, legacy_payload):
        """Test v1 categories: bucket key renamed, non-string icon replaced."""
        snapshot = migrate_snapshot(legacy_payload)
        (category,) = snapshot.categories
        assert category.allocation_bucket == AllocationBucket.FUN
        assert category.icon == "tag"
        assert snapshot.schema_version == SCHEMA_VERSION

    def test_skips_malformed_records(self, legacy_payload):
        """Test that invalid records are dropped and valid ones kept."""
        snapshot = migrate_snapshot(legacy_payload)
        assert [income.id for income in snapshot.income] == ["i1"]
        assert [expense.id for expense in snapshot.expenses] == ["e1"]

    def test_settings_merged_field_by_field(self, legacy_payload):
        """Test that valid settings fields survive and invalid ones reset."""
        settings = migrate_snapshot(legacy_payload).settings
        assert settings.default_currency == "USD"
        assert settings.budget_basis_month is None
        assert settings.budget_allocation.total == Decimal("100")
        assert settings.auto_calc_limits is None

    def test_partial_allocation_filled_from_defaults(self):
        """Test that a partial allocation keeps the other defaults."""
        snapshot = migrate_snapshot({
            "income": [],
            "expenses": [],
            "settings": {"budgetAllocation": {"essentials": 60}},
        })
        allocation = snapshot.settings.budget_allocation
        assert allocation.essentials == Decimal("60")
        assert allocation.fun == Decimal("30")

    def test_non_dict_gives_defaults(self):
        """Test that garbage yields the bootstrap snapshot."""
        snapshot = migrate_snapshot(["not", "a", "snapshot"])
        assert len(snapshot.categories) == 10
        assert snapshot.income == []

    def test_current_version_round_trips(self):
        """Test that an up-to-date snapshot migrates to itself."""
        snapshot = add_income(default_snapshot(), create_income(5, "2024-06-01", id="i1"))
        migrated = migrate_snapshot(json.loads(snapshot.to_json()))
        assert migrated.income == snapshot.income
        assert migrated.categories == snapshot.categories
        assert migrated.last_updated == snapshot.last_updated

    def test_automatic_payments_loaded(self):
        """Test that payments survive and malformed ones are skipped."""
        snapshot = migrate_snapshot({
            "income": [],
            "expenses": [],
            "automaticPayments": [
                {"id": "p1", "name": "Rent", "amount": 900, "categoryId": "1",
                 "frequency": "monthly", "nextDue": "2024-07-01", "timesExecuted": 2},
                {"id": "p2", "name": "Broken", "amount": 10, "categoryId": "1",
                 "frequency": "daily", "nextDue": "2024-07-01"},
            ],
        })
        (payment,) = snapshot.automatic_payments
        assert payment.id == "p1"
        assert payment.times_executed == 2
        assert payment.active is True
        assert migrate_snapshot({"income": [], "expenses": []}).automatic_payments == []


class TestJsonFileStorage:
    """Tests for JsonFileStorage."""

    def test_persists_across_instances(self, tmp_path):
        """Test that a second instance reads what the first wrote."""
        first = JsonFileStorage(tmp_path)
        first.save(add_income(default_snapshot(), create_income(10, "2024-06-01", id="i1")))

        assert (tmp_path / "finance_tracker_data.json").exists()
        loaded = JsonFileStorage(tmp_path).load()
        assert [income.id for income in loaded.income] == ["i1"]

    def test_missing_directory_loads_defaults(self, tmp_path):
        """Test that nothing is created until the first save."""
        storage = JsonFileStorage(tmp_path / "missing")
        assert len(storage.load().categories) == 10
        assert not (tmp_path / "missing").exists()

    def test_uses_configured_directory(self, tmp_path):
        """Test that BUDGET_STORAGE_DATA_DIR is the default location."""
        storage = JsonFileStorage()
        storage.save(FinanceSnapshot())
        assert (tmp_path / "data" / "finance_tracker_data.json").exists()

    def test_clear_removes_files(self, tmp_path):
        """Test that clear deletes stored files."""
        storage = JsonFileStorage(tmp_path)
        storage.save(FinanceSnapshot())
        storage.clear()
        assert not (tmp_path / "finance_tracker_data.json").exists()

    def test_write_failure_raises_storage_error(self, tmp_path):
        """Test that failed writes surface as StorageError after retrying."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        storage = JsonFileStorage(blocker, write_attempts=1)

        with pytest.raises(StorageError):
            storage.save(FinanceSnapshot())


class TestMockRateSource:
    """Tests for MockRateSource."""

    def test_jitter_within_bounds(self):
        """Test that every rate moves by at most the jitter and EUR stays 1."""
        source = MockRateSource(jitter=0.05, rng=random.Random(42))
        for original, fresh in zip(source.base_rates, source.refresh()):
            assert fresh.code == original.code
            if original.code == "EUR":
                assert fresh.rate == Decimal("1")
            else:
                assert abs(fresh.rate / original.rate - 1) <= Decimal("0.0501")

    def test_seeded_refresh_is_repeatable(self):
        """Test that the same seed gives the same table."""
        first = MockRateSource(rng=random.Random(7)).refresh()
        second = MockRateSource(rng=random.Random(7)).refresh()
        assert first == second
