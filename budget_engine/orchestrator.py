"""
Finance Service

This module ties together the pure engine, persistence, the rate source
and logging into the flows a dashboard needs:
1. Record changes (change -> detect trigger -> recalc or ask -> save)
2. Reports (dashboard stats, monthly budget, trends, period reports,
   insights, validation)
3. Automatic payments (run whatever fell due since the last run)
4. Data management (export, import, clear, rate refresh)

DESIGN DECISION: The service owns the current snapshot and is the only
place that talks to storage. Every change produces a new snapshot from
the engine and is saved straight away; the engine itself never saves.

Limits are recalculated automatically only when the user opted in
(auto_calc_limits). Otherwise a pending recalculation is recorded and the
user confirms or dismisses it. Limits never change behind their back.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from budget_engine.aggregation import dashboard_stats, monthly_budget, monthly_trend, period_report
from budget_engine.aggregation.periods import current_month
from budget_engine.aggregation.trends import TREND_MONTHS
from budget_engine.allocation import (
    add_preset_categories,
    apply_recalculation,
    basis_month_income,
    budget_insights,
    detect_recalc_trigger,
    recalc_category_limits,
    suggest_manual_limit,
)
from budget_engine.config import get_settings
from budget_engine.ledger import operations
from budget_engine.ledger.payments import run_due_payments
from budget_engine.ledger.settings_store import SettingsStore, update_settings
from budget_engine.log import EngineLogger, configure_logging
from budget_engine.models.finance import (
    AllocationBucket,
    AutomaticPayment,
    BudgetAllocation,
    Category,
    CurrencyRate,
    Expense,
    FinanceSnapshot,
    Income,
    PaymentFrequency,
)
from budget_engine.models.reports import (
    BudgetInsight,
    DashboardStats,
    MonthlyBudget,
    MonthlyTotals,
    PeriodReport,
    RecalcMode,
    RecalcResult,
    RecalcTrigger,
    ReportPeriod,
    ValidationResult,
)
from budget_engine.services.rates import MockRateSource, RateSource
from budget_engine.services.storage import JsonFileStorage, PersistenceInterface, StorageError
from budget_engine.validation import SnapshotValidator


Number = Union[Decimal, int, float, str]


class FinanceService:
    """
    Host for one user's finances.

    Flow for every change:
    1. Engine builds a new snapshot from the current one
    2. Compare income/allocation with the previous snapshot
    3. Auto mode: recalculate limits. Manual mode: record a pending trigger
    4. Save and keep the stamped copy as the current snapshot
    """

    def __init__(
        self,
        storage: Optional[PersistenceInterface] = None,
        rate_source: Optional[RateSource] = None,
        logger: Optional[EngineLogger] = None,
        validator: Optional[SnapshotValidator] = None,
    ):
        self._storage = storage or JsonFileStorage()
        self._rate_source = rate_source or MockRateSource()
        self._logger = logger or EngineLogger()
        self._validator = validator or SnapshotValidator()

        self._snapshot = self._storage.load()
        self._rates = self._storage.get_currency_rates()
        self._pending: Optional[RecalcTrigger] = None

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def snapshot(self) -> FinanceSnapshot:
        return self._snapshot

    @property
    def rates(self) -> list[CurrencyRate]:
        return list(self._rates)

    @property
    def pending_recalculation(self) -> Optional[RecalcTrigger]:
        """Trigger waiting for confirm_recalculation(), if any."""
        return self._pending

    def load(self) -> FinanceSnapshot:
        """Reload the snapshot and rate cache from storage."""
        self._snapshot = self._storage.load()
        self._rates = self._storage.get_currency_rates()
        return self._snapshot

    def _save(self, snapshot: FinanceSnapshot) -> FinanceSnapshot:
        try:
            self._snapshot = self._storage.save(snapshot)
        except StorageError as e:
            self._logger.log_error("StorageError", str(e))
            raise
        self._logger.log_snapshot_saved(
            income_count=len(self._snapshot.income),
            expense_count=len(self._snapshot.expenses),
            category_count=len(self._snapshot.categories),
        )
        return self._snapshot

    def _commit(self, snapshot: FinanceSnapshot) -> FinanceSnapshot:
        """Save a changed snapshot, handling any recalculation trigger."""
        trigger = detect_recalc_trigger(self._snapshot, snapshot)

        if trigger.mode is RecalcMode.AUTO:
            result = recalc_category_limits(snapshot, rates=self._rates)
            self._log_recalc(result, trigger="auto")
            snapshot = apply_recalculation(snapshot, result)
            self._pending = None
        elif trigger.mode is RecalcMode.MANUAL:
            reasons = list(self._pending.reasons) if self._pending else []
            reasons += [reason for reason in trigger.reasons if reason not in reasons]
            self._pending = RecalcTrigger(mode=RecalcMode.MANUAL, reasons=reasons)
            self._logger.log_recalc_pending(reasons)

        return self._save(snapshot)

    def _log_recalc(self, result: RecalcResult, trigger: str) -> None:
        if result.ok:
            self._logger.log_limits_recalculated(
                month=result.month,
                month_income=str(result.month_income),
                category_count=len(result.categories),
                trigger=trigger,
            )
        else:
            self._logger.log_recalc_skipped(result.month, result.reason, trigger)

    # =========================================================================
    # INCOME
    # =========================================================================

    def add_income(
        self,
        amount: Number,
        date: str,
        currency: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Income:
        income = operations.create_income(
            amount,
            date,
            currency=currency or self._snapshot.settings.default_currency,
            description=description,
        )
        self._commit(operations.add_income(self._snapshot, income))
        return income

    def update_income(self, income_id: str, **updates: Any) -> FinanceSnapshot:
        return self._commit(operations.update_income(self._snapshot, income_id, **updates))

    def delete_income(self, income_id: str) -> FinanceSnapshot:
        return self._commit(operations.delete_income(self._snapshot, income_id))

    # =========================================================================
    # EXPENSES
    # =========================================================================

    def add_expense(
        self,
        category_id: str,
        amount: Number,
        date: str,
        currency: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Expense:
        expense = operations.create_expense(
            category_id,
            amount,
            date,
            currency=currency or self._snapshot.settings.default_currency,
            description=description,
        )
        self._commit(operations.add_expense(self._snapshot, expense))
        return expense

    def update_expense(self, expense_id: str, **updates: Any) -> FinanceSnapshot:
        return self._commit(operations.update_expense(self._snapshot, expense_id, **updates))

    def delete_expense(self, expense_id: str) -> FinanceSnapshot:
        return self._commit(operations.delete_expense(self._snapshot, expense_id))

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def add_category(
        self,
        name: str,
        limit: Optional[Number] = None,
        allocation_bucket: Union[AllocationBucket, str] = AllocationBucket.ESSENTIALS,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Category:
        """
        Add a category. Without an explicit limit one is suggested from
        this month's income.
        """
        settings = self._snapshot.settings
        if limit is None:
            month_income = basis_month_income(
                self._snapshot.income,
                current_month(today),
                settings.default_currency,
                self._rates,
            )
            limit = suggest_manual_limit(month_income, settings.budget_allocation)

        category = operations.create_category(
            name,
            limit=limit,
            currency=settings.default_currency,
            allocation_bucket=allocation_bucket,
            icon=icon,
            color=color,
        )
        self._commit(operations.add_category(self._snapshot, category))
        return category

    def update_category(self, category_id: str, **updates: Any) -> FinanceSnapshot:
        return self._commit(operations.update_category(self._snapshot, category_id, **updates))

    def delete_category(self, category_id: str) -> FinanceSnapshot:
        """Delete a category. Its expenses stay and show up as "Other"."""
        return self._commit(operations.delete_category(self._snapshot, category_id))

    def add_preset(
        self,
        preset_name: str,
        selected: Optional[list[str]] = None,
        today: Optional[date] = None,
    ) -> list[Category]:
        """
        Add categories from a preset.

        Raises:
            PresetNotFoundError: if the preset does not exist
        """
        snapshot, added = add_preset_categories(
            self._snapshot,
            preset_name,
            selected=selected,
            rates=self._rates,
            today=today,
        )
        if added:
            self._commit(snapshot)
        return added

    # =========================================================================
    # AUTOMATIC PAYMENTS
    # =========================================================================

    def add_automatic_payment(
        self,
        name: str,
        amount: Number,
        category_id: str,
        next_due: str,
        frequency: Union[PaymentFrequency, str] = PaymentFrequency.MONTHLY,
        max_executions: Optional[int] = None,
    ) -> AutomaticPayment:
        payment = operations.create_automatic_payment(
            name,
            amount,
            category_id,
            next_due,
            frequency=frequency,
            max_executions=max_executions,
        )
        self._commit(operations.add_automatic_payment(self._snapshot, payment))
        return payment

    def set_payment_active(self, payment_id: str, active: bool) -> FinanceSnapshot:
        """Pause or resume a payment."""
        return self._commit(
            operations.update_automatic_payment(self._snapshot, payment_id, active=active)
        )

    def delete_automatic_payment(self, payment_id: str) -> FinanceSnapshot:
        return self._commit(operations.delete_automatic_payment(self._snapshot, payment_id))

    def run_due_payments(self, today: Optional[date] = None) -> list[Expense]:
        """Turn every payment due by today into expenses and save."""
        snapshot, expenses = run_due_payments(self._snapshot, today=today)
        if expenses:
            self._logger.log_payments_executed(
                expense_count=len(expenses),
                total=str(sum(expense.amount for expense in expenses)),
            )
            self._commit(snapshot)
        return expenses

    # =========================================================================
    # SETTINGS AND LIMITS
    # =========================================================================

    def update_settings(self, **changes: Any) -> FinanceSnapshot:
        return self._commit(update_settings(self._snapshot, **changes))

    def set_allocation(self, allocation: Union[BudgetAllocation, dict[str, Any]]) -> bool:
        """Store a custom allocation; False if it does not sum to 100."""
        store = SettingsStore(self._snapshot.settings)
        if not store.set_allocation(allocation):
            return False
        self._commit(self._snapshot.model_copy(update={"settings": store.settings}))
        return True

    def reset_allocation(self) -> FinanceSnapshot:
        store = SettingsStore(self._snapshot.settings)
        store.reset_allocation()
        return self._commit(self._snapshot.model_copy(update={"settings": store.settings}))

    def recalc_limits(
        self,
        basis_month: Optional[str] = None,
        today: Optional[date] = None,
        trigger: str = "manual",
    ) -> RecalcResult:
        """
        Recalculate all limits now and save them.

        A failed recalculation (no income, invalid allocation) changes
        nothing and leaves any pending trigger in place.
        """
        result = recalc_category_limits(
            self._snapshot,
            basis_month=basis_month,
            rates=self._rates,
            today=today,
        )
        self._log_recalc(result, trigger=trigger)
        if result.ok:
            self._pending = None
            self._save(apply_recalculation(self._snapshot, result))
        return result

    def confirm_recalculation(self, today: Optional[date] = None) -> RecalcResult:
        """Run the recalculation the user was asked about."""
        return self.recalc_limits(today=today, trigger="confirmed")

    def dismiss_recalculation(self) -> None:
        """Keep the current limits; forget the pending trigger."""
        self._pending = None

    # =========================================================================
    # REPORTS
    # =========================================================================

    def dashboard_stats(self, today: Optional[date] = None) -> DashboardStats:
        return dashboard_stats(self._snapshot, self._rates, today=today)

    def monthly_budget(
        self,
        month: Optional[str] = None,
        today: Optional[date] = None,
    ) -> MonthlyBudget:
        return monthly_budget(self._snapshot, self._rates, month=month, today=today)

    def monthly_trend(
        self,
        months: int = TREND_MONTHS,
        today: Optional[date] = None,
    ) -> list[MonthlyTotals]:
        return monthly_trend(self._snapshot, self._rates, months=months, today=today)

    def period_report(
        self,
        period: Union[ReportPeriod, str] = ReportPeriod.CURRENT_MONTH,
        today: Optional[date] = None,
        category_id: Optional[str] = None,
    ) -> PeriodReport:
        return period_report(
            self._snapshot,
            self._rates,
            period=period,
            today=today,
            category_id=category_id,
        )

    def insights(self, today: Optional[date] = None) -> list[BudgetInsight]:
        return budget_insights(self._snapshot, self._rates, today=today)

    def validate(self, today: Optional[date] = None) -> ValidationResult:
        return self._validator.validate(self._snapshot, today=today)

    # =========================================================================
    # DATA MANAGEMENT
    # =========================================================================

    def refresh_rates(self) -> list[CurrencyRate]:
        """Fetch fresh rates from the rate source and cache them."""
        rates = self._rate_source.refresh()
        self._storage.save_currency_rates(rates)
        self._rates = rates
        self._logger.log_rates_refreshed([rate.code for rate in rates])
        return self.rates

    def export_data(self) -> str:
        return self._storage.export_data()

    def import_data(self, json_data: str) -> bool:
        """Replace all data with an export. False leaves everything as it was."""
        accepted = self._storage.import_data(json_data)
        self._logger.log_import(accepted)
        if accepted:
            self._snapshot = self._storage.load()
            self._pending = None
        return accepted

    def clear_data(self) -> FinanceSnapshot:
        """Remove everything stored and start over from the defaults."""
        self._storage.clear()
        self._logger.log_data_cleared()
        self._pending = None
        return self.load()


def create_finance_service(
    storage: Optional[PersistenceInterface] = None,
    rate_source: Optional[RateSource] = None,
) -> FinanceService:
    """
    Factory function to create a configured service.

    Configures logging from LogSettings and uses JSON file storage in
    BUDGET_STORAGE_DATA_DIR unless a storage is given.
    """
    settings = get_settings()
    configure_logging(settings.log.level, settings.log.json_output)
    return FinanceService(
        storage=storage or JsonFileStorage(settings.storage.data_path),
        rate_source=rate_source,
    )
