"""
Engine Logging

DESIGN DECISION: Logging is structured (structlog) and local only.
There is no persisted event history: the snapshot's last_updated timestamp
is the only record of change.

Module code logs through get_logger(__name__). The host layer uses
EngineLogger, which names the events that matter to an operator:
recalculations, skipped recalculations, imports, saves.
"""

import logging
import sys
from typing import Optional

import structlog

from budget_engine.config import get_settings


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Arguments default to LogSettings (BUDGET_LOG_LEVEL, BUDGET_LOG_JSON_OUTPUT).
    """
    log_settings = get_settings().log
    level = (level or log_settings.level).upper()
    if json_output is None:
        json_output = log_settings.json_output

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger("budget_engine").setLevel(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class EngineLogger:
    """
    Named engine events for the host layer.

    Every method logs locally and never raises.
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._logger = logger or get_logger("budget_engine")

    def log_limits_recalculated(
        self,
        month: str,
        month_income: str,
        category_count: int,
        trigger: str,
    ) -> None:
        """Log a successful recalculation."""
        self._logger.info(
            "limits_recalculated",
            month=month,
            month_income=month_income,
            category_count=category_count,
            trigger=trigger,
        )

    def log_recalc_skipped(self, month: str, reason: Optional[str], trigger: str) -> None:
        """Log a recalculation that could not run."""
        self._logger.warning(
            "recalc_skipped",
            month=month,
            reason=reason,
            trigger=trigger,
        )

    def log_recalc_pending(self, reasons: list[str]) -> None:
        """Log a change that needs the user to confirm a recalculation."""
        self._logger.info("recalc_pending", reasons=reasons)

    def log_snapshot_saved(
        self,
        income_count: int,
        expense_count: int,
        category_count: int,
    ) -> None:
        self._logger.info(
            "snapshot_saved",
            income_count=income_count,
            expense_count=expense_count,
            category_count=category_count,
        )

    def log_import(self, accepted: bool) -> None:
        if accepted:
            self._logger.info("data_imported")
        else:
            self._logger.warning("data_import_failed")

    def log_data_cleared(self) -> None:
        self._logger.info("data_cleared")

    def log_rates_refreshed(self, codes: list[str]) -> None:
        self._logger.info("rates_refreshed", codes=codes)

    def log_payments_executed(self, expense_count: int, total: str) -> None:
        self._logger.info("automatic_payments_run", expense_count=expense_count, total=total)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self._logger.error(
            "engine_error",
            error_type=error_type,
            error_message=error_message,
            details=details or {},
        )
