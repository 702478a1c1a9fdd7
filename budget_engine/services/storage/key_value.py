"""
Key-Value Persistence

The dashboard persisted everything as three string values under fixed
keys. KeyValueStorage keeps that layout and implements the whole
PersistenceInterface on top of three primitives (_get/_set/_remove), so a
backend only has to say where strings live.

Keys:
    finance_tracker_data  - snapshot JSON (camelCase)
    currency_rates        - cached CurrencyRate list
    rates_timestamp       - epoch seconds when the rates were fetched
"""

import json
from abc import abstractmethod
from datetime import datetime
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from budget_engine.config import get_settings
from budget_engine.currency.converter import SUPPORTED_CURRENCIES
from budget_engine.errors import ImportFormatError
from budget_engine.log import get_logger
from budget_engine.models.finance import CurrencyRate, FinanceSnapshot, utc_now
from budget_engine.services.storage.interface import PersistenceInterface
from budget_engine.services.storage.migrations import default_snapshot, migrate_snapshot


logger = get_logger(__name__)

SNAPSHOT_KEY = "finance_tracker_data"
RATES_KEY = "currency_rates"
RATES_TIMESTAMP_KEY = "rates_timestamp"

_rate_list = TypeAdapter(list[CurrencyRate])


def default_rates() -> list[CurrencyRate]:
    return [rate.model_copy() for rate in SUPPORTED_CURRENCIES]


def parse_import_payload(json_data: str) -> dict[str, Any]:
    """
    Parse an exported payload, checking only the shape import relies on.

    Raises:
        ImportFormatError: If the text is not JSON or `income`/`expenses`
            are missing or not arrays
    """
    try:
        payload = json.loads(json_data)
    except (TypeError, ValueError) as e:
        raise ImportFormatError(f"Import is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise ImportFormatError("Import must be a JSON object")
    for key in ("income", "expenses"):
        if not isinstance(payload.get(key), list):
            raise ImportFormatError(f"Import must contain an array '{key}'")
    return payload


class KeyValueStorage(PersistenceInterface):
    """PersistenceInterface over a string key-value store."""

    def __init__(self, rates_ttl_seconds: Optional[int] = None):
        if rates_ttl_seconds is None:
            rates_ttl_seconds = get_settings().storage.rates_ttl_seconds
        self.rates_ttl_seconds = rates_ttl_seconds

    # =========================================================================
    # BACKEND PRIMITIVES
    # =========================================================================

    @abstractmethod
    def _get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def _set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def _remove(self, key: str) -> None:
        pass

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    def load(self) -> FinanceSnapshot:
        raw = self._get(SNAPSHOT_KEY)
        if raw is None:
            return default_snapshot()
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("snapshot_unreadable", key=SNAPSHOT_KEY)
            return default_snapshot()
        return migrate_snapshot(data)

    def save(self, snapshot: FinanceSnapshot) -> FinanceSnapshot:
        stamped = snapshot.model_copy(update={"last_updated": utc_now()})
        self._set(SNAPSHOT_KEY, stamped.to_json(indent=None))
        return stamped

    def export_data(self) -> str:
        return self.load().to_json(indent=2)

    def import_data(self, json_data: str) -> bool:
        try:
            payload = parse_import_payload(json_data)
        except ImportFormatError as e:
            logger.warning("import_rejected", reason=str(e))
            return False

        payload["lastUpdated"] = utc_now().isoformat()
        self._set(SNAPSHOT_KEY, json.dumps(payload))
        return True

    def clear(self) -> None:
        for key in (SNAPSHOT_KEY, RATES_KEY, RATES_TIMESTAMP_KEY):
            self._remove(key)

    # =========================================================================
    # RATE CACHE
    # =========================================================================

    def get_currency_rates(self, now: Optional[datetime] = None) -> list[CurrencyRate]:
        raw = self._get(RATES_KEY)
        stamp = self._get(RATES_TIMESTAMP_KEY)
        if raw is None or stamp is None:
            return default_rates()

        try:
            fetched_at = float(stamp)
        except ValueError:
            return default_rates()

        now = now or utc_now()
        if now.timestamp() - fetched_at >= self.rates_ttl_seconds:
            return default_rates()

        try:
            return _rate_list.validate_json(raw)
        except ValidationError:
            logger.warning("rate_cache_unreadable")
            return default_rates()

    def save_currency_rates(
        self,
        rates: list[CurrencyRate],
        now: Optional[datetime] = None,
    ) -> None:
        now = now or utc_now()
        self._set(RATES_KEY, _rate_list.dump_json(rates, by_alias=True).decode())
        self._set(RATES_TIMESTAMP_KEY, str(now.timestamp()))
