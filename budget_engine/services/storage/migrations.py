"""
Snapshot Migrations

Persisted snapshots may come from older versions, hand edits or imports
that were only checked for the presence of `income` and `expenses`.
migrate_snapshot turns any of them into a valid FinanceSnapshot:

1. Upgrade the payload step by step to SCHEMA_VERSION
2. Fill every missing or invalid field from the bootstrap defaults,
   one field at a time
3. Skip records that still do not validate, logging each one

VERSIONS:
- 1: dashboard format without schemaVersion. Categories may carry the
     bucket under `allocation`, settings have no autoCalcLimits or
     budgetBasisMonth.
- 2: current format. `automaticPayments` may be missing and defaults to [].
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from budget_engine.ledger.operations import default_categories
from budget_engine.ledger.settings_store import default_settings
from budget_engine.log import get_logger
from budget_engine.models.finance import (
    SCHEMA_VERSION,
    AutomaticPayment,
    Category,
    Expense,
    FinanceSnapshot,
    Income,
    UserSettings,
    utc_now,
)


logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_ICON = "tag"


def default_snapshot() -> FinanceSnapshot:
    """The snapshot a brand-new user starts with."""
    return FinanceSnapshot(
        income=[],
        expenses=[],
        categories=default_categories(),
        settings=default_settings(),
    )


# =============================================================================
# VERSION UPGRADES
# =============================================================================

def _upgrade_v1(data: dict[str, Any]) -> dict[str, Any]:
    """v1 -> v2: rename `allocation` to `allocationBucket` on categories."""
    categories = data.get("categories")
    if isinstance(categories, list):
        upgraded = []
        for item in categories:
            if isinstance(item, dict) and "allocationBucket" not in item and "allocation" in item:
                item = {**item, "allocationBucket": item["allocation"]}
                item.pop("allocation")
            upgraded.append(item)
        data = {**data, "categories": upgraded}
    return {**data, "schemaVersion": 2}


MIGRATIONS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {
    1: _upgrade_v1,
}


def _schema_version(data: dict[str, Any]) -> int:
    version = data.get("schemaVersion", 1)
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        return 1
    return version


# =============================================================================
# FIELD DEFAULTS
# =============================================================================

def _clean_category(item: Any) -> Any:
    """Icons are string keys; anything else stored there is replaced."""
    if isinstance(item, dict) and not isinstance(item.get("icon", DEFAULT_ICON), str):
        return {**item, "icon": DEFAULT_ICON}
    return item


def _load_records(raw: Any, model: type[ModelT], collection: str) -> list[ModelT]:
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("snapshot_collection_reset", collection=collection)
        return []

    records = []
    for index, item in enumerate(raw):
        try:
            records.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(
                "snapshot_record_skipped",
                collection=collection,
                index=index,
                error_count=e.error_count(),
            )
    return records


def _load_settings(raw: Any) -> UserSettings:
    """Take each valid settings field from `raw`, the default otherwise."""
    values = default_settings().model_dump(by_alias=True)
    if not isinstance(raw, dict):
        return UserSettings.model_validate(values)

    for name, field in UserSettings.model_fields.items():
        key = field.alias or name
        if key in raw:
            value = raw[key]
        elif name in raw:
            value = raw[name]
        else:
            continue
        try:
            UserSettings.model_validate({**values, key: value})
        except ValidationError:
            logger.warning("settings_field_reset", field=key)
            continue
        values[key] = value

    return UserSettings.model_validate(values)


def _load_timestamp(raw: Any) -> datetime:
    if isinstance(raw, str):
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            pass
    return utc_now()


def migrate_snapshot(raw: Any) -> FinanceSnapshot:
    """
    Build a valid snapshot from persisted data of any supported version.

    Non-dict input gives the bootstrap snapshot. A missing `categories` key
    gives the default categories; an empty list stays empty.
    """
    if not isinstance(raw, dict):
        return default_snapshot()

    data = dict(raw)
    version = _schema_version(data)
    while version < SCHEMA_VERSION:
        data = MIGRATIONS[version](data)
        version += 1

    if "categories" in data:
        raw_categories = data["categories"]
        if isinstance(raw_categories, list):
            raw_categories = [_clean_category(item) for item in raw_categories]
        categories = _load_records(raw_categories, Category, "categories")
    else:
        categories = default_categories()

    return FinanceSnapshot(
        income=_load_records(data.get("income"), Income, "income"),
        expenses=_load_records(data.get("expenses"), Expense, "expenses"),
        categories=categories,
        automatic_payments=_load_records(
            data.get("automaticPayments"), AutomaticPayment, "automaticPayments"
        ),
        settings=_load_settings(data.get("settings")),
        last_updated=_load_timestamp(data.get("lastUpdated")),
        schema_version=SCHEMA_VERSION,
    )
