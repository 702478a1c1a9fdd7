"""Storage services."""

from budget_engine.services.storage.interface import PersistenceInterface, StorageError
from budget_engine.services.storage.json_file import JsonFileStorage
from budget_engine.services.storage.key_value import (
    RATES_KEY,
    RATES_TIMESTAMP_KEY,
    SNAPSHOT_KEY,
    KeyValueStorage,
    default_rates,
    parse_import_payload,
)
from budget_engine.services.storage.memory import InMemoryStorage
from budget_engine.services.storage.migrations import default_snapshot, migrate_snapshot

__all__ = [
    "RATES_KEY",
    "RATES_TIMESTAMP_KEY",
    "SNAPSHOT_KEY",
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorage",
    "PersistenceInterface",
    "StorageError",
    "default_rates",
    "default_snapshot",
    "migrate_snapshot",
    "parse_import_payload",
]
