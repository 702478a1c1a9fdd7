"""Services: persistence and currency rate sources."""

from budget_engine.services.rates import MockRateSource, RateSource
from budget_engine.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorage,
    PersistenceInterface,
    StorageError,
)

__all__ = [
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorage",
    "MockRateSource",
    "PersistenceInterface",
    "RateSource",
    "StorageError",
]
