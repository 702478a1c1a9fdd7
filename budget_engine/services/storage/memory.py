"""In-memory storage, for tests and short-lived hosts."""

from typing import Optional

from budget_engine.services.storage.key_value import KeyValueStorage


class InMemoryStorage(KeyValueStorage):
    def __init__(self, rates_ttl_seconds: Optional[int] = None):
        super().__init__(rates_ttl_seconds)
        self._values: dict[str, str] = {}

    def _get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def _set(self, key: str, value: str) -> None:
        self._values[key] = value

    def _remove(self, key: str) -> None:
        self._values.pop(key, None)
