"""
Abstract Persistence Interface

DESIGN DECISION: The engine never reaches for storage. Whatever hosts it
is handed a PersistenceInterface and decides when to load and save.
This allows us to:
1. Swap the JSON file backend for a database later
2. Use in-memory storage for testing
3. Keep aggregation and allocation free of I/O

The interface mirrors what the dashboard needs and nothing more:
load/save/export/import/clear of a whole snapshot, plus a small cache for
currency rates.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from budget_engine.models.finance import CurrencyRate, FinanceSnapshot


class PersistenceInterface(ABC):
    """
    Abstract interface for snapshot persistence.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self) -> FinanceSnapshot:
        """
        Load the stored snapshot.

        Persisted data is migrated and merged over bootstrap defaults field
        by field. With nothing stored, returns the bootstrap snapshot.
        """
        pass

    @abstractmethod
    def save(self, snapshot: FinanceSnapshot) -> FinanceSnapshot:
        """
        Persist a snapshot.

        Returns:
            The stored copy, with last_updated set to now

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def export_data(self) -> str:
        """Get the stored snapshot as pretty-printed JSON."""
        pass

    @abstractmethod
    def import_data(self, json_data: str) -> bool:
        """
        Replace the stored snapshot with an exported payload.

        Only checks that `income` and `expenses` are present and are arrays.

        Returns:
            True if imported; False if the payload was rejected, in which
            case stored data is untouched
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored snapshot and cached rates."""
        pass

    @abstractmethod
    def get_currency_rates(self, now: Optional[datetime] = None) -> list[CurrencyRate]:
        """
        Get cached rates if still fresh, otherwise the shipped defaults.
        """
        pass

    @abstractmethod
    def save_currency_rates(
        self,
        rates: list[CurrencyRate],
        now: Optional[datetime] = None,
    ) -> None:
        """Cache rates with the time they were fetched."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass
