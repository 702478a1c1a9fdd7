"""
Currency Rate Sources

DESIGN DECISION: There is no live FX feed. MockRateSource simulates one by
nudging the shipped rates by up to +/- BUDGET_RATES_JITTER. The base
currency always stays at 1.

A real feed only needs to implement RateSource.refresh().
"""

import random
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from budget_engine.config import get_settings
from budget_engine.currency.converter import SUPPORTED_CURRENCIES
from budget_engine.models.finance import CurrencyRate


RATE_PLACES = Decimal("0.000001")


class RateSource(ABC):
    @abstractmethod
    def refresh(self) -> list[CurrencyRate]:
        """Fetch a fresh rate table quoted against the base currency."""
        pass


class MockRateSource(RateSource):
    def __init__(
        self,
        base_rates: Optional[list[CurrencyRate]] = None,
        jitter: Optional[float] = None,
        rng: Optional[random.Random] = None,
        base_currency: Optional[str] = None,
    ):
        settings = get_settings().rates
        self.base_rates = base_rates if base_rates is not None else SUPPORTED_CURRENCIES
        self.jitter = settings.jitter if jitter is None else jitter
        self.base_currency = (base_currency or settings.base_currency).upper()
        self._rng = rng or random.Random()

    def refresh(self) -> list[CurrencyRate]:
        refreshed = []
        for rate in self.base_rates:
            if rate.code == self.base_currency:
                refreshed.append(rate.model_copy(update={"rate": Decimal("1")}))
                continue
            factor = 1 + self._rng.uniform(-self.jitter, self.jitter)
            value = (rate.rate * Decimal(str(factor))).quantize(RATE_PLACES)
            refreshed.append(rate.model_copy(update={"rate": value}))
        return refreshed
