"""Currency conversion package."""

from budget_engine.currency.converter import (
    SUPPORTED_CURRENCIES,
    RateTable,
    convert,
    currency_symbol,
    format_currency,
    rate_for,
    rate_lookup,
    round_for_display,
    to_decimal,
)

__all__ = [
    "SUPPORTED_CURRENCIES",
    "RateTable",
    "convert",
    "currency_symbol",
    "format_currency",
    "rate_for",
    "rate_lookup",
    "round_for_display",
    "to_decimal",
]
