"""
Currency Conversion

Every rate is quoted against the base currency (EUR): `rate` is how many
units of a currency one euro buys. Conversion goes through the base:

    base = amount / rate(from)
    result = base * rate(to)

DESIGN DECISION: Unknown codes use rate 1. This is a silent fallback, not
a guarantee, and it keeps dashboards rendering when a record carries a
currency the rate table does not know yet.

No rounding happens here. Rounding is a display concern (round_for_display,
format_currency).
"""

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from budget_engine.models.finance import CurrencyRate


RateTable = Union[Iterable[CurrencyRate], Mapping[str, Decimal]]

ONE = Decimal("1")
CENT = Decimal("0.01")


# Shipped defaults, used until a rate source has produced fresher ones
SUPPORTED_CURRENCIES: list[CurrencyRate] = [
    CurrencyRate(code="EUR", name="Euro", rate=Decimal("1"), symbol="€"),
    CurrencyRate(code="USD", name="US Dollar", rate=Decimal("1.1"), symbol="$"),
    CurrencyRate(code="GBP", name="British Pound", rate=Decimal("0.85"), symbol="£"),
    CurrencyRate(code="JPY", name="Japanese Yen", rate=Decimal("130"), symbol="¥"),
    CurrencyRate(code="CAD", name="Canadian Dollar", rate=Decimal("1.45"), symbol="C$"),
    CurrencyRate(code="AUD", name="Australian Dollar", rate=Decimal("1.65"), symbol="A$"),
    CurrencyRate(code="CHF", name="Swiss Franc", rate=Decimal("0.95"), symbol="CHF"),
]


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """Convert a number to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def rate_lookup(rates: RateTable) -> dict[str, Decimal]:
    """
    Build a {code: rate} dict from CurrencyRate objects or a plain mapping.

    Rates that are not positive are left out, so those codes fall back to 1
    like unknown ones.
    """
    if isinstance(rates, Mapping):
        table = {code.upper(): to_decimal(rate) for code, rate in rates.items()}
    else:
        table = {rate.code: rate.rate for rate in rates}
    return {code: rate for code, rate in table.items() if rate > 0}


def rate_for(code: str, rates: RateTable) -> Decimal:
    """Get the rate for a code, defaulting to 1 when unknown."""
    return rate_lookup(rates).get(code.upper(), ONE)


def convert(
    amount: Union[Decimal, int, float, str],
    from_code: str,
    to_code: str,
    rates: RateTable,
) -> Decimal:
    """
    Convert an amount between two currencies via the base currency.

    Args:
        amount: Amount in `from_code`
        from_code: Source currency code
        to_code: Target currency code
        rates: Rate table (CurrencyRate list or {code: rate} mapping)

    Returns:
        Unrounded amount in `to_code`
    """
    value = to_decimal(amount)
    from_code = from_code.upper()
    to_code = to_code.upper()
    if from_code == to_code:
        return value

    table = rate_lookup(rates)
    base = value / table.get(from_code, ONE)
    return base * table.get(to_code, ONE)


def currency_symbol(code: str, rates: Iterable[CurrencyRate]) -> str:
    """Get the display symbol for a code, falling back to the code itself."""
    code = code.upper()
    for rate in rates:
        if rate.code == code and rate.symbol:
            return rate.symbol
    return code


def round_for_display(amount: Union[Decimal, int, float, str]) -> Decimal:
    """Round to two decimals, half away from zero."""
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(
    amount: Union[Decimal, int, float, str],
    code: str,
    rates: Iterable[CurrencyRate] = SUPPORTED_CURRENCIES,
) -> str:
    """
    Format an amount for display, e.g. '€1,234.50' or '-$12.00'.
    """
    value = round_for_display(amount)
    symbol = currency_symbol(code, rates)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"
