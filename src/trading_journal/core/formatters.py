"""Currency, percentage and quantity formatting for display layers."""

from __future__ import annotations

# Market codes map onto the currency they settle in
_MARKET_CURRENCY = {"ID": "IDR", "US": "USD", "CRYPTO": "USD"}

_PREFIX = {"USD": "$", "EUR": "€", "IDR": "Rp ", "SGD": "S$", "MYR": "RM"}


def _currency_code(currency: str) -> str:
    code = currency.upper()
    return _MARKET_CURRENCY.get(code, code)


def _group(value: float, decimals: int, thousands: str = ",", point: str = ".") -> str:
    text = f"{abs(value):,.{decimals}f}"
    if thousands != "," or point != ".":
        text = text.replace(",", "\0").replace(".", point).replace("\0", thousands)
    return text


def format_currency(value: float, currency: str = "USD") -> str:
    """Format *value* in the given currency (or market code).

    >>> format_currency(1234.5)
    '$1,234.50'
    >>> format_currency(1234.5, "EUR")
    '€1.234,50'
    >>> format_currency(-1500000, "ID")
    '-Rp 1.500.000'
    """
    code = _currency_code(currency)
    sign = "-" if value < 0 else ""
    prefix = _PREFIX.get(code, "$")
    if code == "IDR":
        body = _group(value, 0, thousands=".", point=",")
    elif code == "EUR":
        body = _group(value, 2, thousands=".", point=",")
    else:
        body = _group(value, 2)
    return f"{sign}{prefix}{body}"


def format_compact_currency(value: float, currency: str = "USD") -> str:
    """Large values with K/M/B suffixes, e.g. ``$1.5M``."""
    code = _currency_code(currency)
    prefix = _PREFIX.get(code, "$")
    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    for threshold, suffix in ((1_000_000_000, "B"), (1_000_000, "M"), (1_000, "K")):
        if magnitude >= threshold:
            return f"{sign}{prefix}{magnitude / threshold:.1f}{suffix}"
    return format_currency(value, currency)


def format_percent(value: float, decimals: int = 2) -> str:
    """Signed percentage: ``+12.50%`` / ``-3.00%``."""
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{decimals}f}%"


def format_percent_unsigned(value: float, decimals: int = 2) -> str:
    return f"{value:.{decimals}f}%"


def format_win_rate(value: float) -> str:
    """Win rate already expressed as 0-100."""
    return f"{value:.1f}%"


def format_pnl(value: float, currency: str = "USD") -> str:
    """Signed currency amount: ``+$120.00`` / ``-$45.10``."""
    text = format_currency(value, currency)
    return f"+{text}" if value > 0 else text


def format_quantity(value: float, market: str = "US") -> str:
    """Crypto keeps up to 8 decimals without trailing zeros; stocks 0 or 2."""
    if market.upper() == "CRYPTO":
        text = f"{value:.8f}".rstrip("0").rstrip(".")
        return text if text not in ("", "-0") else "0"
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def format_price(value: float, currency: str = "USD") -> str:
    """Prices below 1 get extra precision (4 decimals, 8 below 0.01)."""
    code = _currency_code(currency)
    prefix = _PREFIX.get(code, "$")
    if code == "IDR":
        sign = "-" if value < 0 else ""
        return f"{sign}{prefix}{_group(value, 2, thousands='.', point=',')}"
    magnitude = abs(value)
    sign = "-" if value < 0 else ""
    if magnitude < 0.01:
        return f"{sign}{prefix}{magnitude:.8f}"
    if magnitude < 1:
        return f"{sign}{prefix}{magnitude:.4f}"
    return f"{sign}{prefix}{_group(value, 2)}"
