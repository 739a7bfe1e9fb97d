"""
Data validation utilities.
"""
import re
from typing import Optional

from shared.utilities.math_utils import is_positive_finite

# Exchange suffixes recognised as already qualified
EXCHANGE_SUFFIXES = ('.NS', '.BO')
DEFAULT_EXCHANGE_SUFFIX = '.NS'

_PLAIN_TICKER = re.compile(r'^[A-Z]+$')
_SYMBOL = re.compile(r'^[A-Z0-9][A-Z0-9&\-\.\^=]{0,19}$')


def normalize_symbol(raw: str) -> str:
    """
    Normalize a user-entered ticker.

    The ticker is trimmed and uppercased. Anything that is neither plain
    letters (a US-style ticker) nor already suffixed with an Indian
    exchange gets the NSE suffix, so "m&m" becomes "M&M.NS" while
    "aapl" stays "AAPL".

    Args:
        raw: Ticker as typed

    Returns:
        Normalized symbol

    Raises:
        ValueError: If the ticker is blank
    """
    symbol = (raw or '').strip().upper()
    if not symbol:
        raise ValueError("Symbol must not be empty")

    if symbol.endswith(EXCHANGE_SUFFIXES) or _PLAIN_TICKER.match(symbol):
        return symbol
    return symbol + DEFAULT_EXCHANGE_SUFFIX


def validate_symbol(symbol: str) -> bool:
    """
    Validate a normalized stock symbol.

    Args:
        symbol: Stock symbol

    Returns:
        True if valid, False otherwise
    """
    if not isinstance(symbol, str):
        return False
    return bool(_SYMBOL.match(symbol))


def validate_price(price: Optional[float]) -> bool:
    """
    Validate stock price.

    Args:
        price: Price to validate

    Returns:
        True if valid, False otherwise
    """
    if price is None or isinstance(price, bool):
        return False
    try:
        value = float(price)
    except (TypeError, ValueError):
        return False
    return is_positive_finite(value)
