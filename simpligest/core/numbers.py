import math
import re

_NON_DIGIT_RE = re.compile(r"\D+")
_LEADING_ZEROS_RE = re.compile(r"^0+(?=\d)")

_CURRENCY_SYMBOLS = {
    "CLP": "$",
    "USD": "US$",
    "EUR": "€",
}


def _group_thousands(value: int) -> str:
    return "{:,}".format(value).replace(",", ".")


def _digits_only(raw_value) -> str:
    if raw_value is None:
        return ""
    if isinstance(raw_value, float) and raw_value.is_integer():
        raw_value = int(raw_value)
    return _NON_DIGIT_RE.sub("", str(raw_value))


def format_number_input(raw_value) -> str:
    digits = _digits_only(raw_value)
    if not digits or digits == "0":
        return ""
    normalized = _LEADING_ZEROS_RE.sub("", digits)
    return _group_thousands(int(normalized))


def parse_number_input(raw_value) -> int:
    digits = _digits_only(raw_value)
    if not digits:
        return 0
    return int(_LEADING_ZEROS_RE.sub("", digits))


def parse_localized_number(value) -> float:
    """Parse Chilean formatted amounts ("$ 1.234,5" -> 1234.5); 0 when unreadable."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[$CLPclp\s]", "", str(value))
    cleaned = cleaned.replace(".", "").replace(",", ".")
    try:
        parsed = float(cleaned)
    except ValueError:
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def format_currency(amount, currency="CLP") -> str:
    amount = float(amount or 0)
    rounded = int(math.floor(abs(amount) + 0.5))
    symbol = _CURRENCY_SYMBOLS.get((currency or "").upper(), "{} ".format(currency))
    sign = "-" if amount < 0 and rounded else ""
    return "{}{}{}".format(sign, symbol, _group_thousands(rounded))


__all__ = [
    "format_currency",
    "format_number_input",
    "parse_localized_number",
    "parse_number_input",
]
