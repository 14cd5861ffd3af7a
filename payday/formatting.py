"""Display helpers: pt-BR style currency and short date labels."""
import math
import re

from payday.dates import parse_date_only

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_NON_DIGITS = re.compile(r"\D")


def _group_thousands(digits: str) -> str:
    # "1234567" -> "1.234.567"
    return f"{int(digits):,}".replace(",", ".")


def format_currency(value, symbol: str = "R$") -> str:
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = 0.0
    if not math.isfinite(number):
        number = 0.0
    cents = round(abs(number) * 100)
    whole, fraction = divmod(cents, 100)
    sign = "-" if number < 0 and cents else ""
    return f"{sign}{symbol} {_group_thousands(str(whole))},{fraction:02d}"


def _digits(text) -> str:
    return _NON_DIGITS.sub("", text or "")


def parse_currency_input(text: str) -> float:
    """Masked input keeps only digits, read as cents."""
    digits = _digits(text)
    return int(digits) / 100 if digits else 0.0


def format_currency_input(raw: str, symbol: str = "R$") -> str:
    return format_currency(parse_currency_input(raw), symbol)


def parse_thousands_input(text: str) -> int:
    return int(_digits(text) or "0")


def format_thousands_input(raw: str) -> str:
    digits = _digits(raw)
    if not digits:
        return ""
    return _group_thousands(digits)


def format_chart_date(date_iso: str) -> str:
    parts = (date_iso or "").split("-")
    if len(parts) < 3 or not all(parts[:3]):
        return date_iso
    _, month, day = parts[:3]
    return f"{day[:2]}/{month}"


def format_cycle_label(cycle_date: str) -> str:
    parsed = parse_date_only(cycle_date)
    if parsed is None:
        return cycle_date
    return f"{MONTH_ABBR[parsed.month - 1]} {parsed.year}"
