"""Calendar helpers: month bounds, month arithmetic and "YYYY-MM" parsing."""

import re
from datetime import date, timedelta

# Labels used by the yearly chart, matching the budget worksheet headers
MONTH_LABELS = [
    "Jan", "Fév", "Mar", "Avr", "Mai", "Juin",
    "Juil", "Août", "Sep", "Oct", "Nov", "Déc",
]

_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


def month_bounds(year: int, month_index: int) -> tuple[date, date]:
    """
    First day of the month and first day of the next month.

    month_index is 0-based (0 = January). December rolls into
    January of the following year.
    """
    if not 0 <= month_index <= 11:
        raise ValueError(f"month_index must be 0-11, got {month_index}")
    start = date(year, month_index + 1, 1)
    if month_index == 11:
        return start, date(year + 1, 1, 1)
    return start, date(year, month_index + 2, 1)


def previous_month(year: int, month_index: int) -> tuple[int, int]:
    if month_index == 0:
        return year - 1, 11
    return year, month_index - 1


def parse_month(value: str) -> tuple[int, int]:
    """
    Parse "YYYY-MM" into (year, month_index).

    Raises:
        ValueError: On any other format or a month outside 1-12
    """
    match = _MONTH_RE.match(value.strip())
    if not match:
        raise ValueError(f"Expected a month as YYYY-MM, got {value!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range in {value!r}")
    return year, month - 1


def week_start(day: date) -> date:
    """Monday of the week containing day."""
    return day - timedelta(days=day.weekday())
