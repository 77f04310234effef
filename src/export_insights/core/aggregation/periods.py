"""
Calendar arithmetic for bucket keys.

Periods are true calendar months: the previous period of 2025-03-31 is
2025-02-28, not the date 31 days earlier.
"""

from datetime import date

from dateutil.relativedelta import relativedelta


def previous_period(day: date) -> date:
    """
    Same day one calendar month earlier, clamped to the end of that month.

    Examples:
        >>> previous_period(date(2025, 3, 31))
        datetime.date(2025, 2, 28)
        >>> previous_period(date(2025, 1, 15))
        datetime.date(2024, 12, 15)
    """
    return day - relativedelta(months=1)


def months_between(start: date, end: date) -> int:
    """
    Whole calendar months from the month of ``start`` to the month of ``end``.

    Examples:
        >>> months_between(date(2025, 4, 29), date(2025, 5, 1))
        1
        >>> months_between(date(2024, 12, 1), date(2025, 4, 30))
        4
    """
    return (end.year - start.year) * 12 + (end.month - start.month)


def month_key(day: date) -> str:
    """``YYYY-MM`` label for the month containing ``day``."""
    return f"{day.year:04d}-{day.month:02d}"


def day_key(day: date) -> str:
    """``YYYY-MM-DD`` label for ``day``."""
    return day.isoformat()
