"""
Lenient coercion of export field values.

Bulk exports frequently omit money and date fields, or carry them in
slightly different shapes depending on the query. These helpers never
raise: a missing or malformed money value is 0.0 and an unparseable
timestamp is None, so one bad field never aborts a run.
"""

from datetime import datetime, timezone
from typing import Any

from dateutil.parser import isoparse


def parse_money(value: Any) -> float:
    """
    Coerce a money field to float.

    Accepts a MoneyBag (``{"shopMoney": {"amount": "12.50"}}``), a MoneyV2
    (``{"amount": "12.50", "currencyCode": "USD"}``), a decimal string or a
    number.

    Examples:
        >>> parse_money({"shopMoney": {"amount": "12.50"}})
        12.5
        >>> parse_money("7")
        7.0
        >>> parse_money(None)
        0.0
    """
    if isinstance(value, dict):
        if "shopMoney" in value:
            value = value.get("shopMoney")
            if not isinstance(value, dict):
                return 0.0
        value = value.get("amount")

    # bool is an int subclass
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, int | float):
        amount = float(value)
    elif isinstance(value, str):
        try:
            amount = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0

    # NaN and infinities are treated as missing
    if amount != amount or amount in (float("inf"), float("-inf")):
        return 0.0
    return amount


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse an ISO-8601 timestamp (``2025-04-29T10:00:00Z``), or return None.

    Examples:
        >>> parse_timestamp("2025-04-29").isoformat()
        '2025-04-29T00:00:00+00:00'
        >>> parse_timestamp("yesterday") is None
        True
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = isoparse(value.strip())
        except (ValueError, OverflowError):
            return None
    else:
        return None

    # Naive timestamps are taken as UTC so they compare with offset-aware ones
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_quantity(value: Any) -> int:
    """Coerce a quantity to int, 0 when missing or malformed."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def safe_divide(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 whenever the denominator is zero."""
    if not denominator:
        return 0.0
    return numerator / denominator
