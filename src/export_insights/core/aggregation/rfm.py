"""
RfmStrategy - Recency / Frequency / Monetary segmentation, one row per customer.
"""

from typing import Any, Sequence

from export_insights.core.models import (
    Accumulator,
    BucketTable,
    Customer,
    ExportModel,
    ExportShape,
    ReportConfig,
)

from .base_strategy import BaseBucketStrategy, money


def ladder_tier(value: float, thresholds: Sequence[float]) -> int:
    """
    1-based tier of ``value`` on an ascending ``<=`` ladder.

    The first threshold the value does not exceed decides the tier; a value
    above every threshold lands one past the last.

    Examples:
        >>> ladder_tier(10, [30, 90, 180, 365])
        1
        >>> ladder_tier(90, [30, 90, 180, 365])
        2
        >>> ladder_tier(400, [30, 90, 180, 365])
        5
    """
    for tier, threshold in enumerate(thresholds, start=1):
        if value <= threshold:
            return tier
    return len(thresholds) + 1


def recency_score(days: float, thresholds: Sequence[float]) -> int:
    """5 for the most recent tier down to 1 for the stalest."""
    return len(thresholds) + 2 - ladder_tier(days, thresholds)


def frequency_score(orders: float, thresholds: Sequence[float]) -> int:
    """1 for the fewest orders up to 5 for the most."""
    return ladder_tier(orders, thresholds)


def monetary_score(spend: float, thresholds: Sequence[float]) -> int:
    """1 for the lowest spend up to 5 for the highest."""
    return ladder_tier(spend, thresholds)


def assign_group(frequency: int, mean_score: float, config: ReportConfig) -> str:
    """
    Pick the RFM group for a customer.

    A customer with exactly one qualifying order is always "New". This check
    comes first: a single very recent, very large order would otherwise score
    into the top band.
    """
    if frequency == 1:
        return config.new_group_label

    for band in config.rfm_bands:
        if mean_score >= band.min_score:
            return band.label
    return config.rfm_bands[-1].label


class RfmStrategy(BaseBucketStrategy):
    """
    One bucket per customer. Qualifying orders are those with a parseable
    value in the configured date field; recency is measured from the
    configured as-of date.

    Customers without a qualifying order still get a row: zero recency,
    frequency and spend, scores of 0 and the lowest band.
    """

    export_shape = ExportShape.CUSTOMERS
    columns = [
        "customer_id",
        "email",
        "last_order_date",
        "recency_days",
        "frequency",
        "monetary",
        "r_score",
        "f_score",
        "m_score",
        "rfm_score",
        "rfm_group",
    ]

    @property
    def name(self) -> str:
        return "rfm"

    def fold(self, entity: ExportModel, buckets: BucketTable) -> int:
        if not isinstance(entity, Customer):
            return 0

        dated = self.dated_orders(entity.orders)
        accumulator = buckets.get((entity.id,))
        accumulator.set_attribute("email", entity.email or "")

        if dated:
            last_order = max(placed for placed, _ in dated).date()
            recency = max((self.config.as_of - last_order).days, 0)
            accumulator.set_attribute("last_order_date", last_order.isoformat())
            accumulator.add("recency_days", recency)
            accumulator.increment("frequency", len(dated))
            accumulator.add("monetary", sum(order.amount(self.config.monetary_field) for _, order in dated))
        else:
            accumulator.set_attribute("last_order_date", "")

        return len(entity.orders) - len(dated)

    def derive(self, accumulator: Accumulator, buckets: BucketTable, context: dict[str, Any]) -> dict[str, Any]:
        frequency = accumulator.count("frequency")
        if frequency == 0:
            return {
                "r_score": 0,
                "f_score": 0,
                "m_score": 0,
                "rfm_score": 0.0,
                "rfm_group": self.config.rfm_bands[-1].label,
            }

        thresholds = self.config.rfm_thresholds
        r_score = recency_score(accumulator.total("recency_days"), thresholds.recency_days)
        f_score = frequency_score(frequency, thresholds.frequency)
        m_score = monetary_score(money(accumulator.total("monetary")), thresholds.monetary)
        mean_score = (r_score + f_score + m_score) / 3

        return {
            "r_score": r_score,
            "f_score": f_score,
            "m_score": m_score,
            "rfm_score": round(mean_score, 2),
            "rfm_group": assign_group(frequency, mean_score, self.config),
        }

    def to_row(self, accumulator: Accumulator) -> dict[str, Any]:
        return {
            "customer_id": accumulator.key[0],
            "email": accumulator.attributes.get("email", ""),
            "last_order_date": accumulator.attributes.get("last_order_date", ""),
            "recency_days": int(accumulator.total("recency_days")),
            "frequency": accumulator.count("frequency"),
            "monetary": money(accumulator.total("monetary")),
            "r_score": accumulator.metric("r_score"),
            "f_score": accumulator.metric("f_score"),
            "m_score": accumulator.metric("m_score"),
            "rfm_score": accumulator.metric("rfm_score"),
            "rfm_group": accumulator.metric("rfm_group"),
        }

    def sort_key(self, row: dict[str, Any]) -> Any:
        # Highest spend first
        return (-row["monetary"], row["customer_id"])
