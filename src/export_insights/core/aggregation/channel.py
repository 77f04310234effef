"""
ChannelStrategy - sales by sales channel and attribution medium.
"""

from typing import Any

from export_insights.core.models import Accumulator, BucketTable, ExportModel, ExportShape

from .base_strategy import (
    BaseBucketStrategy,
    average,
    customer_id_of,
    fold_sales,
    money,
    orders_of,
    ratio,
    sales_totals,
)

UNKNOWN_CHANNEL = "unknown"
NO_MEDIUM = "(none)"


class ChannelStrategy(BaseBucketStrategy):
    """
    Buckets orders by (channel, medium). The channel is the order's source
    name (web, pos, a sales-channel app); the medium comes from the last
    visit's UTM parameters, or the visit source when no UTM medium was set.
    """

    export_shape = ExportShape.ORDERS
    columns = [
        "channel",
        "medium",
        "orders",
        "customers",
        "net_sales",
        "total_sales",
        "average_order_value",
        "share_of_sales",
    ]

    @property
    def name(self) -> str:
        return "channel"

    @property
    def key_width(self) -> int:
        return 2

    def fold(self, entity: ExportModel, buckets: BucketTable) -> int:
        for order in orders_of(entity):
            channel = (order.source_name or "").strip().lower() or UNKNOWN_CHANNEL
            medium = (order.medium or "").strip().lower() or NO_MEDIUM

            accumulator = buckets.get((channel, medium))
            accumulator.increment("orders")
            customer_id = customer_id_of(entity, order)
            if customer_id:
                accumulator.add_member("customers", customer_id)
            fold_sales(accumulator, order)
        return 0

    def prepare(self, buckets: BucketTable) -> dict[str, Any]:
        grand_total = sum(sales_totals(accumulator)["total_sales"] for accumulator in buckets)
        return {"grand_total": grand_total}

    def derive(self, accumulator: Accumulator, buckets: BucketTable, context: dict[str, Any]) -> dict[str, Any]:
        totals = sales_totals(accumulator)
        return {
            **totals,
            "average_order_value": average(totals["total_sales"], accumulator.count("orders")),
            "share_of_sales": ratio(totals["total_sales"], context["grand_total"]),
        }

    def to_row(self, accumulator: Accumulator) -> dict[str, Any]:
        channel, medium = accumulator.key
        return {
            "channel": channel,
            "medium": medium,
            "orders": accumulator.count("orders"),
            "customers": accumulator.distinct("customers"),
            "net_sales": accumulator.metric("net_sales"),
            "total_sales": accumulator.metric("total_sales"),
            "average_order_value": accumulator.metric("average_order_value"),
            "share_of_sales": accumulator.metric("share_of_sales"),
        }

    def sort_key(self, row: dict[str, Any]) -> Any:
        return (-row["total_sales"], row["channel"], row["medium"])
