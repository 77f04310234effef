"""
OrderSummaryStrategy - a single headline row over every order in the export.
"""

from typing import Any

from export_insights.core.models import Accumulator, BucketTable, ExportModel, ExportShape

from .base_strategy import BaseBucketStrategy, average, money, orders_of

SUMMARY_KEY = ("all",)


class OrderSummaryStrategy(BaseBucketStrategy):
    """
    Totals across the whole export: order count, revenue, discounts,
    refunds, units sold, how many orders were cancelled and how many
    carried a discount above the configured threshold. Always emits
    exactly one row, zero-valued for an empty export.
    """

    export_shape = ExportShape.ORDERS
    columns = [
        "scope",
        "total_orders",
        "total_revenue",
        "average_order_value",
        "total_discounts",
        "high_discount_orders",
        "cancelled_orders",
        "total_refunded",
        "units_sold",
    ]

    @property
    def name(self) -> str:
        return "order_summary"

    def seed(self, buckets: BucketTable) -> None:
        buckets.get(SUMMARY_KEY)

    def fold(self, entity: ExportModel, buckets: BucketTable) -> int:
        accumulator = buckets.get(SUMMARY_KEY)
        for order in orders_of(entity):
            accumulator.increment("orders")
            accumulator.add("revenue", order.total_price)
            accumulator.add("discounts", order.discounts)
            accumulator.add("refunded", order.returns)
            accumulator.increment("units", order.units)
            if order.is_cancelled:
                accumulator.add_member("cancelled_orders", order.id)
            if order.discounts > self.config.high_discount_threshold:
                accumulator.add_member("high_discount_orders", order.id)
        return 0

    def derive(self, accumulator: Accumulator, buckets: BucketTable, context: dict[str, Any]) -> dict[str, Any]:
        return {"average_order_value": average(accumulator.total("revenue"), accumulator.count("orders"))}

    def to_row(self, accumulator: Accumulator) -> dict[str, Any]:
        return {
            "scope": accumulator.key[0],
            "total_orders": accumulator.count("orders"),
            "total_revenue": money(accumulator.total("revenue")),
            "average_order_value": accumulator.metric("average_order_value"),
            "total_discounts": money(accumulator.total("discounts")),
            "high_discount_orders": accumulator.distinct("high_discount_orders"),
            "cancelled_orders": accumulator.distinct("cancelled_orders"),
            "total_refunded": money(accumulator.total("refunded")),
            "units_sold": accumulator.count("units"),
        }
