"""
ReturnsStrategy - refunds and return rates by order day.
"""

from typing import Any

from export_insights.core.models import Accumulator, BucketTable, ExportModel, ExportShape

from .base_strategy import BaseBucketStrategy, average, money, orders_of, ratio
from .periods import day_key


class ReturnsStrategy(BaseBucketStrategy):
    """
    Buckets orders by the day they were placed and tracks how many of them
    were refunded and for how much.

    An order counts as returned when it has attached refunds or a non-zero
    refunded total. The refund count is the number of attached refunds, or
    one when only the order-level total is known.
    """

    export_shape = ExportShape.ORDERS
    columns = [
        "day",
        "orders",
        "orders_with_returns",
        "refunds",
        "returned_amount",
        "gross_sales",
        "return_rate",
        "returned_share",
        "average_refund",
    ]

    @property
    def name(self) -> str:
        return "returns"

    def fold(self, entity: ExportModel, buckets: BucketTable) -> int:
        excluded = 0
        for order in orders_of(entity):
            placed = self.order_time(order)
            if placed is None:
                excluded += 1
                continue

            accumulator = buckets.get((day_key(placed.date()),))
            accumulator.increment("orders")
            accumulator.add("gross_sales", order.gross_sales)

            returned = order.returns
            if order.refunds or returned:
                accumulator.add_member("orders_with_returns", order.id)
                accumulator.increment("refunds", len(order.refunds) or 1)
                accumulator.add("returned_amount", returned)
        return excluded

    def derive(self, accumulator: Accumulator, buckets: BucketTable, context: dict[str, Any]) -> dict[str, Any]:
        return {
            "return_rate": ratio(accumulator.distinct("orders_with_returns"), accumulator.count("orders")),
            "returned_share": ratio(accumulator.total("returned_amount"), accumulator.total("gross_sales")),
            "average_refund": average(accumulator.total("returned_amount"), accumulator.count("refunds")),
        }

    def to_row(self, accumulator: Accumulator) -> dict[str, Any]:
        return {
            "day": accumulator.key[0],
            "orders": accumulator.count("orders"),
            "orders_with_returns": accumulator.distinct("orders_with_returns"),
            "refunds": accumulator.count("refunds"),
            "returned_amount": money(accumulator.total("returned_amount")),
            "gross_sales": money(accumulator.total("gross_sales")),
            "return_rate": accumulator.metric("return_rate"),
            "returned_share": accumulator.metric("returned_share"),
            "average_refund": accumulator.metric("average_refund"),
        }
