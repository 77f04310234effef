"""
DailySalesStrategy - sales over time, one bucket per order day.
"""

from datetime import date
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
from .periods import day_key, previous_period


class DailySalesStrategy(BaseBucketStrategy):
    """
    Buckets every order by the day of its configured date field (creation
    by default); sibling orders of one
    customer land in their own days independently.

    Each day is compared with the same day one calendar month earlier. A
    previous day with no orders compares as zero.
    """

    export_shape = ExportShape.ORDERS
    columns = [
        "day",
        "orders",
        "customers",
        "gross_sales",
        "discounts",
        "returns",
        "net_sales",
        "taxes",
        "shipping",
        "duties",
        "fees",
        "total_sales",
        "average_order_value",
        "previous_period_day",
        "previous_period_total_sales",
        "total_sales_change",
    ]

    @property
    def name(self) -> str:
        return "daily_sales"

    def fold(self, entity: ExportModel, buckets: BucketTable) -> int:
        excluded = 0
        for order in orders_of(entity):
            placed = self.order_time(order)
            if placed is None:
                excluded += 1
                continue

            accumulator = buckets.get((day_key(placed.date()),))
            accumulator.increment("orders")
            customer_id = customer_id_of(entity, order)
            if customer_id:
                accumulator.add_member("customers", customer_id)
            fold_sales(accumulator, order)
        return excluded

    def derive(self, accumulator: Accumulator, buckets: BucketTable, context: dict[str, Any]) -> dict[str, Any]:
        totals = sales_totals(accumulator)
        day = date.fromisoformat(accumulator.key[0])
        previous_key = (day_key(previous_period(day)),)
        previous_total = sales_totals(buckets.peek(previous_key))["total_sales"]

        return {
            **totals,
            "average_order_value": average(totals["total_sales"], accumulator.count("orders")),
            "previous_period_day": previous_key[0],
            "previous_period_total_sales": previous_total,
            "total_sales_change": ratio(totals["total_sales"] - previous_total, previous_total),
        }

    def to_row(self, accumulator: Accumulator) -> dict[str, Any]:
        return {
            "day": accumulator.key[0],
            "orders": accumulator.count("orders"),
            "customers": accumulator.distinct("customers"),
            "gross_sales": money(accumulator.total("gross_sales")),
            "discounts": money(accumulator.total("discounts")),
            "returns": money(accumulator.total("returns")),
            "net_sales": accumulator.metric("net_sales"),
            "taxes": money(accumulator.total("taxes")),
            "shipping": money(accumulator.total("shipping")),
            "duties": money(accumulator.total("duties")),
            "fees": money(accumulator.total("fees")),
            "total_sales": accumulator.metric("total_sales"),
            "average_order_value": accumulator.metric("average_order_value"),
            "previous_period_day": accumulator.metric("previous_period_day"),
            "previous_period_total_sales": accumulator.metric("previous_period_total_sales"),
            "total_sales_change": accumulator.metric("total_sales_change"),
        }
