"""
CohortStrategy - customers grouped by first-purchase month.
"""

from typing import Any

from export_insights.core.models import Accumulator, BucketTable, Customer, ExportModel, ExportShape

from .base_strategy import BaseBucketStrategy, average, money, ratio
from .periods import month_key, months_between


class CohortStrategy(BaseBucketStrategy):
    """
    Assigns each customer to the month of their earliest dated order, then
    buckets every order by (cohort, calendar months since that first order).

    Customer_retention is the share of the cohort buying again in a later
    period; at period 0 it is always 0.0 since every member bought then.
    Column names follow the cohort sheet layout analysts already use.
    """

    export_shape = ExportShape.CUSTOMERS
    columns = [
        "cohort",
        "periods_since_first_purchase",
        "Total_customers",
        "Total_orders",
        "Total_total_sales",
        "Average_order_value",
        "Customer_retention",
    ]

    @property
    def name(self) -> str:
        return "cohort"

    @property
    def key_width(self) -> int:
        return 2

    def fold(self, entity: ExportModel, buckets: BucketTable) -> int:
        if not isinstance(entity, Customer):
            return 0

        dated = self.dated_orders(entity.orders)
        excluded = len(entity.orders) - len(dated)
        if not dated:
            return excluded

        # Earliest by timestamp value, never by arrival order
        first_purchase = min(placed for placed, _ in dated).date()
        cohort = month_key(first_purchase)

        for placed, order in dated:
            periods = months_between(first_purchase, placed.date())
            accumulator = buckets.get((cohort, periods))
            accumulator.increment("orders")
            accumulator.add_member("customers", entity.id)
            accumulator.add("total_sales", self.sales_amount(order))
        return excluded

    def derive(self, accumulator: Accumulator, buckets: BucketTable, context: dict[str, Any]) -> dict[str, Any]:
        cohort, periods = accumulator.key
        if periods == 0:
            retention = 0.0
        else:
            cohort_size = buckets.peek((cohort, 0)).distinct("customers")
            retention = ratio(accumulator.distinct("customers"), cohort_size)

        return {
            "Average_order_value": average(accumulator.total("total_sales"), accumulator.count("orders")),
            "Customer_retention": retention,
        }

    def to_row(self, accumulator: Accumulator) -> dict[str, Any]:
        cohort, periods = accumulator.key
        return {
            "cohort": cohort,
            "periods_since_first_purchase": periods,
            "Total_customers": accumulator.distinct("customers"),
            "Total_orders": accumulator.count("orders"),
            "Total_total_sales": money(accumulator.total("total_sales")),
            "Average_order_value": accumulator.metric("Average_order_value"),
            "Customer_retention": accumulator.metric("Customer_retention"),
        }
