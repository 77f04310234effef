"""
LocationStrategy - customers and sales by (city, region, country).
"""

from typing import Any

from export_insights.core.models import Accumulator, BucketTable, Customer, ExportModel, ExportShape

from .base_strategy import BaseBucketStrategy, average, money, ratio


class LocationStrategy(BaseBucketStrategy):
    """
    Buckets each customer by their default address. Customers without an
    address, or with parts missing, fall into the configured unknown values
    (``("Unknown", "ZZ", "ZZ")`` by default) rather than being dropped.
    """

    export_shape = ExportShape.CUSTOMERS
    columns = [
        "city",
        "region",
        "country",
        "customers",
        "orders",
        "total_sales",
        "average_order_value",
        "orders_per_customer",
    ]

    @property
    def name(self) -> str:
        return "location"

    def location_of(self, customer: Customer) -> tuple[str, str, str]:
        address = customer.address
        unknown_city = self.config.unknown_city
        unknown_region = self.config.unknown_region
        if address is None:
            return (unknown_city, unknown_region, unknown_region)
        return (
            (address.city or "").strip() or unknown_city,
            (address.province_code or "").strip() or unknown_region,
            (address.country_code or "").strip() or unknown_region,
        )

    def fold(self, entity: ExportModel, buckets: BucketTable) -> int:
        if not isinstance(entity, Customer):
            return 0

        accumulator = buckets.get(self.location_of(entity))
        accumulator.add_member("customers", entity.id)
        for order in entity.orders:
            accumulator.increment("orders")
            accumulator.add("total_sales", self.sales_amount(order))
        return 0

    def derive(self, accumulator: Accumulator, buckets: BucketTable, context: dict[str, Any]) -> dict[str, Any]:
        orders = accumulator.count("orders")
        return {
            "average_order_value": average(accumulator.total("total_sales"), orders),
            "orders_per_customer": ratio(orders, accumulator.distinct("customers")),
        }

    def to_row(self, accumulator: Accumulator) -> dict[str, Any]:
        city, region, country = accumulator.key
        return {
            "city": city,
            "region": region,
            "country": country,
            "customers": accumulator.distinct("customers"),
            "orders": accumulator.count("orders"),
            "total_sales": money(accumulator.total("total_sales")),
            "average_order_value": accumulator.metric("average_order_value"),
            "orders_per_customer": accumulator.metric("orders_per_customer"),
        }

    def sort_key(self, row: dict[str, Any]) -> Any:
        return (-row["total_sales"], row["country"], row["region"], row["city"])
