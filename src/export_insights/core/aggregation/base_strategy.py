"""
Base bucketing strategy interface for all report types.

All strategies inherit from BaseBucketStrategy and implement fold(),
derive() and to_row().
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Iterable

from export_insights.core.models import (
    Accumulator,
    BucketTable,
    Customer,
    ExportModel,
    ExportShape,
    Order,
    ReportConfig,
)
from export_insights.utils.coercion import safe_divide


def money(value: float) -> float:
    """Round a monetary output to cents."""
    return round(value, 2)


def average(numerator: float, denominator: float) -> float:
    """Rounded monetary average; 0.0 when the denominator is zero."""
    return money(safe_divide(numerator, denominator))


def ratio(numerator: float, denominator: float) -> float:
    """Rounded rate; 0.0 when the denominator is zero."""
    return round(safe_divide(numerator, denominator), 4)


def orders_of(entity: ExportModel) -> list[Order]:
    """Orders contributed by a root: its attached orders, or itself."""
    if isinstance(entity, Customer):
        return entity.orders
    if isinstance(entity, Order):
        return [entity]
    return []


def customer_id_of(entity: ExportModel, order: Order) -> str | None:
    """The customer an order belongs to, when the export says."""
    if isinstance(entity, Customer):
        return entity.id
    return order.customer_id


def fold_sales(accumulator: Accumulator, order: Order) -> None:
    """Add one order's sales components to a bucket."""
    accumulator.add("gross_sales", order.gross_sales)
    accumulator.add("discounts", order.discounts)
    accumulator.add("returns", order.returns)
    accumulator.add("taxes", order.tax)
    accumulator.add("shipping", order.shipping)
    accumulator.add("duties", order.duties)
    accumulator.add("fees", order.fees)


def sales_totals(accumulator: Accumulator) -> dict[str, float]:
    """
    Net and total sales from a bucket's sums.

    net = gross - discounts - returns
    total = net + taxes + shipping + duties + fees
    """
    net_sales = money(
        accumulator.total("gross_sales")
        - accumulator.total("discounts")
        - accumulator.total("returns")
    )
    total_sales = money(
        net_sales
        + accumulator.total("taxes")
        + accumulator.total("shipping")
        + accumulator.total("duties")
        + accumulator.total("fees")
    )
    return {"net_sales": net_sales, "total_sales": total_sales}


class BaseBucketStrategy(ABC):
    """
    Abstract base class for bucketing strategies.

    A strategy decides the bucket key(s) of each root entity, folds the
    entity's numbers into those buckets, derives rates and averages once
    folding is complete, and renders each bucket as a row.

    Strategy instances hold configuration only; all run state lives in the
    BucketTable passed to them.
    """

    export_shape: ExportShape = ExportShape.ORDERS
    columns: list[str] = []

    def __init__(self, config: ReportConfig | None = None):
        """
        Initialize strategy.

        Args:
            config: Report parameters (thresholds, as-of date, labels)
        """
        self.config = config or ReportConfig()

    def order_time(self, order: Order) -> datetime | None:
        """The order's timestamp under the configured date field."""
        return order.timestamp(self.config.date_field)

    def sales_amount(self, order: Order) -> float:
        return order.amount(self.config.sales_field)

    def dated_orders(self, orders: Iterable[Order]) -> list[tuple[datetime, Order]]:
        """Orders paired with their configured timestamp; undated ones are left out."""
        dated = []
        for order in orders:
            placed = self.order_time(order)
            if placed is not None:
                dated.append((placed, order))
        return dated

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the report name this strategy is registered under."""
        pass

    def seed(self, buckets: BucketTable) -> None:
        """Create buckets that must exist even when no entity reaches them."""
        pass

    @abstractmethod
    def fold(self, entity: ExportModel, buckets: BucketTable) -> int:
        """
        Fold one root entity into its bucket(s).

        Args:
            entity: A reconstructed root entity
            buckets: The run's bucket table

        Returns:
            Number of entities excluded because their date is unparseable
        """
        pass

    def prepare(self, buckets: BucketTable) -> dict[str, Any]:
        """Compute run-wide values needed by derive() (e.g. grand totals)."""
        return {}

    @abstractmethod
    def derive(self, accumulator: Accumulator, buckets: BucketTable, context: dict[str, Any]) -> dict[str, Any]:
        """Compute the derived metrics of one bucket from its closed sums."""
        pass

    @abstractmethod
    def to_row(self, accumulator: Accumulator) -> dict[str, Any]:
        """Render a finalized bucket as a row keyed by column name."""
        pass

    def sort_key(self, row: dict[str, Any]) -> Any:
        """Row ordering; bucket key ascending unless overridden."""
        return tuple(row[column] for column in self.columns[: self.key_width])

    @property
    def key_width(self) -> int:
        """How many leading columns form the bucket key."""
        return 1

    def finalize(self, buckets: BucketTable) -> None:
        """Single finalization pass over every bucket."""
        context = self.prepare(buckets)
        derived = [(accumulator, self.derive(accumulator, buckets, context)) for accumulator in buckets]
        for accumulator, values in derived:
            accumulator.finalize(values)

    def build_rows(self, buckets: Iterable[Accumulator]) -> list[dict[str, Any]]:
        rows = [self.to_row(accumulator) for accumulator in buckets]
        return sorted(rows, key=self.sort_key)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, shape={self.export_shape.value})"
