"""
Metric aggregator: third stage of the pipeline.

Looks up the bucketing strategy for a report type, folds every
reconstructed root entity into a fresh bucket table, finalizes derived
metrics in one pass and returns the sorted row table.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

from export_insights.core.models import BucketTable, ExportModel, ExportShape, ReportConfig
from export_insights.observability.logger import get_logger

from .base_strategy import BaseBucketStrategy
from .channel import ChannelStrategy
from .cohort import CohortStrategy
from .daily_sales import DailySalesStrategy
from .location import LocationStrategy
from .order_summary import OrderSummaryStrategy
from .returns import ReturnsStrategy
from .rfm import RfmStrategy

logger = get_logger(__name__)


@dataclass
class AggregationResult:
    """
    Rows produced by one aggregation run.

    Attributes:
        report_type: Strategy name
        columns: Column order for the rows
        rows: Finalized, sorted rows
        excluded_undated: Entities skipped for an unparseable date
    """

    report_type: str
    columns: list[str]
    rows: list[dict[str, Any]] = field(default_factory=list)
    excluded_undated: int = 0


class MetricAggregator:
    """
    Runs one bucketing strategy over a reconstructed entity set.

    Every call to ``aggregate`` builds its own bucket table, so the same
    aggregator can be reused and produces identical rows for identical input.
    """

    STRATEGY_REGISTRY: dict[str, type[BaseBucketStrategy]] = {
        "daily_sales": DailySalesStrategy,
        "returns": ReturnsStrategy,
        "cohort": CohortStrategy,
        "rfm": RfmStrategy,
        "location": LocationStrategy,
        "channel": ChannelStrategy,
        "order_summary": OrderSummaryStrategy,
    }

    def __init__(self, report_type: str, config: ReportConfig | None = None):
        """
        Initialize the aggregator.

        Args:
            report_type: Registered strategy name (see STRATEGY_REGISTRY)
            config: Report parameters shared by all strategies

        Raises:
            ValueError: If the report type is not registered
        """
        strategy_class = self.STRATEGY_REGISTRY.get(report_type)
        if not strategy_class:
            raise ValueError(
                f"Unknown report type: {report_type}. "
                f"Available: {', '.join(sorted(self.STRATEGY_REGISTRY))}"
            )

        self.report_type = report_type
        self.config = config or ReportConfig()
        self.strategy = strategy_class(self.config)

    @classmethod
    def available_reports(cls) -> list[str]:
        return sorted(cls.STRATEGY_REGISTRY)

    @classmethod
    def export_shape_for(cls, report_type: str) -> ExportShape:
        """The export shape a report type expects."""
        strategy_class = cls.STRATEGY_REGISTRY.get(report_type)
        if not strategy_class:
            raise ValueError(f"Unknown report type: {report_type}")
        return strategy_class.export_shape

    @property
    def export_shape(self) -> ExportShape:
        return self.strategy.export_shape

    @property
    def columns(self) -> list[str]:
        return list(self.strategy.columns)

    def aggregate(self, entities: Mapping[str, ExportModel]) -> AggregationResult:
        """
        Fold, finalize and render.

        Args:
            entities: Root id -> reconstructed root entity

        Returns:
            AggregationResult with rows in the strategy's documented order
        """
        buckets = BucketTable()
        self.strategy.seed(buckets)

        excluded = 0
        # Sorted for a stable fold order; results do not depend on it
        for root_id in sorted(entities):
            excluded += self.strategy.fold(entities[root_id], buckets)

        self.strategy.finalize(buckets)
        rows = self.strategy.build_rows(buckets)

        if excluded:
            logger.warning(
                f"Excluded {excluded} entities with unparseable dates from {self.report_type}",
                extra={"report_type": self.report_type, "excluded_undated": excluded},
            )

        logger.info(
            f"Aggregated {len(entities)} entities into {len(rows)} {self.report_type} rows",
            extra={"report_type": self.report_type, "entities": len(entities), "rows": len(rows)},
        )

        return AggregationResult(
            report_type=self.report_type,
            columns=self.columns,
            rows=rows,
            excluded_undated=excluded,
        )

    def get_strategy_summary(self) -> dict[str, Any]:
        """Describe the active strategy."""
        return {
            "report_type": self.report_type,
            "export_shape": self.export_shape.value,
            "columns": self.columns,
        }
