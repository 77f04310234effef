"""
Metric aggregation: bucketing strategies and the aggregator that runs them.
"""

from .aggregator import AggregationResult, MetricAggregator
from .base_strategy import BaseBucketStrategy
from .channel import ChannelStrategy
from .cohort import CohortStrategy
from .daily_sales import DailySalesStrategy
from .location import LocationStrategy
from .order_summary import OrderSummaryStrategy
from .returns import ReturnsStrategy
from .rfm import RfmStrategy, assign_group, frequency_score, monetary_score, recency_score

__all__ = [
    "AggregationResult",
    "MetricAggregator",
    "BaseBucketStrategy",
    "ChannelStrategy",
    "CohortStrategy",
    "DailySalesStrategy",
    "LocationStrategy",
    "OrderSummaryStrategy",
    "ReturnsStrategy",
    "RfmStrategy",
    "assign_group",
    "frequency_score",
    "monetary_score",
    "recency_score",
]
