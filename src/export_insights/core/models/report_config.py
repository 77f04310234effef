"""
ReportConfig model: tunable parameters for the aggregation strategies.
"""

from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator


def _ascending(thresholds: list[float], name: str) -> list[float]:
    if len(thresholds) != 4:
        raise ValueError(f"{name} needs exactly four thresholds, got {len(thresholds)}")
    if any(b <= a for a, b in zip(thresholds, thresholds[1:])):
        raise ValueError(f"{name} thresholds must be strictly ascending")
    return thresholds


class RfmThresholds(BaseModel):
    """
    Score ladders for RFM segmentation.

    Each ladder is four ascending thresholds compared with ``<=``; a value
    above the last threshold lands in the final tier. Recency scores 5 for
    the first tier (most recent), frequency and monetary score 5 for the
    last tier (most orders, highest spend).
    """

    recency_days: list[float] = Field(default_factory=lambda: [30, 90, 180, 365])
    frequency: list[float] = Field(default_factory=lambda: [1, 2, 4, 8])
    monetary: list[float] = Field(default_factory=lambda: [100.0, 250.0, 500.0, 1000.0])

    @field_validator("recency_days", "frequency", "monetary")
    @classmethod
    def check_ladder(cls, v, info):
        return _ascending(v, info.field_name)


class RfmBand(BaseModel):
    """A group label assigned when the mean RFM score reaches ``min_score``."""

    label: str = Field(..., min_length=1)
    min_score: float = Field(..., ge=0.0, le=5.0)


# Order attributes a strategy may bucket or sum by
DATE_FIELDS = ("created_at", "processed_at")
MONEY_FIELDS = ("total_price", "gross_sales", "net_sales", "net_spend")


def default_bands() -> list[RfmBand]:
    return [
        RfmBand(label="High-Value", min_score=4.0),
        RfmBand(label="Loyal", min_score=3.0),
        RfmBand(label="At-Risk", min_score=2.0),
        RfmBand(label="Lost", min_score=0.0),
    ]


class ReportConfig(BaseModel):
    """
    Parameters shared by all report types.

    Attributes:
        as_of: The "now" used for recency (defaults to today)
        rfm_thresholds: Score ladders
        rfm_bands: Ordered score bands, highest first; the last band is the fallback
        new_group_label: Group for customers with exactly one qualifying order
        high_discount_threshold: Discount above which an order counts as high-discount
        unknown_city: City used when a customer has no address
        unknown_region: Region and country code used when a customer has no address
        date_field: Order timestamp used for day, cohort and recency keys
        sales_field: Order amount summed by the cohort and location reports
        monetary_field: Order amount summed into RFM monetary value
    """

    as_of: date = Field(default_factory=date.today)
    rfm_thresholds: RfmThresholds = Field(default_factory=RfmThresholds)
    rfm_bands: list[RfmBand] = Field(default_factory=default_bands)
    new_group_label: str = "New"
    high_discount_threshold: float = Field(50.0, ge=0.0)
    unknown_city: str = "Unknown"
    unknown_region: str = "ZZ"
    date_field: str = "created_at"
    sales_field: str = "total_price"
    monetary_field: str = "net_spend"

    @field_validator("date_field")
    @classmethod
    def check_date_field(cls, v):
        if v not in DATE_FIELDS:
            raise ValueError(f"date_field must be one of: {', '.join(DATE_FIELDS)}")
        return v

    @field_validator("sales_field", "monetary_field")
    @classmethod
    def check_money_field(cls, v, info):
        if v not in MONEY_FIELDS:
            raise ValueError(f"{info.field_name} must be one of: {', '.join(MONEY_FIELDS)}")
        return v

    @model_validator(mode="after")
    def check_bands(self):
        if not self.rfm_bands:
            raise ValueError("rfm_bands must not be empty")
        scores = [band.min_score for band in self.rfm_bands]
        if scores != sorted(scores, reverse=True):
            raise ValueError("rfm_bands must be ordered by descending min_score")
        return self
