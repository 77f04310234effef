"""
Report configuration management.

Loads scoring thresholds and report parameters from YAML files and
provides a builder for configuring reports in code.
"""

from datetime import date
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from export_insights.core.models import ReportConfig, RfmBand, RfmThresholds


class ReportConfigLoader:
    """
    Loads report parameters from a YAML configuration file.

    Expected YAML format (every section is optional):
    ```yaml
    as_of: 2025-06-30

    rfm:
      thresholds:
        recency_days: [30, 90, 180, 365]
        frequency: [1, 2, 4, 8]
        monetary: [100, 250, 500, 1000]
      bands:
        - label: High-Value
          min_score: 4
        - label: Loyal
          min_score: 3
        - label: At-Risk
          min_score: 2
        - label: Lost
          min_score: 0
      new_group_label: New

    bucketing:
      date_field: created_at        # or processed_at
      sales_field: total_price      # cohort and location sums
      monetary_field: net_spend     # RFM monetary value

    order_summary:
      high_discount_threshold: 50

    location:
      unknown_city: Unknown
      unknown_region: ZZ
    ```
    """

    SECTIONS = ("as_of", "bucketing", "rfm", "order_summary", "location")

    def __init__(self, config_path: str | Path):
        """
        Initialize the config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Report configuration file not found: {config_path}")

    def load(self) -> ReportConfig:
        """
        Load and validate the configuration.

        Returns:
            ReportConfig

        Raises:
            ValueError: If the YAML is invalid or a value fails validation
        """
        try:
            with open(self.config_path) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {self.config_path}: {e}") from e

        if config is None:
            return ReportConfig()
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        unknown = set(config) - set(self.SECTIONS)
        if unknown:
            raise ValueError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

        try:
            return ReportConfig(**self._flatten(config))
        except PydanticValidationError as e:
            raise ValueError(f"Invalid report configuration in {self.config_path}: {e}") from e

    def _flatten(self, config: dict[str, Any]) -> dict[str, Any]:
        """Map the sectioned YAML layout onto ReportConfig fields."""
        values: dict[str, Any] = {}

        if config.get("as_of") is not None:
            values["as_of"] = config["as_of"]

        bucketing = self._section(config, "bucketing")
        for key in ("date_field", "sales_field", "monetary_field"):
            if key in bucketing:
                values[key] = bucketing[key]

        rfm = self._section(config, "rfm")
        if "thresholds" in rfm:
            values["rfm_thresholds"] = rfm["thresholds"]
        if "bands" in rfm:
            values["rfm_bands"] = rfm["bands"]
        if "new_group_label" in rfm:
            values["new_group_label"] = rfm["new_group_label"]

        summary = self._section(config, "order_summary")
        if "high_discount_threshold" in summary:
            values["high_discount_threshold"] = summary["high_discount_threshold"]

        location = self._section(config, "location")
        for key in ("unknown_city", "unknown_region"):
            if key in location:
                values[key] = location[key]

        return values

    def _section(self, config: dict[str, Any], name: str) -> dict[str, Any]:
        section = config.get(name) or {}
        if not isinstance(section, dict):
            raise ValueError(f"Section '{name}' must be a mapping")
        return section


class ReportConfigBuilder:
    """
    Programmatically build report configurations (for testing or dynamic runs).
    """

    def __init__(self, base: ReportConfig | None = None):
        """Start from ``base`` or the defaults."""
        self._values: dict[str, Any] = (base or ReportConfig()).model_dump()

    def as_of(self, day: date) -> "ReportConfigBuilder":
        self._values["as_of"] = day
        return self

    def rfm_thresholds(
        self,
        recency_days: list[float] | None = None,
        frequency: list[float] | None = None,
        monetary: list[float] | None = None,
    ) -> "ReportConfigBuilder":
        """Override one or more RFM ladders."""
        thresholds = dict(self._values["rfm_thresholds"])
        if recency_days is not None:
            thresholds["recency_days"] = recency_days
        if frequency is not None:
            thresholds["frequency"] = frequency
        if monetary is not None:
            thresholds["monetary"] = monetary
        self._values["rfm_thresholds"] = RfmThresholds(**thresholds).model_dump()
        return self

    def rfm_band(self, label: str, min_score: float) -> "ReportConfigBuilder":
        """Add a band; bands are kept ordered by descending min_score."""
        bands = [RfmBand(**band) for band in self._values["rfm_bands"] if band["label"] != label]
        bands.append(RfmBand(label=label, min_score=min_score))
        bands.sort(key=lambda band: band.min_score, reverse=True)
        self._values["rfm_bands"] = [band.model_dump() for band in bands]
        return self

    def high_discount_threshold(self, amount: float) -> "ReportConfigBuilder":
        self._values["high_discount_threshold"] = amount
        return self

    def date_field(self, name: str) -> "ReportConfigBuilder":
        """Bucket by another order timestamp (created_at or processed_at)."""
        self._values["date_field"] = name
        return self

    def sales_field(self, name: str) -> "ReportConfigBuilder":
        self._values["sales_field"] = name
        return self

    def monetary_field(self, name: str) -> "ReportConfigBuilder":
        self._values["monetary_field"] = name
        return self

    def build(self) -> ReportConfig:
        """Build and return the validated configuration."""
        return ReportConfig(**self._values)
