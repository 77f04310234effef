"""
Accumulator model holding the running totals for one bucket (ephemeral).
"""

from typing import Any, Iterator

from pydantic import BaseModel, Field


class Accumulator(BaseModel):
    """
    Mutable aggregate state for one bucket.

    Sums and counts grow while entities are folded in. Distinct counts are
    kept as sets of entity ids so that repeated contributions from the same
    entity never double-count. Derived metrics (rates, averages) are set
    exactly once by ``finalize`` after folding is closed.

    Attributes:
        key: The bucket key
        counts: Plain counters (e.g. orders)
        sums: Monetary sums (e.g. gross_sales)
        members: Distinct entity ids per field (e.g. customers)
        attributes: Descriptive values carried into the row (e.g. email)
        derived: Metrics computed at finalization
        finalized: Whether finalization has run
    """

    key: tuple[Any, ...]
    counts: dict[str, int] = Field(default_factory=dict)
    sums: dict[str, float] = Field(default_factory=dict)
    members: dict[str, set[str]] = Field(default_factory=dict)
    attributes: dict[str, Any] = Field(default_factory=dict)
    derived: dict[str, Any] = Field(default_factory=dict)
    finalized: bool = False

    def _check_open(self) -> None:
        if self.finalized:
            raise RuntimeError(f"Accumulator {self.key!r} is finalized and cannot change")

    def increment(self, field: str, by: int = 1) -> None:
        self._check_open()
        self.counts[field] = self.counts.get(field, 0) + by

    def add(self, field: str, amount: float) -> None:
        self._check_open()
        self.sums[field] = self.sums.get(field, 0.0) + amount

    def add_member(self, field: str, member_id: str) -> None:
        self._check_open()
        self.members.setdefault(field, set()).add(member_id)

    def set_attribute(self, field: str, value: Any) -> None:
        self._check_open()
        self.attributes[field] = value

    def count(self, field: str) -> int:
        return self.counts.get(field, 0)

    def total(self, field: str) -> float:
        return self.sums.get(field, 0.0)

    def distinct(self, field: str) -> int:
        return len(self.members.get(field, ()))

    def finalize(self, derived: dict[str, Any]) -> None:
        """Store all derived metrics at once and close the accumulator."""
        self._check_open()
        self.derived = dict(derived)
        self.finalized = True

    def metric(self, field: str) -> Any:
        """Read a derived metric; only valid after finalization."""
        if not self.finalized:
            raise RuntimeError(f"Accumulator {self.key!r} has not been finalized")
        return self.derived.get(field, 0.0)


class BucketTable:
    """
    One accumulator per distinct bucket key, created on first use.

    A table belongs to a single aggregation run and is never shared.
    """

    def __init__(self) -> None:
        self._buckets: dict[tuple[Any, ...], Accumulator] = {}

    def get(self, key: tuple[Any, ...]) -> Accumulator:
        """Return the accumulator for ``key``, creating it if needed."""
        accumulator = self._buckets.get(key)
        if accumulator is None:
            accumulator = Accumulator(key=key)
            self._buckets[key] = accumulator
        return accumulator

    def peek(self, key: tuple[Any, ...]) -> Accumulator:
        """Return the accumulator for ``key`` or an all-zero one, without storing it."""
        return self._buckets.get(key) or Accumulator(key=key)

    def __contains__(self, key: tuple[Any, ...]) -> bool:
        return key in self._buckets

    def __iter__(self) -> Iterator[Accumulator]:
        return iter(self._buckets.values())

    def __len__(self) -> int:
        return len(self._buckets)
