"""
Record classifier: first stage of the pipeline.

Parses each export line, decides whether it is a root, a child or
unrecognized, decodes it into a typed entity and files it into the
run-local mappings consumed by the reconstructor.
"""

import json
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from pydantic import ValidationError as PydanticValidationError

from export_insights.core.models import CHILD_COLLECTIONS, ENTITY_MODELS, EntityKind, ExportModel, RunStats
from export_insights.observability.logger import get_logger

from .identifiers import ID_FIELD, PARENT_FIELD, entity_kind, normalize_ids

logger = get_logger(__name__)


class RecordClass(str, Enum):
    ROOT = "root"
    CHILD = "child"
    UNRECOGNIZED = "unrecognized"


@dataclass
class ClassifiedRecords:
    """
    Output of the classifier for one run.

    Attributes:
        roots_by_id: Root entities keyed by global id
        children_by_parent: Child entities keyed by (parent id, child kind),
            then by child id in first-arrival order; a repeated child id
            keeps the latest line
        root_kinds: The root kinds this run classified against
        stats: Line counters
    """

    roots_by_id: dict[str, ExportModel] = field(default_factory=dict)
    children_by_parent: dict[tuple[str, EntityKind], dict[str, ExportModel]] = field(
        default_factory=lambda: defaultdict(dict)
    )
    root_kinds: frozenset[EntityKind] = frozenset()
    stats: RunStats = field(default_factory=RunStats)


class RecordClassifier:
    """
    Classifies raw export records against a set of root kinds.

    Rules, in order:
    1. the record's own id is a root kind -> root, keyed by id
    2. its parent reference is a root kind that owns children of its kind
       -> child, keyed by (parent id, kind)
    3. anything else -> unrecognized, counted and dropped

    A classifier keeps no state between calls to ``classify``.
    """

    def __init__(self, root_kinds: Iterable[EntityKind]):
        """
        Initialize the classifier.

        Args:
            root_kinds: Entity kinds that are roots in this export shape
        """
        self.root_kinds = frozenset(root_kinds)
        if not self.root_kinds:
            raise ValueError("At least one root kind is required")

    def classify_record(self, raw: dict[str, Any]) -> RecordClass:
        """Decide the class of one parsed record without decoding it."""
        own_kind = entity_kind(raw.get(ID_FIELD))
        if own_kind in self.root_kinds:
            return RecordClass.ROOT

        parent_kind = entity_kind(raw.get(PARENT_FIELD))
        if parent_kind in self.root_kinds and (parent_kind, own_kind) in CHILD_COLLECTIONS:
            return RecordClass.CHILD

        return RecordClass.UNRECOGNIZED

    def classify(self, lines: Iterable[str]) -> ClassifiedRecords:
        """
        Classify every line of an export.

        Args:
            lines: Raw text lines, read once from the start

        Returns:
            ClassifiedRecords with fresh mappings and counters
        """
        result = ClassifiedRecords(root_kinds=self.root_kinds)
        stats = result.stats

        for line_number, line in enumerate(lines, start=1):
            stats.lines_read += 1

            if not line.strip():
                stats.blank_lines += 1
                continue

            raw = self._parse_line(line, line_number)
            if raw is None:
                stats.malformed_lines += 1
                continue

            normalize_ids(raw)
            record_class = self.classify_record(raw)
            if record_class is RecordClass.UNRECOGNIZED:
                stats.unrecognized_records += 1
                continue

            kind = entity_kind(raw.get(ID_FIELD))
            entity = self._decode(kind, raw, line_number)
            if entity is None:
                stats.unrecognized_records += 1
                continue

            if record_class is RecordClass.ROOT:
                group = result.roots_by_id
            else:
                group = result.children_by_parent[(raw[PARENT_FIELD], kind)]

            if entity.id in group:
                logger.debug(f"Line {line_number}: duplicate {kind.value} {entity.id}, keeping the latest")
                stats.duplicate_records += 1
            elif record_class is RecordClass.ROOT:
                stats.roots += 1
            else:
                stats.children += 1
            group[entity.id] = entity

        logger.info(
            f"Classified {stats.lines_read} lines: {stats.roots} roots, {stats.children} children, "
            f"{stats.malformed_lines} malformed, {stats.unrecognized_records} unrecognized",
            extra={
                "lines_read": stats.lines_read,
                "roots": stats.roots,
                "children": stats.children,
                "malformed_lines": stats.malformed_lines,
                "unrecognized_records": stats.unrecognized_records,
                "duplicate_records": stats.duplicate_records,
            },
        )
        return result

    def _parse_line(self, line: str, line_number: int) -> dict[str, Any] | None:
        try:
            raw = json.loads(line)
        except json.JSONDecodeError as e:
            logger.debug(f"Line {line_number}: not valid JSON ({e.msg})")
            return None
        except RecursionError:
            logger.debug(f"Line {line_number}: JSON nested too deeply to decode")
            return None

        if not isinstance(raw, dict):
            logger.debug(f"Line {line_number}: expected a JSON object, got {type(raw).__name__}")
            return None

        return raw

    def _decode(self, kind: EntityKind, raw: dict[str, Any], line_number: int) -> ExportModel | None:
        model = ENTITY_MODELS[kind]
        try:
            return model.model_validate(raw)
        except PydanticValidationError as e:
            logger.debug(f"Line {line_number}: cannot decode {kind.value}: {e.error_count()} errors")
            return None
