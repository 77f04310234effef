"""
Relationship reconstructor: second stage of the pipeline.

Re-attaches the children filed by the classifier to their root entities.
"""

from dataclasses import dataclass

from export_insights.core.classifier import ClassifiedRecords
from export_insights.core.models import CHILD_COLLECTIONS, ExportModel, kind_of
from export_insights.observability.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ReconstructedEntities:
    """
    Roots with their child collections populated.

    Attributes:
        entities: Root id -> root entity with children attached
        orphaned_children: Children whose parent id matched no root
        orphaned_parents: Distinct parent ids that matched no root
    """

    entities: dict[str, ExportModel]
    orphaned_children: int = 0
    orphaned_parents: int = 0


class RelationshipReconstructor:
    """
    Attaches child lists to their roots.

    For every (parent id, kind) group whose parent is a known root, the group
    replaces that root's collection for the kind. Roots are copied, never
    mutated in place, so reconstructing the same classifier output twice
    yields the same attachment.
    """

    def reconstruct(self, classified: ClassifiedRecords) -> ReconstructedEntities:
        """
        Rebuild parent/child relationships for one run.

        Args:
            classified: Output of RecordClassifier.classify

        Returns:
            ReconstructedEntities; orphans are counted, never synthesized
        """
        entities = {
            root_id: root.model_copy(deep=True)
            for root_id, root in classified.roots_by_id.items()
        }

        orphaned_children = 0
        orphaned_parents: set[str] = set()

        for (parent_id, child_kind), children in classified.children_by_parent.items():
            root = entities.get(parent_id)
            if root is None:
                orphaned_children += len(children)
                orphaned_parents.add(parent_id)
                continue

            collection = CHILD_COLLECTIONS.get((kind_of(root), child_kind))
            if collection is None:
                # The classifier only files children a root kind can own
                raise ValueError(
                    f"{kind_of(root).value} {parent_id} cannot own {child_kind.value} children"
                )

            setattr(root, collection, [child.model_copy() for child in children.values()])

        if orphaned_children:
            logger.warning(
                f"Dropped {orphaned_children} orphaned children of {len(orphaned_parents)} missing parents",
                extra={"orphaned_children": orphaned_children, "orphaned_parents": len(orphaned_parents)},
            )

        logger.info(
            f"Reconstructed {len(entities)} root entities",
            extra={"roots": len(entities), "orphaned_children": orphaned_children},
        )

        return ReconstructedEntities(
            entities=entities,
            orphaned_children=orphaned_children,
            orphaned_parents=len(orphaned_parents),
        )
