# ==============================================
# SchemaRelationshipExtractor
# ==============================================
#
# PURPOSE:
#   Read declared link-field metadata and emit one DeclaredLink per
#   link field. Needs only table metadata, so it runs alongside the
#   statistics collector; the engine later pairs each link with its
#   field statistics to form a RelationshipCandidate.
#
#   A link whose target id matches no analysed table is still emitted,
#   with an UnresolvedReferenceError attached. The engine surfaces it
#   in the report's potential issues.
#
# ==============================================

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from loguru import logger

from relinfer.errors import UnresolvedReferenceError
from relinfer.normalization import SourceTable
from .candidates import RelationshipCandidate
from .decision import Provenance
from .field_stats import FieldStatistics


@dataclass(frozen=True)
class DeclaredLink:
    source_table: str
    source_field: str
    target_table: str  # Resolved table name, or the raw id when unresolved
    target_table_id: str
    unresolved: Optional[UnresolvedReferenceError] = None

    def to_candidate(self, field_stats: FieldStatistics) -> RelationshipCandidate:
        return RelationshipCandidate(
            source_table=self.source_table,
            source_field=self.source_field,
            target_table=self.target_table,
            target_table_id=self.target_table_id,
            provenance=Provenance.SCHEMA,
            field_stats=field_stats,
            unresolved=self.unresolved,
        )


class SchemaRelationshipExtractor:

    def extract(self, tables: Sequence[SourceTable]) -> List[DeclaredLink]:
        """
        Emit one DeclaredLink per link field, in table then field order.

        Args:
            tables: The analysed tables (their metadata is the link source)

        Returns:
            Declared links, including self-links and unresolved targets
        """
        by_id: Dict[str, SourceTable] = {}
        by_name: Dict[str, SourceTable] = {}
        for table in tables:
            by_id.setdefault(table.id, table)
            by_name.setdefault(table.name, table)

        links = []
        for table in tables:
            for definition in table.fields:
                if not definition.is_link:
                    continue

                target_id = definition.linked_table_id
                target = by_id.get(target_id) or by_name.get(target_id)
                if target is None:
                    error = UnresolvedReferenceError(table.name, definition.name, target_id)
                    logger.warning("Unresolved link target: {}", error)
                    links.append(DeclaredLink(
                        source_table=table.name,
                        source_field=definition.name,
                        target_table=target_id,
                        target_table_id=target_id,
                        unresolved=error,
                    ))
                    continue

                logger.debug("Declared link {}.{} -> {}", table.name, definition.name, target.name)
                links.append(DeclaredLink(
                    source_table=table.name,
                    source_field=definition.name,
                    target_table=target.name,
                    target_table_id=target.id,
                ))
        return links
