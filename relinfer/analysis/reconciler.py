# ==============================================
# RelationshipReconciler
# ==============================================
#
# PURPOSE:
#   Merge schema-declared and data-driven recommendations into one
#   de-duplicated list keyed by (sourceTable, sourceField, targetTable).
#
#   - key in both sets  → keep the higher confidence, provenance HYBRID
#                         (ties keep the schema side's cardinality)
#   - key in one set    → passed through unchanged
#   - output            → stable sort by descending confidence
#
#   Two recommendations sharing a key inside one input set, or in the
#   output, raise InternalInvariantError.
#
# ==============================================

from dataclasses import replace
from typing import Dict, Iterable, List, Tuple

from loguru import logger

from relinfer.errors import InternalInvariantError
from .candidates import RelationshipRecommendation
from .decision import Provenance

HYBRID_NOTE = "Confirmed by both declared schema link and observed data."

Key = Tuple[str, str, str]


class RelationshipReconciler:

    def reconcile(
        self,
        schema_recommendations: Iterable[RelationshipRecommendation],
        data_recommendations: Iterable[RelationshipRecommendation],
    ) -> List[RelationshipRecommendation]:
        """
        Merge both recommendation sets.

        Args:
            schema_recommendations: Scored declared links
            data_recommendations: Scored overlap candidates

        Returns:
            Unique-by-key recommendations, highest confidence first
        """
        schema_index = self._index(schema_recommendations, "schema")
        data_index = self._index(data_recommendations, "data")

        merged: List[RelationshipRecommendation] = []
        for key, schema_rec in schema_index.items():
            data_rec = data_index.get(key)
            if data_rec is None:
                merged.append(schema_rec)
            else:
                merged.append(self._merge_pair(schema_rec, data_rec))

        for key, data_rec in data_index.items():
            if key not in schema_index:
                merged.append(data_rec)

        merged.sort(key=lambda rec: -rec.confidence)
        self.verify_unique(merged)

        hybrid = sum(1 for rec in merged if rec.provenance is Provenance.HYBRID)
        logger.info(
            "Reconciled {} schema + {} data recommendations into {} ({} hybrid)",
            len(schema_index), len(data_index), len(merged), hybrid,
        )
        return merged

    def _merge_pair(
        self, schema_rec: RelationshipRecommendation, data_rec: RelationshipRecommendation
    ) -> RelationshipRecommendation:
        winner = schema_rec if schema_rec.confidence >= data_rec.confidence else data_rec
        return replace(
            winner,
            provenance=Provenance.HYBRID,
            confidence=max(schema_rec.confidence, data_rec.confidence),
            reasoning=f"{winner.reasoning} {HYBRID_NOTE}",
        )

    def _index(
        self, recommendations: Iterable[RelationshipRecommendation], label: str
    ) -> Dict[Key, RelationshipRecommendation]:
        index: Dict[Key, RelationshipRecommendation] = {}
        for rec in recommendations:
            if rec.key in index:
                raise InternalInvariantError(f"Duplicate {label} recommendation for key {rec.key}")
            index[rec.key] = rec
        return index

    @staticmethod
    def verify_unique(recommendations: Iterable[RelationshipRecommendation]) -> None:
        seen = set()
        for rec in recommendations:
            if rec.key in seen:
                raise InternalInvariantError(f"Duplicate reconciled relationship for key {rec.key}")
            seen.add(rec.key)
