# ==============================================
# DataRelationshipDetector
# ==============================================
#
# PURPOSE:
#   Propose relationships purely from observed values, independent of
#   any declared schema. For one ordered pair (source, target) it
#   compares every key-like source column against the target's
#   identifier set.
#
#   For each eligible column:
#     sourceValues  = distinct sampled keys of the column (≤ sample cap)
#     targetValues  = target's identifier key set         (≤ sample cap)
#     matchRatio    = |∩| / |sourceValues|
#     coverageRatio = |∩| / |targetValues|
#   A candidate is proposed only if matchRatio ≥ 0.5 AND |∩| ≥ 3.
#
#   Skipped columns:
#     - named "id" (any case), or starting with "_"
#     - fewer than min_non_null_values non-null observations
#
# ==============================================

from typing import List, Optional, Sequence

from loguru import logger

from .candidates import OverlapStatistics, RelationshipCandidate
from .collector import TableStatistics
from .decision import InferenceThresholds, Provenance
from .field_stats import FieldStatistics


class DataRelationshipDetector:
    """
    Pairwise value-overlap detector.
    """

    def __init__(self, thresholds: InferenceThresholds = None):
        self.thresholds = thresholds or InferenceThresholds()

    def is_identifier_column(self, field_name: str) -> bool:
        return field_name.lower() == "id" or field_name.startswith("_")

    def eligible_fields(self, source: TableStatistics) -> List[FieldStatistics]:
        """
        Source columns worth comparing.

        Args:
            source: Collected statistics of the source table

        Returns:
            Field statistics in the table's field order
        """
        eligible = []
        for name, stats in source.fields.items():
            if self.is_identifier_column(name):
                continue
            if stats.non_null_count < self.thresholds.min_non_null_values:
                logger.debug("Skipping {}.{}: only {} non-null values", source.table, name, stats.non_null_count)
                continue
            eligible.append(stats)
        return eligible

    def detect_pair(
        self,
        source: TableStatistics,
        target_table: str,
        target_keys: Sequence[str],
        target_table_id: Optional[str] = None,
    ) -> List[RelationshipCandidate]:
        """
        Compare every eligible source column against the target's key set.

        Args:
            source: Collected statistics of the source table
            target_table: Target table name
            target_keys: Sampled identifier keys of the target
            target_table_id: Target table id, carried onto candidates

        Returns:
            Candidates with provenance DATA, in source field order
        """
        key_set = set(target_keys)
        candidates = []

        for stats in self.eligible_fields(source):
            source_values = stats.sampled_keys
            if not source_values:
                continue

            intersection = sum(1 for value in source_values if value in key_set)
            overlap = OverlapStatistics(
                source_sample_size=len(source_values),
                target_sample_size=len(key_set),
                intersection_size=intersection,
            )

            if overlap.match_ratio < self.thresholds.min_match_ratio or intersection < self.thresholds.min_intersection:
                continue

            logger.debug(
                "Overlap candidate {}.{} -> {}: match={:.2f} coverage={:.2f} shared={}",
                source.table, stats.name, target_table,
                overlap.match_ratio, overlap.coverage_ratio, intersection,
            )
            candidates.append(RelationshipCandidate(
                source_table=source.table,
                source_field=stats.name,
                target_table=target_table,
                target_table_id=target_table_id,
                provenance=Provenance.DATA,
                field_stats=stats,
                overlap=overlap,
            ))

        return candidates
