# ==============================================
# Candidates & Recommendations (Data Classes)
# ==============================================
#
# - OverlapStatistics          → value-set overlap between a source column
#                                and a target's identifier set
# - RelationshipCandidate      → one hypothesized relationship + raw evidence
# - ConfidenceFactors          → the four weighted evidence scores
# - RelationshipRecommendation → a scored, explained candidate
#
# All frozen: produced once, then passed along the pipeline.
#
# ==============================================

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

from relinfer.errors import UnresolvedReferenceError
from .decision import Cardinality, ConfidenceBucket, ForeignKeyPlacement, Provenance
from .field_stats import FieldStatistics

DEFAULT_TARGET_FIELD = "id"


@dataclass(frozen=True)
class OverlapStatistics:
    source_sample_size: int
    target_sample_size: int
    intersection_size: int

    @property
    def match_ratio(self) -> float:
        if self.source_sample_size == 0:
            return 0.0
        return self.intersection_size / self.source_sample_size

    @property
    def coverage_ratio(self) -> float:
        if self.target_sample_size == 0:
            return 0.0
        return self.intersection_size / self.target_sample_size

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceSampleSize": self.source_sample_size,
            "targetSampleSize": self.target_sample_size,
            "intersectionSize": self.intersection_size,
            "matchRatio": round(self.match_ratio, 4),
            "coverageRatio": round(self.coverage_ratio, 4),
        }


@dataclass(frozen=True)
class RelationshipCandidate:
    """
    A hypothesized relationship source_table.source_field → target_table.

    source_table == target_table is allowed (self-reference).
    """
    source_table: str
    source_field: str
    target_table: str
    provenance: Provenance
    field_stats: FieldStatistics
    target_table_id: Optional[str] = None
    target_field: str = DEFAULT_TARGET_FIELD
    overlap: Optional[OverlapStatistics] = None
    unresolved: Optional[UnresolvedReferenceError] = None
    cardinality: Optional[Cardinality] = None

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.source_table, self.source_field, self.target_table)

    @property
    def is_self_reference(self) -> bool:
        return self.source_table == self.target_table

    @property
    def unresolved_target(self) -> bool:
        return self.unresolved is not None

    def with_cardinality(self, cardinality: Cardinality) -> "RelationshipCandidate":
        return replace(self, cardinality=cardinality)


@dataclass(frozen=True)
class ConfidenceFactors:
    completeness: float
    sample_adequacy: float
    pattern_consistency: float
    cross_table_validation: float

    # (display name, attribute, weight) in scoring order
    WEIGHTS = (
        ("Data Completeness", "completeness", 0.3),
        ("Sample Size", "sample_adequacy", 0.2),
        ("Pattern Consistency", "pattern_consistency", 0.3),
        ("Cross-table Validation", "cross_table_validation", 0.2),
    )

    def weighted(self) -> List[Tuple[str, float, float]]:
        return [(label, getattr(self, attr), weight) for label, attr, weight in self.WEIGHTS]

    def dominant(self) -> Tuple[str, float, float]:
        """The factor with the highest score × weight. Ties go to the earlier factor."""
        best = None
        for entry in self.weighted():
            if best is None or entry[1] * entry[2] > best[1] * best[2]:
                best = entry
        return best

    def to_list(self) -> List[Dict[str, Any]]:
        return [
            {"factor": label, "score": round(score, 4), "weight": weight}
            for label, score, weight in self.weighted()
        ]


@dataclass(frozen=True)
class RelationshipRecommendation:
    """
    A candidate enriched with its final confidence, bucket and justification.
    """
    candidate: RelationshipCandidate
    cardinality: Cardinality
    confidence: float
    factors: ConfidenceFactors
    reasoning: str
    provenance: Provenance
    bucket: ConfidenceBucket
    placement: Optional[ForeignKeyPlacement] = None

    @property
    def key(self) -> Tuple[str, str, str]:
        return self.candidate.key

    @property
    def source_table(self) -> str:
        return self.candidate.source_table

    @property
    def source_field(self) -> str:
        return self.candidate.source_field

    @property
    def target_table(self) -> str:
        return self.candidate.target_table

    @property
    def target_field(self) -> str:
        return self.candidate.target_field

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceTable": self.source_table,
            "sourceField": self.source_field,
            "targetTable": self.target_table,
            "targetField": self.target_field,
            "cardinality": self.cardinality.value,
            "confidence": self.confidence,
            "provenance": self.provenance.value,
            "bucket": self.bucket.value,
            "reasoning": self.reasoning,
            "confidenceFactors": self.factors.to_list(),
            "placement": self.placement.to_dict() if self.placement else None,
        }
