# ==============================================
# AnalysisReport
# ==============================================
#
# PURPOSE:
#   The top-level output of one inference run, and the contract the
#   schema-apply step and any review UI read:
#
#   {
#     relationships:   [ {sourceTable, sourceField, targetTable, targetField,
#                         cardinality, confidence, provenance, bucket,
#                         reasoning, confidenceFactors, placement} ],
#     summary:         {totalTables, totalRelationships, highConfidenceCount,
#                       lowConfidenceCount, byProvenance, byCardinality},
#     potentialIssues: [string],
#     cancelled:       bool
#   }
#
#   No timestamps: identical input gives byte-identical JSON.
#
# ==============================================

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from relinfer.analysis.candidates import RelationshipRecommendation
from relinfer.analysis.decision import Cardinality, ConfidenceBucket, ForeignKeyPlacement, Provenance


@dataclass(frozen=True)
class AnalysisReport:
    recommendations: List[RelationshipRecommendation] = field(default_factory=list)
    total_tables: int = 0
    potential_issues: List[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def placements(self) -> List[ForeignKeyPlacement]:
        return [rec.placement for rec in self.recommendations if rec.placement is not None]

    @property
    def high_confidence(self) -> List[RelationshipRecommendation]:
        return [rec for rec in self.recommendations if rec.bucket is ConfidenceBucket.AUTO_SUGGEST]

    def summary(self) -> Dict[str, Any]:
        by_provenance = {provenance.value: 0 for provenance in Provenance}
        by_cardinality = {cardinality.value: 0 for cardinality in Cardinality}
        for rec in self.recommendations:
            by_provenance[rec.provenance.value] += 1
            by_cardinality[rec.cardinality.value] += 1

        high = len(self.high_confidence)
        return {
            "totalTables": self.total_tables,
            "totalRelationships": len(self.recommendations),
            "highConfidenceCount": high,
            "lowConfidenceCount": len(self.recommendations) - high,
            "byProvenance": by_provenance,
            "byCardinality": by_cardinality,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "relationships": [rec.to_dict() for rec in self.recommendations],
            "summary": self.summary(),
            "potentialIssues": list(self.potential_issues),
            "cancelled": self.cancelled,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def placements_from_report(data: Mapping[str, Any]) -> List[ForeignKeyPlacement]:
    """
    Read the placements back out of a serialized report.

    Args:
        data: A report dict as produced by AnalysisReport.to_dict()

    Returns:
        One ForeignKeyPlacement per relationship that carries one, in report order
    """
    if not isinstance(data, Mapping) or not isinstance(data.get("relationships"), list):
        raise ValueError("Report must be an object with a 'relationships' list")
    return [
        ForeignKeyPlacement.from_dict(entry["placement"])
        for entry in data["relationships"]
        if entry.get("placement")
    ]
