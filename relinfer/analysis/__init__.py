# ==============================================
# TOPIC 2: ANALYSIS & INFERENCE
# ==============================================
#
# This package observes field patterns across tables and turns
# them into scored, reconciled relationship recommendations.
#
# Steps:
#   Step 1 (Observation):    records → FieldStatistics per field
#   Step 2 (Candidates):     declared links + pairwise value overlap
#   Step 3 (Classification): evidence → cardinality (fixed rules)
#   Step 4 (Scoring):        four weighted factors → confidence + bucket
#   Step 5 (Reconciliation): schema ∪ data, one entry per key
#
# Modules:
# --------
# - field_stats.py      → FieldStatsAccumulator / FieldStatistics / histogram
# - collector.py        → Scan a table, produce TableStatistics
# - schema_extractor.py → Declared link fields → DeclaredLink
# - detector.py         → Pairwise overlap → data candidates
# - classifier.py       → Cardinality rules
# - validator.py        → Sampled references vs. target key set
# - scorer.py           → Confidence, bucket, justification
# - reconciler.py       → Merge by (sourceTable, sourceField, targetTable)
# - candidates.py       → Candidate / recommendation data classes
# - decision.py         → Enums, thresholds, ForeignKeyPlacement
#
# ==============================================

from .decision import (
    Cardinality,
    ConfidenceBucket,
    ForeignKeyPlacement,
    InferenceThresholds,
    JunctionColumn,
    JunctionTable,
    OneToOneOwnership,
    Provenance,
)
from .field_stats import ArrayLengthHistogram, FieldStatistics, FieldStatsAccumulator, ValueShape
from .collector import FieldStatisticsCollector, TableStatistics, build_identifier_index
from .candidates import (
    ConfidenceFactors,
    OverlapStatistics,
    RelationshipCandidate,
    RelationshipRecommendation,
)
from .schema_extractor import DeclaredLink, SchemaRelationshipExtractor
from .detector import DataRelationshipDetector
from .classifier import CardinalityClassifier, CardinalityDecision
from .validator import CrossTableValidator, ValidationResult
from .scorer import ConfidenceScorer
from .reconciler import RelationshipReconciler

__all__ = [
    "ArrayLengthHistogram",
    "Cardinality",
    "CardinalityClassifier",
    "CardinalityDecision",
    "ConfidenceBucket",
    "ConfidenceFactors",
    "ConfidenceScorer",
    "CrossTableValidator",
    "DataRelationshipDetector",
    "DeclaredLink",
    "FieldStatistics",
    "FieldStatisticsCollector",
    "FieldStatsAccumulator",
    "ForeignKeyPlacement",
    "InferenceThresholds",
    "JunctionColumn",
    "JunctionTable",
    "OneToOneOwnership",
    "OverlapStatistics",
    "Provenance",
    "RelationshipCandidate",
    "RelationshipReconciler",
    "RelationshipRecommendation",
    "SchemaRelationshipExtractor",
    "TableStatistics",
    "ValidationResult",
    "ValueShape",
    "build_identifier_index",
]
