# ==============================================
# ConfidenceScorer
# ==============================================
#
# PURPOSE:
#   Combine four evidence factors into one confidence in [0, 1],
#   assign the review bucket, and write the justification.
#
#   confidence = 0.3 · completeness
#              + 0.2 · sample adequacy
#              + 0.3 · pattern consistency
#              + 0.2 · cross-table validation
#
#   completeness         = 1 − null / total
#   sample adequacy      = min(observed sample / MIN_SAMPLE_SIZE, 1)
#   pattern consistency  = one-to-one, many-to-one → single-reference ratio
#                          one-to-many             → min(2 · min(single, multi), 1)
#                          many-to-many            → multi-reference ratio
#   cross-table          = ValidationResult.score
#
#   Declared (schema) links whose target resolved never score below
#   the schema baseline (0.75).
#
#   Candidates with fewer than MIN_SAMPLE_SIZE observations are not
#   scored: score() logs the reason and returns None.
#
# ==============================================

from typing import Optional

from loguru import logger

from .candidates import ConfidenceFactors, RelationshipCandidate, RelationshipRecommendation
from .classifier import CardinalityDecision
from .decision import Cardinality, ConfidenceBucket, Provenance
from .validator import ValidationResult

MIN_SAMPLE_SIZE = 10
AUTO_SUGGEST_THRESHOLD = 0.70
SCHEMA_BASELINE_CONFIDENCE = 0.75


def _pct(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"


class ConfidenceScorer:
    """
    Turns classified, validated candidates into recommendations.
    """

    def __init__(
        self,
        min_sample_size: int = MIN_SAMPLE_SIZE,
        auto_suggest_threshold: float = AUTO_SUGGEST_THRESHOLD,
        schema_baseline: float = SCHEMA_BASELINE_CONFIDENCE,
    ):
        self.min_sample_size = min_sample_size
        self.auto_suggest_threshold = auto_suggest_threshold
        self.schema_baseline = schema_baseline

    def insufficient_sample_reason(self, candidate: RelationshipCandidate) -> Optional[str]:
        total = candidate.field_stats.total_count
        if total >= self.min_sample_size:
            return None
        return (
            f"{candidate.source_table}.{candidate.source_field} -> {candidate.target_table}: "
            f"insufficient data ({total} observations, minimum {self.min_sample_size})"
        )

    def calculate_factors(
        self,
        candidate: RelationshipCandidate,
        cardinality: Cardinality,
        validation: ValidationResult,
    ) -> ConfidenceFactors:
        stats = candidate.field_stats
        completeness = 1 - (stats.null_count / stats.total_count) if stats.total_count else 0.0
        sample_adequacy = min(stats.observed_sample_size / self.min_sample_size, 1.0)

        single = stats.single_reference_ratio
        multi = stats.multi_reference_ratio
        if cardinality in (Cardinality.ONE_TO_ONE, Cardinality.MANY_TO_ONE):
            consistency = single
        elif cardinality is Cardinality.ONE_TO_MANY:
            consistency = min(2 * min(single, multi), 1.0)
        else:
            consistency = multi

        return ConfidenceFactors(
            completeness=completeness,
            sample_adequacy=sample_adequacy,
            pattern_consistency=consistency,
            cross_table_validation=validation.score,
        )

    def bucket_for(self, confidence: float) -> ConfidenceBucket:
        if confidence >= self.auto_suggest_threshold:
            return ConfidenceBucket.AUTO_SUGGEST
        return ConfidenceBucket.MANUAL_REVIEW

    def score(
        self,
        candidate: RelationshipCandidate,
        decision: CardinalityDecision,
        validation: ValidationResult,
    ) -> Optional[RelationshipRecommendation]:
        """
        Score one candidate.

        Args:
            candidate: The candidate being scored
            decision: Its cardinality decision
            validation: Its cross-table validation result

        Returns:
            A RelationshipRecommendation, or None when the sample is too small
        """
        reason = self.insufficient_sample_reason(candidate)
        if reason is not None:
            logger.info("Skipping {}", reason)
            return None

        factors = self.calculate_factors(candidate, decision.cardinality, validation)
        raw = sum(score * weight for _, score, weight in factors.weighted())
        confidence = round(max(0.0, min(1.0, raw)), 4)

        baseline_applied = (
            candidate.provenance is Provenance.SCHEMA
            and not candidate.unresolved_target
            and confidence < self.schema_baseline
        )
        if baseline_applied:
            confidence = self.schema_baseline

        reasoning = self._reasoning(candidate, decision, factors, confidence, baseline_applied)
        return RelationshipRecommendation(
            candidate=candidate.with_cardinality(decision.cardinality),
            cardinality=decision.cardinality,
            confidence=confidence,
            factors=factors,
            reasoning=reasoning,
            provenance=candidate.provenance,
            bucket=self.bucket_for(confidence),
        )

    def _reasoning(
        self,
        candidate: RelationshipCandidate,
        decision: CardinalityDecision,
        factors: ConfidenceFactors,
        confidence: float,
        baseline_applied: bool,
    ) -> str:
        parts = [
            f"Detected {decision.cardinality.value} relationship with {_pct(confidence)} confidence.",
            f"{decision.explanation}.",
        ]
        if baseline_applied:
            parts.append(f"Declared schema link keeps the {_pct(self.schema_baseline)} baseline.")
        if candidate.unresolved_target:
            parts.append(f"Target table '{candidate.target_table}' was not found among the analysed tables.")

        label, score, _ = factors.dominant()
        parts.append(f"Primary confidence factor: {label} ({_pct(score)}).")
        return " ".join(parts)
