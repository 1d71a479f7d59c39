# ==============================================
# CardinalityClassifier
# ==============================================
#
# PURPOSE:
#   Takes a relationship candidate's evidence and applies fixed numeric
#   rules to assign a cardinality. Every result carries the rule that
#   fired and a sentence quoting the numbers, which ends up verbatim in
#   the recommendation's justification.
#
# CLASS: CardinalityClassifier
# ----------------------------
#   Stateless: evidence in, CardinalityDecision out.
#
#   Constructor:
#   ------------
#   - __init__(thresholds: InferenceThresholds)
#
#   Methods:
#   --------
#   - classify(candidate) -> CardinalityDecision
#       Picks the evidence, applies the matching rule set, then the
#       reference-reuse refinement:
#
#       EVIDENCE 1: ARRAY-LENGTH HISTOGRAM
#         Source field observed non-empty arrays → classify_array_lengths()
#
#       EVIDENCE 2: OVERLAP STATISTICS
#         Candidate carries overlap stats → classify_overlap()
#
#       EVIDENCE 3: NOTHING OBSERVED
#         Declared link with no references → one-to-many
#
#       REFINEMENT: REFERENCE REUSE
#         one-to-one, but fewer than 90% of the source's references are
#         distinct → many-to-one (several source records share a target)
#
#   - classify_array_lengths(single_value_ratio, max_length, average_length)
#       RULE 1: single > 0.8 AND max <= 2     → one-to-one
#       RULE 2: single > 0.3 AND average < 3  → one-to-many
#       RULE 3: otherwise                     → many-to-many
#
#   - classify_overlap(match_ratio, coverage_ratio)
#       RULE 1: match > 0.9 AND coverage > 0.9 → one-to-one
#       RULE 2: match > 0.7                    → many-to-one
#       RULE 3: otherwise                      → one-to-many
#
# ==============================================

from dataclasses import dataclass, replace

from .candidates import RelationshipCandidate
from .decision import Cardinality, InferenceThresholds
from .field_stats import FieldStatistics, ValueShape


@dataclass(frozen=True)
class CardinalityDecision:
    cardinality: Cardinality
    rule: str  # e.g. "histogram:one-to-one", "overlap:many-to-one", "reuse:many-to-one"
    explanation: str


def _pct(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"


class CardinalityClassifier:
    """
    Applies ordered threshold rules to candidate evidence.
    """

    def __init__(self, thresholds: InferenceThresholds = None):
        """
        Args:
            thresholds: Optional InferenceThresholds. Defaults are used if omitted.
        """
        self.thresholds = thresholds or InferenceThresholds()

    def classify(self, candidate: RelationshipCandidate) -> CardinalityDecision:
        """
        Classify one candidate.

        Args:
            candidate: Candidate with field statistics and optional overlap stats

        Returns:
            The CardinalityDecision, including the justification sentence
        """
        stats = candidate.field_stats
        histogram = stats.histogram

        # EVIDENCE 1: per-record array lengths
        if stats.shape is ValueShape.MULTI_VALUED and histogram.single_count + histogram.multi_count > 0:
            decision = self.classify_array_lengths(
                histogram.single_value_ratio,
                histogram.max_length,
                histogram.average_length,
            )
        # EVIDENCE 2: pairwise value overlap
        elif candidate.overlap is not None:
            decision = self.classify_overlap(
                candidate.overlap.match_ratio,
                candidate.overlap.coverage_ratio,
            )
        # EVIDENCE 3: declared link, nothing observed
        else:
            decision = CardinalityDecision(
                cardinality=Cardinality.ONE_TO_MANY,
                rule="default:one-to-many",
                explanation="Declared link with no observed references; defaulting to one-to-many",
            )

        return self._refine_for_reuse(decision, stats)

    def classify_array_lengths(
        self,
        single_value_ratio: float,
        max_length: int,
        average_length: float,
    ) -> CardinalityDecision:
        t = self.thresholds

        # RULE 1: nearly every record holds exactly one reference
        if single_value_ratio > t.one_to_one_single_ratio and max_length <= t.one_to_one_max_length:
            return CardinalityDecision(
                cardinality=Cardinality.ONE_TO_ONE,
                rule="histogram:one-to-one",
                explanation=(
                    f"Most linked records ({_pct(single_value_ratio)}) hold exactly one reference "
                    f"(max {max_length} per record)"
                ),
            )

        # RULE 2: mixed single / multiple references, short arrays
        if single_value_ratio > t.one_to_many_single_ratio and average_length < t.one_to_many_max_average:
            return CardinalityDecision(
                cardinality=Cardinality.ONE_TO_MANY,
                rule="histogram:one-to-many",
                explanation=(
                    f"Mixed pattern with {_pct(single_value_ratio)} single references and "
                    f"average {average_length:.1f} references per record"
                ),
            )

        # RULE 3: predominantly multiple references
        return CardinalityDecision(
            cardinality=Cardinality.MANY_TO_MANY,
            rule="histogram:many-to-many",
            explanation=(
                f"Predominantly multiple references ({_pct(1 - single_value_ratio)}) with "
                f"average {average_length:.1f} references per record"
            ),
        )

    def classify_overlap(self, match_ratio: float, coverage_ratio: float) -> CardinalityDecision:
        t = self.thresholds
        numbers = f"(match {_pct(match_ratio)}, coverage {_pct(coverage_ratio)})"

        # RULE 1: both sides almost fully covered
        if match_ratio > t.one_to_one_match_ratio and coverage_ratio > t.one_to_one_coverage_ratio:
            return CardinalityDecision(
                cardinality=Cardinality.ONE_TO_ONE,
                rule="overlap:one-to-one",
                explanation=f"High overlap {numbers} suggests one-to-one",
            )

        # RULE 2: source values mostly found in the target
        if match_ratio > t.many_to_one_match_ratio:
            return CardinalityDecision(
                cardinality=Cardinality.MANY_TO_ONE,
                rule="overlap:many-to-one",
                explanation=f"Good overlap {numbers} suggests many-to-one",
            )

        # RULE 3: partial overlap
        return CardinalityDecision(
            cardinality=Cardinality.ONE_TO_MANY,
            rule="overlap:one-to-many",
            explanation=f"Moderate overlap {numbers} suggests one-to-many",
        )

    def _refine_for_reuse(self, decision: CardinalityDecision, stats: FieldStatistics) -> CardinalityDecision:
        if decision.cardinality is not Cardinality.ONE_TO_ONE:
            return decision

        ratio = stats.distinct_reference_ratio
        if ratio is None or ratio >= self.thresholds.min_distinct_reference_ratio:
            return decision

        if stats.shape is ValueShape.MULTI_VALUED:
            distinct, observed = len(stats.referenced_ids), stats.reference_count
        else:
            distinct, observed = len(stats.distinct_values), stats.scalar_count

        return replace(
            decision,
            cardinality=Cardinality.MANY_TO_ONE,
            rule="reuse:many-to-one",
            explanation=(
                f"{decision.explanation}; references repeat across records "
                f"({distinct} distinct of {observed}), so several source records share one target"
            ),
        )
