from dataclasses import dataclass
from typing import Iterable

from loguru import logger

from .candidates import RelationshipCandidate


@dataclass(frozen=True)
class ValidationResult:
    valid_references: int
    total_references: int

    @property
    def score(self) -> float:
        if self.total_references == 0:
            return 0.0
        return self.valid_references / self.total_references


class CrossTableValidator:
    """
    Checks how many sampled source references exist in the target's key set.
    """

    def validate(self, references: Iterable[str], target_keys: Iterable[str]) -> ValidationResult:
        distinct_refs = dict.fromkeys(references)
        keys = target_keys if isinstance(target_keys, (set, frozenset)) else set(target_keys)
        valid = sum(1 for ref in distinct_refs if ref in keys)
        return ValidationResult(valid_references=valid, total_references=len(distinct_refs))

    def validate_candidate(
        self, candidate: RelationshipCandidate, target_keys: Iterable[str]
    ) -> ValidationResult:
        result = self.validate(candidate.field_stats.sampled_keys, target_keys)
        logger.debug(
            "Cross-table validation for {}.{} -> {}: {}/{} ({:.2f})",
            candidate.source_table, candidate.source_field, candidate.target_table,
            result.valid_references, result.total_references, result.score,
        )
        return result
