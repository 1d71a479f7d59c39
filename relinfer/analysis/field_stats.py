# ==============================================
# FieldStats
# ==============================================
#
# PURPOSE:
#   Hold everything observed about one (table, field) pair during an
#   analysis pass. This is the "evidence" that the detector, classifier,
#   validator and scorer consume.
#
# TWO CLASSES, TWO LIFECYCLES:
#   - FieldStatsAccumulator  → mutable, one per field per table, fed
#                              value by value. Two accumulators for the
#                              same field can be combined with merge().
#   - FieldStatistics        → immutable snapshot produced by freeze().
#                              Discarded at the end of the pass.
#
# CLASS: FieldStatsAccumulator (dataclass)
# ----------------------------------------
#   Counters:
#   ---------
#   - total_count, null_count, scalar_count, numeric_count, array_count
#   - array-length histogram counters (min/max/total/empty/single/multi)
#   - reference_count                 → total ids seen inside arrays
#
#   Bounded samples (first-seen order, capped at max_sample):
#   --------------------------------------------------------
#   - distinct scalar keys
#   - referenced ids
#
#   Methods:
#   --------
#   - update(value: FieldValue) -> None
#   - merge(other: FieldStatsAccumulator) -> FieldStatsAccumulator
#   - freeze(identifier_index) -> FieldStatistics
#
# CLASS: FieldStatistics (frozen dataclass)
# -----------------------------------------
#   Invariant: null_count + scalar_count + array_count == total_count
#
#   Computed Properties:
#   --------------------
#   - single_reference_ratio / multi_reference_ratio
#   - observed_sample_size
#   - distinct_reference_ratio → distinct sampled keys / keys observed
#   - sampled_keys          → referenced ids then scalar keys, de-duplicated
#
# ==============================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from relinfer.errors import InternalInvariantError
from relinfer.normalization import FieldValue, ValueKind

DEFAULT_MAX_SAMPLE = 1000


class ValueShape(Enum):
    """Inferred shape of a field across all records."""
    SCALAR = "scalar"
    MULTI_VALUED = "multi-valued"
    NULL = "null"


@dataclass(frozen=True)
class ArrayLengthHistogram:
    """Distribution of array lengths for a multi-valued field."""
    observation_count: int = 0
    min_length: int = 0
    max_length: int = 0
    total_length: int = 0
    empty_count: int = 0
    single_count: int = 0
    multi_count: int = 0

    @property
    def average_length(self) -> float:
        if self.observation_count == 0:
            return 0.0
        return self.total_length / self.observation_count

    @property
    def single_value_ratio(self) -> float:
        """
        Fraction of non-empty arrays holding exactly one reference.
        """
        non_empty = self.single_count + self.multi_count
        if non_empty == 0:
            return 0.0
        return self.single_count / non_empty

    def to_dict(self) -> Dict[str, Any]:
        return {
            "observationCount": self.observation_count,
            "minLength": self.min_length,
            "maxLength": self.max_length,
            "averageLength": round(self.average_length, 4),
            "emptyCount": self.empty_count,
            "singleCount": self.single_count,
            "multiCount": self.multi_count,
        }


@dataclass(frozen=True)
class FieldStatistics:
    """
    Immutable summary of one field of one table.
    """

    # --- Identity ---
    table: str
    name: str

    # --- Counters ---
    total_count: int = 0
    null_count: int = 0
    scalar_count: int = 0  # SCALAR and NUMERIC observations
    numeric_count: int = 0
    array_count: int = 0
    histogram: ArrayLengthHistogram = field(default_factory=ArrayLengthHistogram)

    # --- Bounded samples ---
    distinct_values: Tuple[str, ...] = ()
    distinct_values_saturated: bool = False
    referenced_ids: Tuple[str, ...] = ()
    reference_count: int = 0
    reference_sample_saturated: bool = False

    # --- Referenced table identification (over the sampled ids) ---
    referenced_tables: Tuple[Tuple[str, int], ...] = ()
    unidentified_reference_count: int = 0

    def __post_init__(self):
        observed = self.null_count + self.scalar_count + self.array_count
        if observed != self.total_count:
            raise InternalInvariantError(
                f"{self.table}.{self.name}: null({self.null_count}) + scalar({self.scalar_count}) "
                f"+ array({self.array_count}) != total({self.total_count})"
            )

    @property
    def shape(self) -> ValueShape:
        if self.array_count == 0 and self.scalar_count == 0:
            return ValueShape.NULL
        if self.array_count >= self.scalar_count:
            return ValueShape.MULTI_VALUED
        return ValueShape.SCALAR

    @property
    def non_null_count(self) -> int:
        return self.scalar_count + self.array_count

    @property
    def distinct_value_count(self) -> int:
        return len(self.distinct_values)

    @property
    def single_reference_ratio(self) -> float:
        """
        Fraction of all observations that carry exactly one reference.
        A scalar counts as one reference.
        """
        if self.total_count == 0:
            return 0.0
        return (self.histogram.single_count + self.scalar_count) / self.total_count

    @property
    def multi_reference_ratio(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.histogram.multi_count / self.total_count

    @property
    def observed_sample_size(self) -> int:
        """Observations that carry at least one reference."""
        return self.histogram.single_count + self.histogram.multi_count + self.scalar_count

    @property
    def distinct_reference_ratio(self) -> Optional[float]:
        """
        Distinct sampled keys / keys observed, or None when it cannot be
        known (nothing observed, or the bounded sample overflowed).
        """
        if self.shape is ValueShape.MULTI_VALUED:
            if self.reference_count == 0 or self.reference_sample_saturated:
                return None
            return len(self.referenced_ids) / self.reference_count
        if self.scalar_count == 0 or self.distinct_values_saturated:
            return None
        return len(self.distinct_values) / self.scalar_count

    @property
    def sampled_keys(self) -> Tuple[str, ...]:
        keys: Dict[str, None] = dict.fromkeys(self.referenced_ids)
        for value in self.distinct_values:
            keys.setdefault(value, None)
        return tuple(keys)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "name": self.name,
            "shape": self.shape.value,
            "totalCount": self.total_count,
            "nullCount": self.null_count,
            "scalarCount": self.scalar_count,
            "arrayCount": self.array_count,
            "distinctValueCount": self.distinct_value_count,
            "referenceCount": self.reference_count,
            "referencedTables": dict(self.referenced_tables),
            "unidentifiedReferenceCount": self.unidentified_reference_count,
            "histogram": self.histogram.to_dict(),
        }


@dataclass
class FieldStatsAccumulator:
    """
    Mutable per-field counters for one analysis pass.
    """

    table: str
    name: str
    max_sample: int = DEFAULT_MAX_SAMPLE

    # --- Counters ---
    total_count: int = 0
    null_count: int = 0
    scalar_count: int = 0
    numeric_count: int = 0
    array_count: int = 0

    # --- Array-length histogram ---
    min_length: Optional[int] = None
    max_length: int = 0
    total_length: int = 0
    empty_count: int = 0
    single_count: int = 0
    multi_count: int = 0
    reference_count: int = 0

    # --- Bounded samples (dicts keep first-seen order) ---
    distinct_values: Dict[str, None] = field(default_factory=dict)
    distinct_values_saturated: bool = False
    referenced_ids: Dict[str, None] = field(default_factory=dict)
    reference_sample_saturated: bool = False

    # ======================================
    # Update logic
    # ======================================
    def update(self, value: FieldValue) -> None:
        """
        Update counters with one observed value.

        Args:
            value: The tagged value of this field in one record
        """
        self.total_count += 1

        if value.kind is ValueKind.NULL:
            self.null_count += 1
        elif value.kind is ValueKind.SCALAR or value.kind is ValueKind.NUMERIC:
            self.scalar_count += 1
            if value.kind is ValueKind.NUMERIC:
                self.numeric_count += 1
            for key in value.as_keys():
                self.distinct_values_saturated |= not self._add_bounded(self.distinct_values, key)
        elif value.kind is ValueKind.REFERENCE_LIST:
            self._observe_array(value.ids)
        else:
            raise InternalInvariantError(f"Unhandled value kind {value.kind!r} for {self.table}.{self.name}")

    def _observe_array(self, ids: Tuple[str, ...]) -> None:
        length = len(ids)
        self.array_count += 1
        self.total_length += length
        self.max_length = max(self.max_length, length)
        self.min_length = length if self.min_length is None else min(self.min_length, length)

        if length == 0:
            self.empty_count += 1
        elif length == 1:
            self.single_count += 1
        else:
            self.multi_count += 1

        self.reference_count += length
        for ref_id in ids:
            self.reference_sample_saturated |= not self._add_bounded(self.referenced_ids, ref_id)

    def _add_bounded(self, sample: Dict[str, None], key: str) -> bool:
        # False only when a new key had to be dropped because the sample is full
        if key in sample:
            return True
        if len(sample) >= self.max_sample:
            return False
        sample[key] = None
        return True

    # ======================================
    # Merge / freeze
    # ======================================
    def merge(self, other: "FieldStatsAccumulator") -> "FieldStatsAccumulator":
        """
        Combine two accumulators for the same field into a new one.

        Samples keep self's keys first, then other's, up to max_sample.
        """
        if (self.table, self.name) != (other.table, other.name):
            raise InternalInvariantError(
                f"Cannot merge stats of {self.table}.{self.name} with {other.table}.{other.name}"
            )

        merged = FieldStatsAccumulator(table=self.table, name=self.name, max_sample=self.max_sample)
        for counter in (
            "total_count", "null_count", "scalar_count", "numeric_count", "array_count",
            "total_length", "empty_count", "single_count", "multi_count", "reference_count",
        ):
            setattr(merged, counter, getattr(self, counter) + getattr(other, counter))

        merged.max_length = max(self.max_length, other.max_length)
        lengths = [m for m in (self.min_length, other.min_length) if m is not None]
        merged.min_length = min(lengths) if lengths else None

        merged.distinct_values_saturated = self.distinct_values_saturated or other.distinct_values_saturated
        merged.reference_sample_saturated = self.reference_sample_saturated or other.reference_sample_saturated
        for key in list(self.distinct_values) + list(other.distinct_values):
            merged.distinct_values_saturated |= not merged._add_bounded(merged.distinct_values, key)
        for key in list(self.referenced_ids) + list(other.referenced_ids):
            merged.reference_sample_saturated |= not merged._add_bounded(merged.referenced_ids, key)
        return merged

    def freeze(self, identifier_index: Optional[Mapping[str, str]] = None) -> FieldStatistics:
        """
        Produce the immutable FieldStatistics for this field.

        Args:
            identifier_index: record id → owning table name, used to
                identify which table each sampled reference belongs to

        Returns:
            A FieldStatistics snapshot
        """
        referenced_tables: Dict[str, int] = {}
        unidentified = 0
        if identifier_index is not None:
            for ref_id in self.referenced_ids:
                owner = identifier_index.get(ref_id)
                if owner is None:
                    unidentified += 1
                else:
                    referenced_tables[owner] = referenced_tables.get(owner, 0) + 1

        histogram = ArrayLengthHistogram(
            observation_count=self.array_count,
            min_length=self.min_length or 0,
            max_length=self.max_length,
            total_length=self.total_length,
            empty_count=self.empty_count,
            single_count=self.single_count,
            multi_count=self.multi_count,
        )

        return FieldStatistics(
            table=self.table,
            name=self.name,
            total_count=self.total_count,
            null_count=self.null_count,
            scalar_count=self.scalar_count,
            numeric_count=self.numeric_count,
            array_count=self.array_count,
            histogram=histogram,
            distinct_values=tuple(self.distinct_values),
            distinct_values_saturated=self.distinct_values_saturated,
            referenced_ids=tuple(self.referenced_ids),
            reference_count=self.reference_count,
            reference_sample_saturated=self.reference_sample_saturated,
            referenced_tables=tuple(referenced_tables.items()),
            unidentified_reference_count=unidentified,
        )
