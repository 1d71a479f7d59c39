# ==============================================
# Decision (Data Classes)
# ==============================================
#
# PURPOSE:
#   Enums and data classes that represent the OUTPUT vocabulary of
#   relationship inference, plus the thresholds that control how
#   decisions are made.
#
#   These classes are shared by the classifier, scorer, reconciler,
#   placement planner, the report, and the schema-apply step.
#
# ENUMS:
# ------
# - Cardinality(Enum):        ONE_TO_ONE, ONE_TO_MANY, MANY_TO_ONE, MANY_TO_MANY
# - Provenance(Enum):         SCHEMA, DATA, HYBRID
# - ConfidenceBucket(Enum):   AUTO_SUGGEST, MANUAL_REVIEW
# - OneToOneOwnership(Enum):  SOURCE, TARGET
#
# CLASSES:
# --------
# - ForeignKeyPlacement (dataclass)
#     The schema directive for one reconciled relationship. Exactly one of:
#       - simple FK:  foreign_key_table, foreign_key_column,
#                     references_table, references_column
#       - junction:   junction_table (JunctionTable)
#
#     Methods:
#     --------
#     - to_dict() -> dict                                → Serialize (camelCase contract)
#     - from_dict(data: dict) -> ForeignKeyPlacement     (classmethod) → Deserialize
#
# - InferenceThresholds (dataclass)
#     The fixed numeric rules used by the detector and classifier.
#
# ==============================================

from enum import Enum
from dataclasses import dataclass
from typing import Optional, Dict, Any, Tuple


class Cardinality(Enum):
    """
    Shape of a relationship, read from the source table's point of view.
    """
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


class Provenance(Enum):
    """
    Where a relationship came from.

    - SCHEMA: declared link-field metadata
    - DATA:   observed value overlap
    - HYBRID: both sources agreed on the same key
    """
    SCHEMA = "schema"
    DATA = "data"
    HYBRID = "hybrid"


class ConfidenceBucket(Enum):
    AUTO_SUGGEST = "auto-suggest"
    MANUAL_REVIEW = "manual-review"


class OneToOneOwnership(Enum):
    """Which table receives the FK column of a one-to-one relationship."""
    SOURCE = "source"
    TARGET = "target"


@dataclass(frozen=True)
class JunctionColumn:
    name: str
    references: str  # Referenced table
    references_column: str = "id"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "references": self.references,
            "referencesColumn": self.references_column,
        }


@dataclass(frozen=True)
class JunctionTable:
    """
    Synthetic table for a many-to-many relationship.

    Always holds exactly two FK columns which together form the
    composite primary key.
    """
    name: str
    columns: Tuple[JunctionColumn, JunctionColumn]

    @property
    def primary_key(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "columns": [column.to_dict() for column in self.columns],
            "primaryKey": list(self.primary_key),
        }


@dataclass(frozen=True)
class ForeignKeyPlacement:
    """
    Represents the schema directive for a single reconciled relationship.

    This is what the Placement Planner produces and what the external
    schema-apply step executes. The engine itself never applies it.
    """

    # --- Simple FK form ---
    foreign_key_table: Optional[str] = None  # Table that receives the new column
    foreign_key_column: Optional[str] = None  # e.g., "customers_id"
    references_table: Optional[str] = None
    references_column: str = "id"

    # --- Junction form ---
    junction_table: Optional[JunctionTable] = None

    # --- Reasoning ---
    reasoning: str = ""

    @property
    def is_junction(self) -> bool:
        return self.junction_table is not None

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the placement using the report's camelCase field names.

        Returns:
            Either the simple-FK shape or the {junctionTable: {...}} shape
        """
        if self.junction_table is not None:
            return {
                "junctionTable": self.junction_table.to_dict(),
                "reasoning": self.reasoning,
            }
        return {
            "foreignKeyTable": self.foreign_key_table,
            "foreignKeyColumn": self.foreign_key_column,
            "referencesTable": self.references_table,
            "referencesColumn": self.references_column,
            "reasoning": self.reasoning,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ForeignKeyPlacement":
        """
        Reconstruct a placement from a serialized report entry.

        Args:
            data: Dictionary in the shape produced by to_dict()

        Returns:
            A ForeignKeyPlacement instance
        """
        junction = data.get("junctionTable")
        if junction:
            columns = tuple(
                JunctionColumn(
                    name=column["name"],
                    references=column["references"],
                    references_column=column.get("referencesColumn", "id"),
                )
                for column in junction["columns"]
            )
            if len(columns) != 2:
                raise ValueError(
                    f"Junction table '{junction.get('name')}' must have exactly two columns"
                )
            return cls(
                junction_table=JunctionTable(name=junction["name"], columns=columns),
                reasoning=data.get("reasoning", ""),
            )
        return cls(
            foreign_key_table=data["foreignKeyTable"],
            foreign_key_column=data["foreignKeyColumn"],
            references_table=data["referencesTable"],
            references_column=data.get("referencesColumn", "id"),
            reasoning=data.get("reasoning", ""),
        )


@dataclass(frozen=True)
class InferenceThresholds:
    """
    Fixed numeric rules used by the detector and the cardinality classifier.

    Every classification is traceable to one of these values, which is
    what the justification strings quote.
    """

    # --- Detector ---
    min_match_ratio: float = 0.5
    """
    Minimum |intersection| / |source values| for an overlap candidate.
    """

    min_intersection: int = 3
    """
    Minimum number of shared values for an overlap candidate.
    Guards against small, coincidental overlaps.
    """

    min_non_null_values: int = 3
    """
    A source column needs at least this many non-null observations
    before it is compared against other tables.
    """

    # --- Array-length histogram rules ---
    one_to_one_single_ratio: float = 0.8
    """singleValueRatio must exceed this (and maxLength <= one_to_one_max_length) for one-to-one."""

    one_to_one_max_length: int = 2

    one_to_many_single_ratio: float = 0.3
    """singleValueRatio must exceed this (and averageLength < one_to_many_max_average) for one-to-many."""

    one_to_many_max_average: float = 3.0

    # --- Overlap rules ---
    one_to_one_match_ratio: float = 0.9
    one_to_one_coverage_ratio: float = 0.9
    many_to_one_match_ratio: float = 0.7

    # --- Reference reuse ---
    min_distinct_reference_ratio: float = 0.9
    """
    A one-to-one result is downgraded to many-to-one when fewer than this
    fraction of the source's references are distinct, i.e. several source
    records point at the same target.
    """
