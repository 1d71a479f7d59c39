# ==============================================
# ForeignKeyPlanner
# ==============================================
#
# PURPOSE:
#   Decide, for each reconciled recommendation, where the foreign key
#   goes. Emits a ForeignKeyPlacement directive; never touches the
#   destination schema.
#
# RULES:
# ------
#   one-to-one                → simple FK on the owning side chosen by
#                               OneToOneOwnership (default SOURCE: the
#                               table whose field holds the references)
#   one-to-many / many-to-one → simple FK on the "many" side, i.e. the
#                               source table whose field held the
#                               multi-valued / overlapping column
#   many-to-many              → junction table "{source}_{target}" with
#                               two FK columns forming the composite key
#
# NAMING:
# -------
#   FK column         "{referenced table}_id"; if another relationship
#                     already claimed it on the same table, the name of
#                     the link field is used instead: "{field}_id", then
#                     "{field}_{referenced}_id", then a numeric suffix
#   Junction table    "{source}_{target}", then "{source}_{field}_{target}"
#   Self-referencing junction: second column "related_{table}_id"
#   All names go through sanitize_table_name / sanitize_column_name.
#
#   Names are claimed in plan_all() order, so a report always maps to
#   the same set of distinct columns.
#
# ==============================================

from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from relinfer.analysis.candidates import RelationshipRecommendation
from relinfer.analysis.decision import (
    Cardinality,
    ForeignKeyPlacement,
    JunctionColumn,
    JunctionTable,
    OneToOneOwnership,
)
from relinfer.normalization import sanitize_column_name, sanitize_table_name

REFERENCES_COLUMN = "id"

# (table, column) pairs already handed out; junction tables use column ""
ClaimedNames = Set[Tuple[str, str]]


class ForeignKeyPlanner:
    """
    Turns recommendations into FK placement directives.
    """

    def __init__(self, one_to_one_owner: OneToOneOwnership = OneToOneOwnership.SOURCE):
        self.one_to_one_owner = one_to_one_owner

    def plan_all(self, recommendations: Iterable[RelationshipRecommendation]) -> List[RelationshipRecommendation]:
        """
        Attach exactly one placement to every recommendation.

        No two placements share an FK column on the same table or a
        junction table name.

        Args:
            recommendations: Reconciled recommendations

        Returns:
            New recommendations carrying their placement, in input order
        """
        claimed: ClaimedNames = set()
        return [replace(rec, placement=self.plan(rec, claimed)) for rec in recommendations]

    def plan(
        self, recommendation: RelationshipRecommendation, claimed: Optional[ClaimedNames] = None
    ) -> ForeignKeyPlacement:
        claimed = claimed if claimed is not None else set()
        source = sanitize_table_name(recommendation.source_table)
        target = sanitize_table_name(recommendation.target_table)
        field_name = recommendation.source_field
        cardinality = recommendation.cardinality

        if cardinality is Cardinality.MANY_TO_MANY:
            return self._junction(source, target, field_name, claimed)

        if cardinality is Cardinality.ONE_TO_ONE:
            if self.one_to_one_owner is OneToOneOwnership.TARGET:
                return self._simple(
                    owner=target,
                    referenced=source,
                    field_name=field_name,
                    claimed=claimed,
                    reasoning="One-to-one relationship: FK placed on the target table (configured ownership policy).",
                )
            return self._simple(
                owner=source,
                referenced=target,
                field_name=field_name,
                claimed=claimed,
                reasoning="One-to-one relationship: FK placed on the source table, which holds the references (configured ownership policy).",
            )

        return self._simple(
            owner=source,
            referenced=target,
            field_name=field_name,
            claimed=claimed,
            reasoning=(
                f"{cardinality.value.capitalize()} relationship: FK placed on the \"many\" side "
                f"({source}), whose field holds the references."
            ),
        )

    def _simple(
        self, owner: str, referenced: str, field_name: str, claimed: ClaimedNames, reasoning: str
    ) -> ForeignKeyPlacement:
        column = self._claim(
            owner,
            [
                sanitize_column_name(f"{referenced}_id"),
                sanitize_column_name(f"{field_name}_id"),
                sanitize_column_name(f"{field_name}_{referenced}_id"),
            ],
            claimed,
        )
        return ForeignKeyPlacement(
            foreign_key_table=owner,
            foreign_key_column=column,
            references_table=referenced,
            references_column=REFERENCES_COLUMN,
            reasoning=reasoning,
        )

    def _junction(self, source: str, target: str, field_name: str, claimed: ClaimedNames) -> ForeignKeyPlacement:
        first = sanitize_column_name(f"{source}_id")
        second = sanitize_column_name(f"{target}_id")
        if first == second:
            second = sanitize_column_name(f"related_{target}_id")

        name = self._claim(
            "",
            [
                sanitize_table_name(f"{source}_{target}"),
                sanitize_table_name(f"{source}_{field_name}_{target}"),
            ],
            claimed,
        )
        junction = JunctionTable(
            name=name,
            columns=(
                JunctionColumn(name=first, references=source, references_column=REFERENCES_COLUMN),
                JunctionColumn(name=second, references=target, references_column=REFERENCES_COLUMN),
            ),
        )
        return ForeignKeyPlacement(
            junction_table=junction,
            reasoning="Many-to-many relationship: junction table created to maintain referential integrity.",
        )

    @staticmethod
    def _claim(scope: str, names: Sequence[str], claimed: ClaimedNames) -> str:
        # First free name wins; past the list, number the last one
        for name in names:
            if (scope, name) not in claimed:
                claimed.add((scope, name))
                return name
        suffix = 2
        while (scope, f"{names[-1]}_{suffix}") in claimed:
            suffix += 1
        name = f"{names[-1]}_{suffix}"
        claimed.add((scope, name))
        return name
