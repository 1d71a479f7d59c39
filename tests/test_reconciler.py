# ==============================================
# Tests for RelationshipReconciler
# ==============================================

import pytest

from relinfer.analysis import Cardinality, Provenance, RelationshipReconciler
from relinfer.analysis.reconciler import HYBRID_NOTE
from relinfer.errors import InternalInvariantError


class TestRelationshipReconciler:

    def test_same_key_merges_into_hybrid_with_max_confidence(self, make_recommendation):
        schema = make_recommendation(confidence=0.75, provenance=Provenance.SCHEMA, cardinality=Cardinality.ONE_TO_MANY)
        data = make_recommendation(confidence=0.92, provenance=Provenance.DATA, cardinality=Cardinality.MANY_TO_ONE)

        [merged] = RelationshipReconciler().reconcile([schema], [data])

        assert merged.provenance is Provenance.HYBRID
        assert merged.confidence == 0.92
        assert merged.cardinality is Cardinality.MANY_TO_ONE
        assert merged.reasoning.endswith(HYBRID_NOTE)

    def test_tie_keeps_schema_side(self, make_recommendation):
        schema = make_recommendation(confidence=0.8, provenance=Provenance.SCHEMA, cardinality=Cardinality.ONE_TO_ONE)
        data = make_recommendation(confidence=0.8, provenance=Provenance.DATA, cardinality=Cardinality.MANY_TO_ONE)

        [merged] = RelationshipReconciler().reconcile([schema], [data])

        assert merged.cardinality is Cardinality.ONE_TO_ONE
        assert merged.provenance is Provenance.HYBRID

    def test_single_source_keys_pass_through(self, make_recommendation):
        schema = make_recommendation(field="a", confidence=0.75, provenance=Provenance.SCHEMA)
        data = make_recommendation(field="b", confidence=0.6, provenance=Provenance.DATA)

        result = RelationshipReconciler().reconcile([schema], [data])

        assert [(rec.source_field, rec.provenance) for rec in result] == [
            ("a", Provenance.SCHEMA),
            ("b", Provenance.DATA),
        ]

    def test_output_sorted_by_descending_confidence_stably(self, make_recommendation):
        recs = [
            make_recommendation(field="low", confidence=0.5),
            make_recommendation(field="first_high", confidence=0.9),
            make_recommendation(field="second_high", confidence=0.9),
        ]

        result = RelationshipReconciler().reconcile([], recs)

        assert [rec.source_field for rec in result] == ["first_high", "second_high", "low"]

    def test_keys_are_unique(self, make_recommendation):
        schema = [make_recommendation(field=f"f{i}", provenance=Provenance.SCHEMA) for i in range(3)]
        data = [make_recommendation(field=f"f{i}") for i in range(1, 5)]

        result = RelationshipReconciler().reconcile(schema, data)
        keys = [rec.key for rec in result]

        assert len(keys) == len(set(keys)) == 5

    def test_duplicate_key_within_one_set_raises(self, make_recommendation):
        data = [make_recommendation(), make_recommendation()]
        with pytest.raises(InternalInvariantError):
            RelationshipReconciler().reconcile([], data)

    def test_verify_unique_raises_on_duplicates(self, make_recommendation):
        with pytest.raises(InternalInvariantError):
            RelationshipReconciler.verify_unique([make_recommendation(), make_recommendation()])
