# ==============================================
# Tests for Field Statistics (Collector + Accumulator)
# ==============================================

import pytest

from relinfer.analysis import (
    FieldStatistics,
    FieldStatisticsCollector,
    FieldStatsAccumulator,
    ValueShape,
    build_identifier_index,
)
from relinfer.errors import InternalInvariantError
from relinfer.normalization import FieldValue, RecordNormalizer


class TestFieldStatsAccumulator:

    def test_counts_partition_total(self, stats_from_values):
        stats = stats_from_values([None, "a", 3, ["x"], ["x", "y"], []])

        assert stats.total_count == 6
        assert stats.null_count == 1
        assert stats.scalar_count == 2
        assert stats.numeric_count == 1
        assert stats.array_count == 3
        assert stats.null_count + stats.scalar_count + stats.array_count == stats.total_count

    def test_array_length_histogram(self, stats_from_values):
        stats = stats_from_values([["a"], ["b"], ["a", "b", "c"], []])
        histogram = stats.histogram

        assert histogram.observation_count == 4
        assert histogram.min_length == 0
        assert histogram.max_length == 3
        assert histogram.empty_count == 1
        assert histogram.single_count == 2
        assert histogram.multi_count == 1
        assert histogram.average_length == pytest.approx(5 / 4)
        assert histogram.single_value_ratio == pytest.approx(2 / 3)

    def test_shape(self, stats_from_values):
        assert stats_from_values([None, None]).shape is ValueShape.NULL
        assert stats_from_values(["a", "b", ["c"]]).shape is ValueShape.SCALAR
        assert stats_from_values([["a"], ["b"], "c"]).shape is ValueShape.MULTI_VALUED

    def test_reference_ratios_count_scalars_as_single(self, stats_from_values):
        stats = stats_from_values(["a", ["b"], ["c", "d"], None])
        assert stats.single_reference_ratio == pytest.approx(2 / 4)
        assert stats.multi_reference_ratio == pytest.approx(1 / 4)
        assert stats.observed_sample_size == 3

    def test_sample_is_bounded_and_keeps_first_seen_order(self, stats_from_values):
        stats = stats_from_values([[f"r{i}"] for i in range(10)], max_sample=4)

        assert stats.referenced_ids == ("r0", "r1", "r2", "r3")
        assert stats.reference_count == 10
        assert stats.reference_sample_saturated
        assert stats.distinct_reference_ratio is None

    def test_distinct_reference_ratio(self, stats_from_values):
        stats = stats_from_values([["a"], ["a"], ["b"], ["b"]])
        assert stats.distinct_reference_ratio == pytest.approx(0.5)

    def test_sampled_keys_combine_references_and_scalars(self, stats_from_values):
        stats = stats_from_values([["a"], "b", ["a"], 7])
        assert stats.sampled_keys == ("a", "b", "7")

    def test_merge_adds_counters_and_samples(self):
        left = FieldStatsAccumulator(table="T", name="f")
        right = FieldStatsAccumulator(table="T", name="f")
        left.update(FieldValue.references(["a"]))
        right.update(FieldValue.references(["b", "a"]))
        right.update(FieldValue.null())

        merged = left.merge(right).freeze()

        assert merged.total_count == 3
        assert merged.null_count == 1
        assert merged.array_count == 2
        assert merged.referenced_ids == ("a", "b")
        assert merged.histogram.max_length == 2
        assert merged.histogram.min_length == 1

    def test_merge_of_different_fields_raises(self):
        with pytest.raises(InternalInvariantError):
            FieldStatsAccumulator(table="T", name="a").merge(FieldStatsAccumulator(table="T", name="b"))

    def test_inconsistent_counts_raise(self):
        with pytest.raises(InternalInvariantError):
            FieldStatistics(table="T", name="f", total_count=3, null_count=1)

    def test_freeze_identifies_referenced_tables(self, stats_from_values):
        stats = stats_from_values(
            [["c1"], ["c2"], ["zz"]],
            identifier_index={"c1": "Customers", "c2": "Customers"},
        )
        assert stats.referenced_tables == (("Customers", 2),)
        assert stats.unidentified_reference_count == 1


class TestFieldStatisticsCollector:

    def test_collect_orders(self, orders_payload, customers_payload):
        normalizer = RecordNormalizer()
        orders = normalizer.normalize_table(orders_payload)
        customers = normalizer.normalize_table(customers_payload)
        index = build_identifier_index([orders, customers])

        stats = FieldStatisticsCollector().collect(orders, index)
        customer_ids = stats.get("customer_ids")

        assert stats.record_count == 500
        assert list(stats.fields) == ["customer_ids", "status"]
        assert customer_ids.total_count == 500
        assert customer_ids.array_count == 500
        assert customer_ids.histogram.empty_count == 10
        assert customer_ids.histogram.single_count == 490
        assert len(customer_ids.referenced_ids) == 100
        assert customer_ids.referenced_tables == (("Customers", 100),)
        assert customer_ids.unidentified_reference_count == 0

    def test_declared_field_absent_from_records_is_all_null(self, table_payload):
        table = RecordNormalizer().normalize_table(
            table_payload("A", "tblA", [{"id": "r1", "fields": {}}], fields=[{"name": "ghost"}])
        )
        stats = FieldStatisticsCollector().collect(table)
        assert stats.get("ghost").null_count == 1
        assert stats.get("ghost").shape is ValueShape.NULL

    def test_identifier_index_first_table_wins(self, table_payload):
        normalizer = RecordNormalizer()
        a = normalizer.normalize_table(table_payload("A", "tblA", [{"id": "dup", "fields": {}}]))
        b = normalizer.normalize_table(table_payload("B", "tblB", [{"id": "dup", "fields": {}}]))
        assert build_identifier_index([a, b]) == {"dup": "A"}
