# ==============================================
# FieldStatisticsCollector
# ==============================================
#
# PURPOSE:
#   Scan one table's records field by field and produce one
#   FieldStatistics per field. This is the "observation engine":
#   it watches the data and builds evidence, it decides nothing.
#
# CLASS: FieldStatisticsCollector
# -------------------------------
#   Stateless between calls. Each collect() builds fresh accumulators
#   and returns them frozen, so tables can be collected in parallel.
#
#   Constructor:
#   ------------
#   - __init__(max_sample: int = 1000)
#       Cap on the per-field samples of distinct values / referenced ids.
#
#   Methods:
#   --------
#   - collect(table: SourceTable, identifier_index) -> TableStatistics
#       For each field, for each record:
#         1. Read the tagged value (absent → NULL)
#         2. Update the field's accumulator
#       Then freeze every accumulator, resolving sampled references
#       against identifier_index (record id → table name).
#
# FUNCTION:
# ---------
# - build_identifier_index(tables) -> dict[str, str]
#       Map every known record id to the first table (in input order)
#       that contains it.
#
# ==============================================

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional

from loguru import logger

from relinfer.normalization import SourceTable
from .field_stats import DEFAULT_MAX_SAMPLE, FieldStatistics, FieldStatsAccumulator


@dataclass(frozen=True)
class TableStatistics:
    """Per-field statistics for one table."""
    table: str
    table_id: str
    record_count: int
    fields: Dict[str, FieldStatistics] = field(default_factory=dict)

    def get(self, field_name: str) -> Optional[FieldStatistics]:
        return self.fields.get(field_name)


def build_identifier_index(tables: Iterable[SourceTable]) -> Dict[str, str]:
    index: Dict[str, str] = {}
    for table in tables:
        for record_id in table.record_ids:
            index.setdefault(record_id, table.name)
    return index


class FieldStatisticsCollector:
    """
    Observes a table's records and summarises each field.
    """

    def __init__(self, max_sample: int = DEFAULT_MAX_SAMPLE):
        """
        Initialize the collector.

        Args:
            max_sample: Maximum distinct values / referenced ids kept per field
        """
        self.max_sample = max_sample

    def collect(
        self,
        table: SourceTable,
        identifier_index: Optional[Mapping[str, str]] = None,
    ) -> TableStatistics:
        """
        Collect statistics for every field of a table.

        Args:
            table: The normalized source table
            identifier_index: record id → table name for reference identification

        Returns:
            TableStatistics with one FieldStatistics per field
        """
        accumulators: Dict[str, FieldStatsAccumulator] = {
            name: FieldStatsAccumulator(table=table.name, name=name, max_sample=self.max_sample)
            for name in table.field_names()
        }

        for record in table.records:
            for name, accumulator in accumulators.items():
                accumulator.update(record.get(name))

        stats = {
            name: accumulator.freeze(identifier_index)
            for name, accumulator in accumulators.items()
        }

        for name, field_stats in stats.items():
            logger.debug(
                "{}.{}: shape={} total={} null={} scalar={} array={} refs={}",
                table.name, name, field_stats.shape.value, field_stats.total_count,
                field_stats.null_count, field_stats.scalar_count, field_stats.array_count,
                field_stats.reference_count,
            )

        return TableStatistics(
            table=table.name,
            table_id=table.id,
            record_count=len(table.records),
            fields=stats,
        )
