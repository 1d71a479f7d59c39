# ==============================================
# DataAccessPort
# ==============================================
#
# PURPOSE:
#   The read-only capability the engine is handed instead of owning a
#   connection. Three operations:
#
#   - list_table_ids()                 → every table the source exposes
#   - fetch_table(table_id)            → full SourceTable (metadata + records)
#   - fetch_key_set(table_id, limit)   → distinct record ids, first-seen
#                                        order, at most `limit`
#
#   Every failure surfaces as DataAccessError, whatever the backend.
#
# CLASS: InMemoryDataAccess
# -------------------------
#   The in-memory implementation used by tests and by the CLI's
#   `--input file.json` mode. Tables are looked up by id, then name.
#   Failures can be injected per table id with fail_table() /
#   fail_key_set().
#
# ==============================================

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from relinfer.errors import DataAccessError
from relinfer.normalization import RecordNormalizer, SourceTable


class DataAccessPort(ABC):

    @abstractmethod
    def list_table_ids(self) -> List[str]:
        ...

    @abstractmethod
    def fetch_table(self, table_id: str) -> SourceTable:
        ...

    @abstractmethod
    def fetch_key_set(self, table_id: str, limit: int) -> Tuple[str, ...]:
        ...


def first_keys(record_ids: Iterable[str], limit: int) -> Tuple[str, ...]:
    """Distinct ids in first-seen order, capped at limit."""
    keys: Dict[str, None] = {}
    for record_id in record_ids:
        if len(keys) >= limit:
            break
        keys.setdefault(record_id, None)
    return tuple(keys)


class InMemoryDataAccess(DataAccessPort):
    def __init__(self, tables: Iterable[SourceTable]):
        self._tables: List[SourceTable] = list(tables)
        self._failing_tables: Set[str] = set()
        self._failing_key_sets: Set[str] = set()

    @classmethod
    def from_payloads(
        cls, payloads: Iterable[Mapping], normalizer: Optional[RecordNormalizer] = None
    ) -> "InMemoryDataAccess":
        normalizer = normalizer or RecordNormalizer()
        return cls(normalizer.normalize_table(payload) for payload in payloads)

    def fail_table(self, table_id: str) -> None:
        self._failing_tables.add(table_id)

    def fail_key_set(self, table_id: str) -> None:
        self._failing_key_sets.add(table_id)

    def list_table_ids(self) -> List[str]:
        return [table.id for table in self._tables]

    def fetch_table(self, table_id: str) -> SourceTable:
        if table_id in self._failing_tables:
            raise DataAccessError("simulated read failure", table_id=table_id)
        return self._lookup(table_id)

    def fetch_key_set(self, table_id: str, limit: int) -> Tuple[str, ...]:
        if table_id in self._failing_key_sets or table_id in self._failing_tables:
            raise DataAccessError("simulated key-set failure", table_id=table_id)
        return first_keys(self._lookup(table_id).record_ids, limit)

    def _lookup(self, table_id: str) -> SourceTable:
        for table in self._tables:
            if table.id == table_id:
                return table
        for table in self._tables:
            if table.name == table_id:
                return table
        raise DataAccessError("table not found", table_id=table_id)
