# ==============================================
# Source Table Model
# ==============================================
#
# Immutable in-memory form of one table read from the source store:
#
#   SourceTable
#   ├── name, id
#   ├── fields:  tuple[FieldDefinition]   (declared metadata)
#   ├── records: tuple[SourceRecord]      (id + FieldValue per field)
#   └── malformed_value_count             (values coerced to NULL)
#
# ==============================================

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from .field_value import FieldValue


@dataclass(frozen=True)
class FieldDefinition:
    """Declared metadata for one field of a source table."""
    name: str
    type: str = "unknown"
    is_multi_valued: bool = False
    linked_table_id: Optional[str] = None  # Present only on declared link fields

    @property
    def is_link(self) -> bool:
        return bool(self.linked_table_id)


@dataclass(frozen=True)
class SourceRecord:
    id: str
    fields: Mapping[str, FieldValue] = field(default_factory=dict)

    def get(self, field_name: str) -> FieldValue:
        # Absent fields read as NULL
        return self.fields.get(field_name, FieldValue.null())


@dataclass(frozen=True)
class SourceTable:
    name: str
    id: str
    fields: Tuple[FieldDefinition, ...] = ()
    records: Tuple[SourceRecord, ...] = ()
    malformed_value_count: int = 0
    malformed_record_count: int = 0

    @property
    def record_ids(self) -> Tuple[str, ...]:
        return tuple(record.id for record in self.records)

    def field_names(self) -> Tuple[str, ...]:
        """
        Declared fields first, then any field seen only in records,
        in first-seen order.
        """
        names: Dict[str, None] = {definition.name: None for definition in self.fields}
        for record in self.records:
            for name in record.fields:
                names.setdefault(name, None)
        return tuple(names)

    def definition(self, field_name: str) -> Optional[FieldDefinition]:
        for definition in self.fields:
            if definition.name == field_name:
                return definition
        return None
