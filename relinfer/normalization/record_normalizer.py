from typing import Any, Mapping, Optional

from loguru import logger

from .field_value import FieldValue
from .table import FieldDefinition, SourceRecord, SourceTable
from .type_detector import TypeDetector


class RecordNormalizer:
    def __init__(self, type_detector: Optional[TypeDetector] = None):
        self.type_detector = type_detector or TypeDetector()

    def normalize_table(self, payload: Any) -> SourceTable:
        if not isinstance(payload, Mapping):
            raise ValueError("Table payload must be a dictionary")

        self._validate_required_fields(payload)

        fields = tuple(
            self._normalize_field_definition(raw_field)
            for raw_field in payload.get("fields") or []
            if isinstance(raw_field, Mapping) and raw_field.get("name")
        )

        records = []
        malformed_values = 0
        malformed_records = 0
        for raw_record in payload.get("records") or []:
            record, malformed = self._normalize_record(raw_record)
            if record is None:
                malformed_records += 1
                continue
            records.append(record)
            malformed_values += malformed

        table = SourceTable(
            name=str(payload["name"]),
            id=str(payload["id"]),
            fields=fields,
            records=tuple(records),
            malformed_value_count=malformed_values,
            malformed_record_count=malformed_records,
        )

        if malformed_values or malformed_records:
            logger.warning(
                "Table '{}': {} malformed values counted as null, {} malformed records skipped",
                table.name, malformed_values, malformed_records,
            )
        return table

    def _normalize_field_definition(self, raw_field: Mapping) -> FieldDefinition:
        linked_table_id = raw_field.get("linkedTableId", raw_field.get("linked_table_id"))
        is_multi_valued = raw_field.get("isMultiValued", raw_field.get("is_multi_valued", False))
        return FieldDefinition(
            name=str(raw_field["name"]),
            type=str(raw_field.get("type") or "unknown"),
            is_multi_valued=bool(is_multi_valued),
            linked_table_id=str(linked_table_id) if linked_table_id else None,
        )

    def _normalize_record(self, raw_record: Any) -> tuple:
        if not isinstance(raw_record, Mapping):
            return None, 0

        record_id = raw_record.get("id")
        raw_fields = raw_record.get("fields", {})
        if record_id is None or str(record_id).strip() == "" or not isinstance(raw_fields, Mapping):
            return None, 0

        values = {}
        malformed = 0
        for key, raw_value in raw_fields.items():
            value, is_malformed = self.type_detector.to_field_value(raw_value)
            if is_malformed:
                malformed += 1
                value = FieldValue.null()
            values[str(key)] = value

        return SourceRecord(id=str(record_id).strip(), fields=values), malformed

    def _validate_required_fields(self, payload: Mapping) -> None:
        for key in ("name", "id"):
            if key not in payload or payload[key] is None or str(payload[key]).strip() == "":
                raise ValueError(f"Required table key '{key}' is missing or empty")
