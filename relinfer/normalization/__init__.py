# ==============================================
# TOPIC 1: NORMALIZATION
# ==============================================
#
# This package turns raw table payloads from the source store
# into typed, immutable tables BEFORE they enter the analysis
# pipeline, and converts names into DDL-safe identifiers.
#
# Modules:
# --------
# - field_value.py       → Tagged value variant (NULL / SCALAR / NUMERIC / REFERENCE_LIST)
# - type_detector.py     → Raw JSON value → FieldValue
# - table.py             → SourceTable / FieldDefinition / SourceRecord
# - record_normalizer.py → Validate a table payload and normalize every record
# - field_normalizer.py  → snake_case and SQL-safe naming
#
# ==============================================

from .field_value import FieldValue, ValueKind
from .type_detector import TypeDetector
from .table import FieldDefinition, SourceRecord, SourceTable
from .record_normalizer import RecordNormalizer
from .field_normalizer import FieldNormalizer, sanitize_column_name, sanitize_table_name

__all__ = [
    "FieldValue",
    "ValueKind",
    "TypeDetector",
    "FieldDefinition",
    "SourceRecord",
    "SourceTable",
    "RecordNormalizer",
    "FieldNormalizer",
    "sanitize_column_name",
    "sanitize_table_name",
]
