import math
from typing import Any, Mapping, Optional, Tuple

from .field_value import FieldValue


class TypeDetector:
    ID_KEYS = ("id", "_id")

    @classmethod
    def detect(cls, value: Any) -> str:
        if value is None:
            return "null"

        if isinstance(value, bool):
            return "bool"

        if isinstance(value, int):
            return "int"

        if isinstance(value, float):
            return "null" if math.isnan(value) else "float"

        if isinstance(value, list):
            return "array"

        if isinstance(value, dict):
            return "object"

        if isinstance(value, str):
            return "null" if not value.strip() else "str"

        return "unknown"

    @classmethod
    def to_field_value(cls, value: Any) -> Tuple[FieldValue, bool]:
        """
        Convert a raw JSON value into a FieldValue.

        Returns:
            (field_value, malformed). Malformed values come back as NULL
            with malformed=True so the caller can count them.
        """
        detected = cls.detect(value)

        if detected == "null":
            return FieldValue.null(), False

        if detected == "bool":
            return FieldValue.scalar("true" if value else "false"), False

        if detected in ("int", "float"):
            return FieldValue.numeric(value), False

        if detected == "str":
            return FieldValue.scalar(value.strip()), False

        if detected == "array":
            ids = []
            for item in value:
                item_id = cls._reference_id(item)
                if item_id is None:
                    return FieldValue.null(), True
                ids.append(item_id)
            return FieldValue.references(ids), False

        if detected == "object":
            item_id = cls._reference_id(value)
            if item_id is None:
                return FieldValue.null(), True
            return FieldValue.references([item_id]), False

        return FieldValue.null(), True

    @classmethod
    def _reference_id(cls, item: Any) -> Optional[str]:
        # Linked records arrive as bare ids or as objects carrying an id
        if isinstance(item, bool) or item is None:
            return None
        if isinstance(item, str):
            return item.strip() or None
        if isinstance(item, (int, float)):
            return FieldValue.numeric(item).as_keys()[0] if math.isfinite(item) else None
        if isinstance(item, Mapping):
            for key in cls.ID_KEYS:
                if item.get(key) is not None:
                    return cls._reference_id(item[key])
        return None
