# ==============================================
# FieldValue
# ==============================================
#
# PURPOSE:
#   Explicit tagged representation of one cell of a source record.
#   Every raw JSON value is converted into exactly one of:
#
#     NULL            → missing, None, blank, or malformed
#     SCALAR(str)     → text-like value (strings, booleans)
#     NUMERIC(float)  → numbers
#     REFERENCE_LIST  → ordered tuple of referenced record ids
#
#   The collector branches on `kind`, so every value falls into
#   exactly one counter.
#
# CLASS: FieldValue (frozen dataclass)
# ------------------------------------
#   Constructors:
#   -------------
#   - FieldValue.null()
#   - FieldValue.scalar(text)
#   - FieldValue.numeric(number)
#   - FieldValue.references(ids)
#
#   Methods:
#   --------
#   - as_keys() -> tuple[str, ...]
#       String keys this value contributes to overlap and validation.
#
# ==============================================

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple


class ValueKind(Enum):
    """The variant tag of a FieldValue."""
    NULL = "null"
    SCALAR = "scalar"
    NUMERIC = "numeric"
    REFERENCE_LIST = "reference_list"


@dataclass(frozen=True)
class FieldValue:
    kind: ValueKind
    text: Optional[str] = None
    number: Optional[float] = None
    ids: Tuple[str, ...] = ()

    @classmethod
    def null(cls) -> "FieldValue":
        return _NULL

    @classmethod
    def scalar(cls, text: str) -> "FieldValue":
        return cls(kind=ValueKind.SCALAR, text=text)

    @classmethod
    def numeric(cls, number: float) -> "FieldValue":
        return cls(kind=ValueKind.NUMERIC, number=float(number))

    @classmethod
    def references(cls, ids: Iterable[str]) -> "FieldValue":
        return cls(kind=ValueKind.REFERENCE_LIST, ids=tuple(ids))

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    def as_keys(self) -> Tuple[str, ...]:
        """
        Render this value as the string keys used for set comparisons.

        Integral numbers render without a fractional part so that a
        numeric 42.0 compares equal to an identifier "42".
        """
        if self.kind is ValueKind.NULL:
            return ()
        if self.kind is ValueKind.SCALAR:
            return (self.text,)
        if self.kind is ValueKind.NUMERIC:
            if math.isfinite(self.number) and self.number.is_integer():
                return (str(int(self.number)),)
            return (repr(self.number),)
        if self.kind is ValueKind.REFERENCE_LIST:
            return self.ids
        raise ValueError(f"Unknown value kind: {self.kind}")


_NULL = FieldValue(kind=ValueKind.NULL)
