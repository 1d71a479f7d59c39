# ==============================================
# Errors
# ==============================================
#
# PURPOSE:
#   Exception types shared by the engine and the storage adapters.
#
# TAXONOMY:
# ---------
# - RelationshipInferenceError       → base class
# - DataAccessError                  → a table or key set could not be read.
#                                      Recovered per table / per pair; fatal
#                                      only when no table at all can be read.
# - UnresolvedReferenceError         → a declared link points at a table that
#                                      is not part of the analysed set. Never
#                                      raised by the engine; attached to the
#                                      candidate and surfaced as an issue.
# - InternalInvariantError           → a logic defect (e.g. two reconciled
#                                      relationships sharing a key). Aborts.
#
# Too few observations is NOT an exception: the scorer skips the
# candidate and logs the reason.
#
# ==============================================

from typing import Optional


class RelationshipInferenceError(Exception):
    """Base class for all relinfer errors."""


class DataAccessError(RelationshipInferenceError):
    """Failed to read a table's records or a target's key set."""

    def __init__(self, message: str, table_id: Optional[str] = None):
        self.table_id = table_id
        if table_id:
            message = f"{table_id}: {message}"
        super().__init__(message)


class UnresolvedReferenceError(RelationshipInferenceError):
    """A declared link field targets a table id that is not in the analysed set."""

    def __init__(self, source_table: str, source_field: str, target_id: str):
        self.source_table = source_table
        self.source_field = source_field
        self.target_id = target_id
        super().__init__(
            f"{source_table}.{source_field} links to unknown table '{target_id}'"
        )


class InternalInvariantError(RelationshipInferenceError):
    """An internal consistency check failed. Indicates a bug, not bad data."""
