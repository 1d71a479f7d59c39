# ==============================================
# TOPIC 3: PLACEMENT PLANNING
# ==============================================
#
# Turns reconciled recommendations into schema directives and renders
# them as DDL for review. Nothing in this package executes SQL; the
# MySQL apply step lives in relinfer.storage.mysql_client.
#
# Modules:
# --------
# - placement.py → ForeignKeyPlanner (simple FK vs. junction table)
# - ddl.py       → render_placement_ddl / render_report_ddl
#
# ==============================================

from .placement import ForeignKeyPlanner
from .ddl import (
    quote_identifier,
    render_placement_ddl,
    render_placements_ddl,
    render_report_ddl,
)

__all__ = [
    "ForeignKeyPlanner",
    "quote_identifier",
    "render_placement_ddl",
    "render_placements_ddl",
    "render_report_ddl",
]
