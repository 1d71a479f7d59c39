# ==============================================
# DDL Preview
# ==============================================
#
# PURPOSE:
#   Render placement directives as MySQL statements so a reviewer can
#   read exactly what the schema-apply step would run.
#
#   Simple FK  → ALTER TABLE ... ADD COLUMN
#                ALTER TABLE ... ADD CONSTRAINT fk_<table>_<column> ...
#   Junction   → CREATE TABLE IF NOT EXISTS ... (composite PK, two FKs)
#
#   Identifiers are backtick-quoted. Rendering is pure: nothing here
#   talks to a database.
#
# ==============================================

from typing import Iterable, List

from relinfer.analysis.decision import ForeignKeyPlacement, JunctionTable

KEY_COLUMN_TYPE = "VARCHAR(255)"


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def constraint_name(table: str, column: str) -> str:
    # MySQL caps identifiers at 64 characters
    return f"fk_{table}_{column}"[:64]


def render_placement_ddl(placement: ForeignKeyPlacement) -> List[str]:
    """
    Render the statements for one placement.

    Args:
        placement: A simple-FK or junction placement

    Returns:
        Statements in execution order, without trailing semicolons
    """
    if placement.is_junction:
        return [_render_junction(placement.junction_table)]

    table = quote_identifier(placement.foreign_key_table)
    column = quote_identifier(placement.foreign_key_column)
    return [
        f"ALTER TABLE {table} ADD COLUMN {column} {KEY_COLUMN_TYPE} NULL",
        (
            f"ALTER TABLE {table} ADD CONSTRAINT "
            f"{quote_identifier(constraint_name(placement.foreign_key_table, placement.foreign_key_column))} "
            f"FOREIGN KEY ({column}) REFERENCES {quote_identifier(placement.references_table)} "
            f"({quote_identifier(placement.references_column)})"
        ),
    ]


def _render_junction(junction: JunctionTable) -> str:
    definitions = [
        f"{quote_identifier(column.name)} {KEY_COLUMN_TYPE} NOT NULL"
        for column in junction.columns
    ]
    definitions.append(
        "PRIMARY KEY (" + ", ".join(quote_identifier(name) for name in junction.primary_key) + ")"
    )
    for column in junction.columns:
        definitions.append(
            f"FOREIGN KEY ({quote_identifier(column.name)}) REFERENCES "
            f"{quote_identifier(column.references)} ({quote_identifier(column.references_column)})"
        )
    return f"CREATE TABLE IF NOT EXISTS {quote_identifier(junction.name)} ({', '.join(definitions)})"


def render_placements_ddl(placements: Iterable[ForeignKeyPlacement]) -> List[str]:
    statements: List[str] = []
    for placement in placements:
        statements.extend(render_placement_ddl(placement))
    return statements


def render_report_ddl(report) -> List[str]:
    """
    Render every placement of an AnalysisReport, in report order.

    Args:
        report: An AnalysisReport (anything with a ``placements`` list)

    Returns:
        All statements, concatenated
    """
    return render_placements_ddl(report.placements)
