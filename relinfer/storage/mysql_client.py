# ==============================================
# MySQLClient
# ==============================================
#
# PURPOSE:
#   The external schema-apply step. Executes the DDL rendered from
#   placement directives against the destination MySQL database.
#
#   The inference engine never imports this module; only the CLI
#   `apply` command does. Inference is re-runnable, schema mutation
#   is not, so the two stay apart.
#
# CLASS: MySQLClient
# ------------------
#   Stateful, holds a connection to MySQL.
#
#   Constructor:
#   ------------
#   - __init__(host, port, user, password, database)
#       Store connection params. Don't connect yet.
#
#   Methods:
#   --------
#   - connect() -> None
#       Establish connection. Create database if it doesn't exist.
#
#   - disconnect() -> None
#
#   - apply_placements(placements, dry_run=False) -> ApplyResult
#       Render every placement and run the statements one by one,
#       committing each. A failing statement is rolled back, logged,
#       and recorded; the rest still run.
#
#   - execute(query, params=None) -> None
#   - fetch_all(query, params=None) -> list[dict]
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with MySQLClient(...) as db:` usage.
#
# ==============================================

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Tuple, cast

import pymysql
import pymysql.cursors
from loguru import logger

from relinfer.analysis.decision import ForeignKeyPlacement
from relinfer.planning.ddl import quote_identifier, render_placements_ddl


@dataclass
class ApplyResult:
    statements: List[str] = field(default_factory=list)
    executed: int = 0
    errors: List[Tuple[str, str]] = field(default_factory=list)  # (statement, error message)
    dry_run: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.errors


class MySQLClient:
    def __init__(self, host, port, user, password, database):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connection = None

    def connect(self) -> None:
        # Establish connection to MySQL, create database if it doesn't exist
        self.connection = pymysql.connect(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
        )
        cursor = self.connection.cursor()
        cursor.execute(f"CREATE DATABASE IF NOT EXISTS {quote_identifier(self.database)}")
        cursor.execute(f"USE {quote_identifier(self.database)}")
        cursor.close()
        logger.info("Connected to MySQL {}:{} / {}", self.host, self.port, self.database)

    def disconnect(self) -> None:
        if self.connection:
            self.connection.close()
            self.connection = None

    def apply_placements(
        self, placements: Iterable[ForeignKeyPlacement], dry_run: bool = False
    ) -> ApplyResult:
        """
        Execute the DDL for a list of placements.

        Args:
            placements: Placement directives, in report order
            dry_run: Only render the statements, execute nothing

        Returns:
            ApplyResult with the statements, executed count and per-statement errors
        """
        statements = render_placements_ddl(placements)
        result = ApplyResult(statements=statements, dry_run=dry_run)
        if dry_run:
            return result

        if self.connection is None:
            raise RuntimeError("Not connected to MySQL")

        cursor = self.connection.cursor()
        for statement in statements:
            try:
                cursor.execute(statement)
                self.connection.commit()
                result.executed += 1
                logger.debug("Applied: {}", statement)
            except pymysql.MySQLError as e:
                # Log error but continue with the remaining statements
                logger.warning("Statement failed: {} ({})", statement, e)
                self.connection.rollback()
                result.errors.append((statement, str(e)))
        cursor.close()

        logger.info(
            "Applied {}/{} statements ({} failed)",
            result.executed, len(statements), len(result.errors),
        )
        return result

    def execute(self, query: str, params: tuple | None = None) -> None:
        if self.connection is not None:
            cursor = self.connection.cursor()
            if params:
                cursor.execute(query, params)
            else:
                cursor.execute(query)
            self.connection.commit()
            cursor.close()

    def fetch_all(self, query: str, params: tuple | None = None) -> list[dict]:
        # Execute SELECT and return rows as dicts
        if self.connection is not None:
            cursor = self.connection.cursor(pymysql.cursors.DictCursor)
            if params is not None:
                cursor.execute(query, params)
            else:
                cursor.execute(query)
            results = cast(list[dict[str, Any]], cursor.fetchall())
            cursor.close()
            return results
        return []

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
