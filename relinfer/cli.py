# ==============================================
# CLI — Command Line Entry Point
# ==============================================
#
# PURPOSE:
#   Provides the command-line interface to run an analysis, preview
#   its DDL, and hand it to the MySQL schema-apply step.
#
# COMMANDS:
# ---------
# 1. Analyse tables from a JSON file, MongoDB or Airtable:
#    relinfer analyze --input tables.json --output report.json
#    relinfer analyze --source mongo --tables tblA tblB
#    relinfer analyze --source airtable --workers 8
#
# 2. Print the DDL a report would run:
#    relinfer preview --report report.json
#
# 3. Apply a report's placements to MySQL (from config):
#    relinfer apply --report report.json [--dry-run]
#
#   `python -m relinfer.cli ...` is equivalent.
#
# EXIT CODES:
# -----------
#   0 → success
#   1 → apply finished with failing statements
#   2 → no table could be read, or the input is invalid
#
# ==============================================

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from loguru import logger

from relinfer.config import AppConfig, get_config
from relinfer.engine import RelationshipInferenceEngine
from relinfer.errors import DataAccessError
from relinfer.planning import render_placements_ddl
from relinfer.report import placements_from_report
from relinfer.storage import AirtableDataAccess, InMemoryDataAccess, MongoDataAccess, MySQLClient

EXIT_OK = 0
EXIT_APPLY_FAILED = 1
EXIT_INPUT_ERROR = 2


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relinfer",
        description="Infer foreign-key relationships between source tables.",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Run relationship inference")
    source = analyze.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", type=Path, help="JSON file: a list of table payloads or {\"tables\": [...]}")
    source.add_argument("--source", choices=("mongo", "airtable"), help="Read tables from a configured store")
    analyze.add_argument("--tables", nargs="+", metavar="ID", help="Only analyse these table ids")
    analyze.add_argument("--output", type=Path, help="Write the report here instead of stdout")
    analyze.add_argument("--workers", type=int, help="Parallel fan-out (default: RELINFER_MAX_WORKERS)")

    preview = subparsers.add_parser("preview", help="Print the DDL of a saved report")
    preview.add_argument("--report", type=Path, required=True)

    apply = subparsers.add_parser("apply", help="Apply a saved report's placements to MySQL")
    apply.add_argument("--report", type=Path, required=True)
    apply.add_argument("--dry-run", action="store_true", help="Print the statements, execute nothing")

    return parser


# ======================================
# Commands
# ======================================
def load_payloads(path: Path) -> list:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("tables")
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of tables or an object with a 'tables' list")
    return data


def run_analyze(args: argparse.Namespace, config: AppConfig) -> int:
    analysis_config = config.analysis
    if args.workers is not None:
        analysis_config = replace(analysis_config, max_workers=args.workers)

    if args.input is not None:
        report = RelationshipInferenceEngine(
            InMemoryDataAccess.from_payloads(load_payloads(args.input)), config=analysis_config
        ).analyze(table_ids=args.tables)
    elif args.source == "mongo":
        mongo = config.mongo
        with MongoDataAccess(mongo.host, mongo.port, mongo.database, mongo.user, mongo.password) as source:
            report = RelationshipInferenceEngine(source, config=analysis_config).analyze(table_ids=args.tables)
    else:
        airtable = config.airtable
        if not airtable.api_key or not airtable.base_id:
            raise ValueError("AIRTABLE_API_KEY and AIRTABLE_BASE_ID must be set")
        source = AirtableDataAccess(
            airtable.api_key, airtable.base_id, api_url=airtable.api_url, timeout=airtable.timeout_seconds
        )
        report = RelationshipInferenceEngine(source, config=analysis_config).analyze(table_ids=args.tables)

    output = report.to_json()
    if args.output is not None:
        args.output.write_text(output + "\n", encoding="utf-8")
        logger.info("Report written to {}", args.output)
    else:
        print(output)
    return EXIT_OK


def read_report_placements(path: Path):
    return placements_from_report(json.loads(path.read_text(encoding="utf-8")))


def run_preview(args: argparse.Namespace, config: AppConfig) -> int:
    for statement in render_placements_ddl(read_report_placements(args.report)):
        print(f"{statement};")
    return EXIT_OK


def run_apply(args: argparse.Namespace, config: AppConfig) -> int:
    placements = read_report_placements(args.report)
    if args.dry_run:
        for statement in render_placements_ddl(placements):
            print(f"{statement};")
        return EXIT_OK

    mysql = config.mysql
    with MySQLClient(mysql.host, mysql.port, mysql.user, mysql.password, mysql.database) as db:
        result = db.apply_placements(placements)

    for statement, error in result.errors:
        print(f"FAILED: {statement}; -- {error}", file=sys.stderr)
    return EXIT_OK if result.succeeded else EXIT_APPLY_FAILED


COMMANDS = {
    "analyze": run_analyze,
    "preview": run_preview,
    "apply": run_apply,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()
    configure_logging(args.log_level or config.log_level)

    try:
        return COMMANDS[args.command](args, config)
    except DataAccessError as e:
        logger.error("Data access failed: {}", e)
        return EXIT_INPUT_ERROR
    except (ValueError, KeyError, OSError) as e:
        # json.JSONDecodeError is a ValueError
        logger.error("Invalid input: {}", e)
        return EXIT_INPUT_ERROR


if __name__ == "__main__":
    sys.exit(main())
