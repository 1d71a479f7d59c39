# ==============================================
# Tests for the command-line interface
# ==============================================

import json
from unittest.mock import patch

import pytest

from relinfer import cli
from relinfer.config import AppConfig
from relinfer.storage import ApplyResult


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    monkeypatch.setattr(cli, "get_config", lambda: AppConfig())


@pytest.fixture
def input_file(tmp_path, orders_payload, customers_payload):
    path = tmp_path / "tables.json"
    path.write_text(json.dumps({"tables": [orders_payload, customers_payload]}), encoding="utf-8")
    return path


@pytest.fixture
def report_file(tmp_path, input_file):
    path = tmp_path / "report.json"
    assert cli.main(["analyze", "--input", str(input_file), "--output", str(path)]) == 0
    return path


class TestAnalyzeCommand:

    def test_writes_report(self, report_file):
        report = json.loads(report_file.read_text(encoding="utf-8"))

        assert report["summary"]["totalTables"] == 2
        assert report["cancelled"] is False
        [relationship] = report["relationships"]
        assert relationship["sourceTable"] == "Orders"
        assert relationship["placement"]["foreignKeyTable"] == "orders"

    def test_prints_report_without_output(self, input_file, capsys):
        assert cli.main(["analyze", "--input", str(input_file), "--workers", "1"]) == 0
        assert json.loads(capsys.readouterr().out)["summary"]["totalRelationships"] == 1

    def test_table_filter(self, input_file, capsys):
        assert cli.main(["analyze", "--input", str(input_file), "--tables", "tblCustomers"]) == 0
        assert json.loads(capsys.readouterr().out)["relationships"] == []

    def test_invalid_input_exits_2(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"not": "tables"}', encoding="utf-8")
        assert cli.main(["analyze", "--input", str(path)]) == 2

    def test_unreadable_tables_exit_2(self, input_file):
        assert cli.main(["analyze", "--input", str(input_file), "--tables", "tblNope"]) == 2

    def test_input_and_source_are_exclusive(self, input_file):
        with pytest.raises(SystemExit):
            cli.main(["analyze", "--input", str(input_file), "--source", "mongo"])


class TestPreviewAndApply:

    def test_preview_prints_ddl(self, report_file, capsys):
        assert cli.main(["preview", "--report", str(report_file)]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "ALTER TABLE `orders` ADD COLUMN `customers_id` VARCHAR(255) NULL;",
            "ALTER TABLE `orders` ADD CONSTRAINT `fk_orders_customers_id` "
            "FOREIGN KEY (`customers_id`) REFERENCES `customers` (`id`);",
        ]

    def test_apply_dry_run_matches_preview(self, report_file, capsys):
        cli.main(["preview", "--report", str(report_file)])
        preview = capsys.readouterr().out

        assert cli.main(["apply", "--report", str(report_file), "--dry-run"]) == 0
        assert capsys.readouterr().out == preview

    def test_apply_reports_failures(self, report_file):
        failed = ApplyResult(statements=["a", "b"], executed=1, errors=[("b", "duplicate key")])
        with patch.object(cli, "MySQLClient") as client_cls:
            client_cls.return_value.__enter__.return_value.apply_placements.return_value = failed
            assert cli.main(["apply", "--report", str(report_file)]) == 1

    def test_apply_success(self, report_file):
        with patch.object(cli, "MySQLClient") as client_cls:
            db = client_cls.return_value.__enter__.return_value
            db.apply_placements.return_value = ApplyResult(statements=["a"], executed=1)
            assert cli.main(["apply", "--report", str(report_file)]) == 0

        [placement] = db.apply_placements.call_args[0][0]
        assert placement.foreign_key_table == "orders"

    def test_missing_report_exits_2(self, tmp_path):
        assert cli.main(["preview", "--report", str(tmp_path / "missing.json")]) == 2
