# ==============================================
# Tests for AnalysisReport serialisation
# ==============================================

import json

import pytest

from relinfer.analysis import Cardinality, ConfidenceBucket, Provenance
from relinfer.planning import ForeignKeyPlanner, render_report_ddl
from relinfer.report import AnalysisReport, placements_from_report


@pytest.fixture
def report(make_recommendation):
    planner = ForeignKeyPlanner()
    recs = planner.plan_all([
        make_recommendation(confidence=0.9),
        make_recommendation(
            source="Students",
            field="courses",
            target="Courses",
            cardinality=Cardinality.MANY_TO_MANY,
            confidence=0.5,
            provenance=Provenance.SCHEMA,
        ),
    ])
    return AnalysisReport(recommendations=recs, total_tables=4, potential_issues=["x"])


class TestAnalysisReport:

    def test_top_level_shape(self, report):
        data = report.to_dict()

        assert list(data) == ["relationships", "summary", "potentialIssues", "cancelled"]
        assert data["potentialIssues"] == ["x"]
        assert data["cancelled"] is False

    def test_summary_counts_every_enum_value(self, report):
        summary = report.summary()

        assert summary["highConfidenceCount"] == 1
        assert summary["lowConfidenceCount"] == 1
        assert summary["byProvenance"] == {"schema": 1, "data": 1, "hybrid": 0}
        assert summary["byCardinality"]["many-to-many"] == 1
        assert summary["byCardinality"]["one-to-one"] == 0

    def test_high_confidence_filter(self, report):
        assert [rec.bucket for rec in report.high_confidence] == [ConfidenceBucket.AUTO_SUGGEST]

    def test_json_round_trip_of_placements(self, report):
        data = json.loads(report.to_json())
        assert placements_from_report(data) == report.placements

    def test_report_ddl_follows_report_order(self, report):
        statements = render_report_ddl(report)

        assert len(statements) == 3
        assert statements[0].startswith("ALTER TABLE `orders`")
        assert statements[2].startswith("CREATE TABLE IF NOT EXISTS `students_courses`")

    def test_placements_from_report_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            placements_from_report({"relationships": "nope"})
