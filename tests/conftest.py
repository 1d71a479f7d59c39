# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures for all tests.
#
# FIXTURES:
# ---------
# - table_payload        → factory for a raw table payload
# - customers_payload    → 100 customers
# - orders_payload       → 500 orders; customer_ids is a one-element
#                          array in 490 records and empty in 10
# - orders_customers     → in-memory port over both
# - stats_from_values    → factory: raw values → FieldStatistics
# - make_recommendation  → factory for a scored recommendation
#
# ==============================================

import pytest

from relinfer.analysis import (
    Cardinality,
    ConfidenceBucket,
    ConfidenceFactors,
    FieldStatistics,
    FieldStatsAccumulator,
    Provenance,
    RelationshipCandidate,
    RelationshipRecommendation,
)
from relinfer.normalization import TypeDetector
from relinfer.storage import InMemoryDataAccess


def customer_id(i: int) -> str:
    return f"cust{i:03d}"


def build_table_payload(name, table_id, records, fields=None):
    return {"name": name, "id": table_id, "fields": fields or [], "records": records}


@pytest.fixture
def table_payload():
    return build_table_payload


@pytest.fixture
def customers_payload():
    return build_table_payload(
        "Customers",
        "tblCustomers",
        [{"id": customer_id(i), "fields": {"name": f"Customer {i}"}} for i in range(100)],
        fields=[{"name": "name", "type": "singleLineText", "isMultiValued": False}],
    )


def build_orders_payload(declare_link: bool = False):
    records = []
    for i in range(500):
        refs = [] if i < 10 else [customer_id(i % 100)]
        records.append({
            "id": f"ord{i:03d}",
            "fields": {"customer_ids": refs, "status": "open" if i % 2 else "closed"},
        })

    link_field = {"name": "customer_ids", "type": "multipleRecordLinks", "isMultiValued": True}
    if declare_link:
        link_field["linkedTableId"] = "tblCustomers"
    return build_table_payload(
        "Orders",
        "tblOrders",
        records,
        fields=[link_field, {"name": "status", "type": "singleSelect", "isMultiValued": False}],
    )


@pytest.fixture
def orders_payload():
    return build_orders_payload()


@pytest.fixture
def declared_orders_payload():
    return build_orders_payload(declare_link=True)


@pytest.fixture
def orders_customers(orders_payload, customers_payload):
    return InMemoryDataAccess.from_payloads([orders_payload, customers_payload])


@pytest.fixture
def students_courses(table_payload):
    courses = table_payload(
        "Courses",
        "tblCourses",
        [{"id": f"crs{i:02d}", "fields": {"title": f"Course {i}"}} for i in range(10)],
    )
    students = table_payload(
        "Students",
        "tblStudents",
        [
            {
                "id": f"stu{i:02d}",
                "fields": {"course_ids": [f"crs{(i + k) % 10:02d}" for k in range(2 + i % 2)]},
            }
            for i in range(20)
        ],
        fields=[{"name": "course_ids", "type": "multipleRecordLinks", "isMultiValued": True}],
    )
    return InMemoryDataAccess.from_payloads([students, courses])


def build_field_stats(values, table="Orders", name="customer_ids", max_sample=1000, identifier_index=None):
    accumulator = FieldStatsAccumulator(table=table, name=name, max_sample=max_sample)
    for raw in values:
        value, _ = TypeDetector.to_field_value(raw)
        accumulator.update(value)
    return accumulator.freeze(identifier_index)


@pytest.fixture
def stats_from_values():
    return build_field_stats


def build_recommendation(
    source="Orders",
    field="customer_ids",
    target="Customers",
    cardinality=Cardinality.MANY_TO_ONE,
    confidence=0.9,
    provenance=Provenance.DATA,
    reasoning="Detected relationship.",
):
    candidate = RelationshipCandidate(
        source_table=source,
        source_field=field,
        target_table=target,
        provenance=provenance,
        field_stats=FieldStatistics(table=source, name=field),
        cardinality=cardinality,
    )
    return RelationshipRecommendation(
        candidate=candidate,
        cardinality=cardinality,
        confidence=confidence,
        factors=ConfidenceFactors(1.0, 1.0, 1.0, 1.0),
        reasoning=reasoning,
        provenance=provenance,
        bucket=ConfidenceBucket.AUTO_SUGGEST if confidence >= 0.7 else ConfidenceBucket.MANUAL_REVIEW,
    )


@pytest.fixture
def make_recommendation():
    return build_recommendation
