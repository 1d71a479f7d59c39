# ==============================================
# Tests for the storage adapters
# ==============================================
#
# Nothing here talks to a real server: pymongo and pymysql are patched
# and Airtable gets a mocked requests session.
#
# ==============================================

from unittest.mock import MagicMock, patch

import pymysql
import pytest
import requests
from pymongo.errors import PyMongoError

from relinfer.analysis import ForeignKeyPlacement
from relinfer.errors import DataAccessError
from relinfer.normalization import ValueKind
from relinfer.storage import AirtableDataAccess, InMemoryDataAccess, MongoDataAccess, MySQLClient
from relinfer.storage.data_access import first_keys


class TestInMemoryDataAccess:

    def test_lookup_by_id_or_name(self, orders_customers):
        assert orders_customers.list_table_ids() == ["tblOrders", "tblCustomers"]
        assert orders_customers.fetch_table("tblCustomers").name == "Customers"
        assert orders_customers.fetch_table("Customers").id == "tblCustomers"

    def test_key_set_respects_limit(self, orders_customers):
        keys = orders_customers.fetch_key_set("tblCustomers", 5)
        assert keys == ("cust000", "cust001", "cust002", "cust003", "cust004")

    def test_unknown_table_raises(self, orders_customers):
        with pytest.raises(DataAccessError, match="table not found"):
            orders_customers.fetch_table("tblMissing")

    def test_injected_failures(self, orders_customers):
        orders_customers.fail_key_set("tblCustomers")

        assert orders_customers.fetch_table("tblCustomers").name == "Customers"
        with pytest.raises(DataAccessError):
            orders_customers.fetch_key_set("tblCustomers", 10)

    def test_first_keys_dedupes_in_order(self):
        assert first_keys(["b", "a", "b", "c"], 10) == ("b", "a", "c")
        assert first_keys(["b", "a", "b", "c"], 2) == ("b", "a")


# ======================================
# Airtable
# ======================================
def json_response(body):
    response = MagicMock()
    response.json.return_value = body
    response.raise_for_status.return_value = None
    return response


AIRTABLE_SCHEMA = {
    "tables": [
        {
            "id": "tblOrders",
            "name": "Orders",
            "fields": [
                {"name": "Customer", "type": "multipleRecordLinks", "options": {
                    "linkedTableId": "tblCustomers", "prefersSingleRecordLink": True,
                }},
                {"name": "Status", "type": "singleSelect"},
            ],
        },
        {"id": "tblCustomers", "name": "Customers", "fields": [{"name": "Name", "type": "singleLineText"}]},
    ]
}


def airtable_session(pages):
    """Session whose GETs return the schema first, then the given record pages."""
    session = MagicMock()
    session.headers = {}
    session.get.side_effect = [json_response(AIRTABLE_SCHEMA)] + [json_response(page) for page in pages]
    return session


class TestAirtableDataAccess:

    def test_sets_bearer_header(self):
        session = airtable_session([])
        AirtableDataAccess("key123", "appBase", session=session)
        assert session.headers["Authorization"] == "Bearer key123"

    def test_list_table_ids_from_meta_endpoint(self):
        session = airtable_session([])
        source = AirtableDataAccess("key", "appBase", session=session)

        assert source.list_table_ids() == ["tblOrders", "tblCustomers"]
        url = session.get.call_args[0][0]
        assert url == "https://api.airtable.com/v0/meta/bases/appBase/tables"

    def test_fetch_table_follows_offsets(self):
        session = airtable_session([
            {"records": [{"id": "rec1", "fields": {"Customer": ["cus1"], "Status": "open"}}], "offset": "next"},
            {"records": [{"id": "rec2", "fields": {"Status": "closed"}}]},
        ])
        source = AirtableDataAccess("key", "appBase", session=session)

        table = source.fetch_table("Orders")

        assert table.id == "tblOrders"
        assert table.record_ids == ("rec1", "rec2")
        assert table.records[0].fields["Customer"].kind is ValueKind.REFERENCE_LIST
        second_page_params = session.get.call_args_list[2][1]["params"]
        assert second_page_params == {"pageSize": 100, "offset": "next"}

    def test_link_field_definition(self):
        session = airtable_session([{"records": []}])
        table = AirtableDataAccess("key", "appBase", session=session).fetch_table("tblOrders")

        link = table.definition("Customer")
        assert link.is_link
        assert link.linked_table_id == "tblCustomers"
        assert link.is_multi_valued is False
        assert table.definition("Status").linked_table_id is None

    def test_key_set_stops_at_limit(self):
        session = airtable_session([
            {"records": [{"id": f"rec{i}"} for i in range(100)], "offset": "more"},
        ])
        keys = AirtableDataAccess("key", "appBase", session=session).fetch_key_set("tblCustomers", 3)

        assert keys == ("rec0", "rec1", "rec2")
        assert session.get.call_count == 2

    def test_request_errors_become_data_access_errors(self):
        session = MagicMock()
        session.headers = {}
        session.get.side_effect = requests.ConnectionError("down")

        with pytest.raises(DataAccessError, match="Airtable request failed"):
            AirtableDataAccess("key", "appBase", session=session).list_table_ids()

    def test_unknown_table(self):
        source = AirtableDataAccess("key", "appBase", session=airtable_session([]))
        with pytest.raises(DataAccessError, match="tblNope"):
            source.fetch_table("tblNope")


# ======================================
# MongoDB
# ======================================
class FakeCursor(list):
    def limit(self, n):
        return FakeCursor(self[:n])


class FakeCollection:
    def __init__(self, docs):
        self.docs = docs

    def find(self, query=None, projection=None):
        return FakeCursor(self.docs)

    def find_one(self, query):
        for doc in self.docs:
            if all(doc.get(key) == value for key, value in query.items()):
                return doc
        return None


class FakeMongoClient:
    def __init__(self, collections):
        self.collections = collections
        self.admin = MagicMock()
        self.closed = False

    def __getitem__(self, database):
        return self.collections

    def close(self):
        self.closed = True


MONGO_COLLECTIONS = {
    "_tables": FakeCollection([
        {"_id": "tblOrders", "name": "Orders", "collection": "orders", "fields": [
            {"name": "customer", "type": "multipleRecordLinks", "linkedTableId": "tblCustomers"},
        ]},
    ]),
    "orders": FakeCollection([
        {"_id": "o1", "customer": ["c1"], "total": 10},
        {"_id": "o2", "id": "ord-2", "fields": {"customer": ["c2"]}},
    ]),
}


class TestMongoDataAccess:

    def connected(self, collections=None):
        client = FakeMongoClient(collections or MONGO_COLLECTIONS)
        patcher = patch("relinfer.storage.mongo_client.PyMongoClient", return_value=client)
        patcher.start()
        source = MongoDataAccess("localhost", 27017, "relinfer")
        source.connect()
        patcher.stop()
        return source, client

    def test_lists_tables_from_metadata_collection(self):
        source, _ = self.connected()
        assert source.list_table_ids() == ["tblOrders"]

    def test_fetch_table_handles_flat_and_wrapped_documents(self):
        source, _ = self.connected()

        table = source.fetch_table("Orders")

        assert table.name == "Orders"
        assert table.record_ids == ("o1", "ord-2")
        assert set(table.records[0].fields) == {"customer", "total"}
        assert table.records[1].fields["customer"].ids == ("c2",)
        assert table.definition("customer").linked_table_id == "tblCustomers"

    def test_fetch_key_set(self):
        source, _ = self.connected()
        assert source.fetch_key_set("tblOrders", 1) == ("o1",)

    def test_unknown_table(self):
        source, _ = self.connected()
        with pytest.raises(DataAccessError, match="table not found"):
            source.fetch_table("tblNope")

    def test_driver_errors_are_wrapped(self):
        broken = MagicMock()
        broken.find.side_effect = PyMongoError("socket closed")
        source, _ = self.connected({"_tables": broken})

        with pytest.raises(DataAccessError, match="could not list tables"):
            source.list_table_ids()

    def test_not_connected(self):
        with pytest.raises(DataAccessError, match="not connected"):
            MongoDataAccess("localhost", 27017, "relinfer").list_table_ids()

    def test_connect_failure(self):
        client = MagicMock()
        client.admin.command.side_effect = PyMongoError("no server")
        with patch("relinfer.storage.mongo_client.PyMongoClient", return_value=client):
            with pytest.raises(DataAccessError, match="could not connect"):
                MongoDataAccess("localhost", 27017, "relinfer").connect()

    def test_context_manager_disconnects(self):
        client = FakeMongoClient(MONGO_COLLECTIONS)
        with patch("relinfer.storage.mongo_client.PyMongoClient", return_value=client):
            with MongoDataAccess("localhost", 27017, "relinfer") as source:
                assert source.client is client
        assert client.closed


# ======================================
# MySQL
# ======================================
PLACEMENT = ForeignKeyPlacement(
    foreign_key_table="orders",
    foreign_key_column="customers_id",
    references_table="customers",
)


class TestMySQLClient:

    def test_dry_run_executes_nothing(self):
        result = MySQLClient("localhost", 3306, "root", "pw", "relinfer").apply_placements([PLACEMENT], dry_run=True)

        assert result.dry_run
        assert result.executed == 0
        assert len(result.statements) == 2

    def test_apply_without_connection_raises(self):
        with pytest.raises(RuntimeError):
            MySQLClient("localhost", 3306, "root", "pw", "relinfer").apply_placements([PLACEMENT])

    def test_connect_creates_and_selects_database(self):
        connection = MagicMock()
        with patch("relinfer.storage.mysql_client.pymysql.connect", return_value=connection):
            MySQLClient("localhost", 3306, "root", "pw", "relinfer").connect()

        executed = [call.args[0] for call in connection.cursor.return_value.execute.call_args_list]
        assert executed == ["CREATE DATABASE IF NOT EXISTS `relinfer`", "USE `relinfer`"]

    def test_execute_and_fetch_all(self):
        connection = MagicMock()
        connection.cursor.return_value.fetchall.return_value = [{"COLUMN_NAME": "customers_id"}]

        with patch("relinfer.storage.mysql_client.pymysql.connect", return_value=connection):
            with MySQLClient("localhost", 3306, "root", "pw", "relinfer") as db:
                db.execute("ALTER TABLE `orders` ADD COLUMN `x` INT")
                rows = db.fetch_all("SELECT COLUMN_NAME FROM t WHERE TABLE_NAME = %s", ("orders",))

        assert rows == [{"COLUMN_NAME": "customers_id"}]
        connection.commit.assert_called_once()
        connection.cursor.return_value.execute.assert_called_with(
            "SELECT COLUMN_NAME FROM t WHERE TABLE_NAME = %s", ("orders",)
        )

    def test_fetch_all_without_connection_is_empty(self):
        assert MySQLClient("localhost", 3306, "root", "pw", "relinfer").fetch_all("SELECT 1") == []

    def test_failing_statement_is_rolled_back_and_recorded(self):
        connection = MagicMock()

        def execute(statement):
            if "ADD CONSTRAINT" in statement:
                raise pymysql.MySQLError("cannot add foreign key")

        with patch("relinfer.storage.mysql_client.pymysql.connect", return_value=connection):
            with MySQLClient("localhost", 3306, "root", "pw", "relinfer") as db:
                connection.cursor.return_value.execute.side_effect = execute
                result = db.apply_placements([PLACEMENT])

        assert result.executed == 1
        assert not result.succeeded
        [(statement, message)] = result.errors
        assert "ADD CONSTRAINT" in statement
        assert "cannot add foreign key" in message
        connection.rollback.assert_called_once()
        connection.close.assert_called_once()
