# ==============================================
# MongoDataAccess
# ==============================================
#
# PURPOSE:
#   DataAccessPort backed by MongoDB, for sources that were imported
#   into Mongo as one collection per table.
#
# LAYOUT:
# -------
#   _tables collection (metadata, one document per table):
#     {_id: table id, name, collection, fields: [{name, type,
#      isMultiValued, linkedTableId?}]}
#
#   One collection per table, documents either
#     {_id | id, fields: {...}}         (wrapped)
#     {_id | id, <field>: <value>, ...} (flat, every other key is a field)
#
# CLASS: MongoDataAccess
# ----------------------
#   Stateful, holds a pymongo client.
#
#   Constructor:
#   ------------
#   - __init__(host, port, database, user=None, password=None)
#
#   Methods:
#   --------
#   - connect() / disconnect()
#   - list_table_ids() / fetch_table(table_id) / fetch_key_set(table_id, limit)
#       Any PyMongoError is re-raised as DataAccessError.
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with MongoDataAccess(...) as source:` usage.
#
# ==============================================

from typing import Any, Dict, List, Mapping, Optional, Tuple

from loguru import logger
from pymongo import MongoClient as PyMongoClient
from pymongo.errors import PyMongoError

from relinfer.errors import DataAccessError
from relinfer.normalization import RecordNormalizer, SourceTable
from .data_access import DataAccessPort, first_keys

METADATA_COLLECTION = "_tables"


class MongoDataAccess(DataAccessPort):
    def __init__(self, host, port, database, user=None, password=None, normalizer: Optional[RecordNormalizer] = None):
        # Store connection params. Don't connect yet.
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.normalizer = normalizer or RecordNormalizer()
        self.client = None

    def connect(self) -> None:
        try:
            if self.user and self.password:
                uri = f"mongodb://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"
            else:
                uri = f"mongodb://{self.host}:{self.port}/{self.database}"
            self.client = PyMongoClient(uri)
            self.client.admin.command("ping")
            logger.info("Connected to MongoDB {}:{} / {}", self.host, self.port, self.database)
        except PyMongoError as e:
            raise DataAccessError(f"could not connect to MongoDB: {e}") from e

    def disconnect(self) -> None:
        if self.client:
            self.client.close()
            self.client = None

    # ======================================
    # DataAccessPort
    # ======================================
    def list_table_ids(self) -> List[str]:
        try:
            return [str(doc["_id"]) for doc in self._db()[METADATA_COLLECTION].find({}, {"_id": 1})]
        except PyMongoError as e:
            raise DataAccessError(f"could not list tables: {e}") from e

    def fetch_table(self, table_id: str) -> SourceTable:
        meta = self._metadata(table_id)
        try:
            documents = list(self._db()[meta.get("collection") or meta["name"]].find({}))
        except PyMongoError as e:
            raise DataAccessError(f"could not read records: {e}", table_id=table_id) from e

        payload = {
            "id": str(meta["_id"]),
            "name": meta["name"],
            "fields": meta.get("fields") or [],
            "records": [self._to_record(doc) for doc in documents],
        }
        logger.debug("Read {} documents for table '{}'", len(documents), meta["name"])
        return self.normalizer.normalize_table(payload)

    def fetch_key_set(self, table_id: str, limit: int) -> Tuple[str, ...]:
        meta = self._metadata(table_id)
        collection = self._db()[meta.get("collection") or meta["name"]]
        try:
            cursor = collection.find({}, {"_id": 1, "id": 1}).limit(limit)
            return first_keys((self._record_id(doc) for doc in cursor), limit)
        except PyMongoError as e:
            raise DataAccessError(f"could not read key set: {e}", table_id=table_id) from e

    # ======================================
    # Helpers
    # ======================================
    def _db(self):
        if not self.client:
            raise DataAccessError("not connected to MongoDB")
        return self.client[self.database]

    def _metadata(self, table_id: str) -> Mapping[str, Any]:
        try:
            tables = self._db()[METADATA_COLLECTION]
            meta = tables.find_one({"_id": table_id}) or tables.find_one({"name": table_id})
        except PyMongoError as e:
            raise DataAccessError(f"could not read table metadata: {e}", table_id=table_id) from e
        if meta is None:
            raise DataAccessError("table not found in metadata", table_id=table_id)
        return meta

    @staticmethod
    def _record_id(doc: Mapping[str, Any]) -> str:
        return str(doc["id"]) if doc.get("id") is not None else str(doc["_id"])

    def _to_record(self, doc: Mapping[str, Any]) -> Dict[str, Any]:
        if isinstance(doc.get("fields"), Mapping):
            fields = doc["fields"]
        else:
            fields = {key: value for key, value in doc.items() if key not in ("_id", "id")}
        return {"id": self._record_id(doc), "fields": fields}

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
