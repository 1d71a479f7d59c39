# ==============================================
# AirtableDataAccess
# ==============================================
#
# PURPOSE:
#   DataAccessPort that reads a base straight from the Airtable REST API.
#
# ENDPOINTS:
# ----------
#   GET {api_url}/v0/meta/bases/{base_id}/tables
#       → table + field metadata. Link fields have type
#         "multipleRecordLinks" and options.linkedTableId; they are
#         multi-valued unless options.prefersSingleRecordLink.
#
#   GET {api_url}/v0/{base_id}/{table_id}?pageSize=100[&offset=...]
#       → one page of records; "offset" in the body means more pages.
#
#   Authorization: Bearer <api key>
#
#   requests.RequestException and HTTP errors become DataAccessError.
#
# ==============================================

from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import requests
from loguru import logger

from relinfer.errors import DataAccessError
from relinfer.normalization import RecordNormalizer, SourceTable
from .data_access import DataAccessPort, first_keys

DEFAULT_API_URL = "https://api.airtable.com"
PAGE_SIZE = 100
LINK_FIELD_TYPE = "multipleRecordLinks"


class AirtableDataAccess(DataAccessPort):
    def __init__(
        self,
        api_key: str,
        base_id: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        normalizer: Optional[RecordNormalizer] = None,
    ):
        self.api_key = api_key
        self.base_id = base_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {api_key}"})
        self.normalizer = normalizer or RecordNormalizer()
        self._schema: Optional[List[Mapping[str, Any]]] = None

    def list_table_ids(self) -> List[str]:
        return [table["id"] for table in self._tables()]

    def fetch_table(self, table_id: str) -> SourceTable:
        meta = self._table_meta(table_id)
        records = [
            {"id": record["id"], "fields": record.get("fields") or {}}
            for record in self._iter_records(meta["id"])
        ]
        logger.debug("Fetched {} records from Airtable table '{}'", len(records), meta["name"])
        return self.normalizer.normalize_table({
            "id": meta["id"],
            "name": meta["name"],
            "fields": [self._field_definition(field) for field in meta.get("fields") or []],
            "records": records,
        })

    def fetch_key_set(self, table_id: str, limit: int) -> Tuple[str, ...]:
        meta = self._table_meta(table_id)
        ids = []
        for record in self._iter_records(meta["id"]):
            ids.append(record["id"])
            if len(ids) >= limit:
                break
        return first_keys(ids, limit)

    # ======================================
    # HTTP helpers
    # ======================================
    def _get(self, url: str, params: Optional[Dict[str, Any]] = None, table_id: Optional[str] = None) -> Mapping:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise DataAccessError(f"Airtable request failed: {e}", table_id=table_id) from e
        except ValueError as e:
            raise DataAccessError(f"Airtable returned invalid JSON: {e}", table_id=table_id) from e

    def _tables(self) -> List[Mapping[str, Any]]:
        if self._schema is None:
            body = self._get(f"{self.api_url}/v0/meta/bases/{self.base_id}/tables")
            self._schema = list(body.get("tables") or [])
        return self._schema

    def _table_meta(self, table_id: str) -> Mapping[str, Any]:
        for table in self._tables():
            if table["id"] == table_id or table.get("name") == table_id:
                return table
        raise DataAccessError("table not found in base schema", table_id=table_id)

    def _iter_records(self, table_id: str) -> Iterator[Mapping[str, Any]]:
        url = f"{self.api_url}/v0/{self.base_id}/{table_id}"
        offset = None
        while True:
            params: Dict[str, Any] = {"pageSize": PAGE_SIZE}
            if offset:
                params["offset"] = offset

            body = self._get(url, params=params, table_id=table_id)
            yield from body.get("records") or []

            offset = body.get("offset")
            if not offset:
                break

    @staticmethod
    def _field_definition(field: Mapping[str, Any]) -> Dict[str, Any]:
        definition: Dict[str, Any] = {
            "name": field["name"],
            "type": field.get("type", "unknown"),
            "isMultiValued": False,
        }
        if field.get("type") == LINK_FIELD_TYPE:
            options = field.get("options") or {}
            definition["linkedTableId"] = options.get("linkedTableId")
            definition["isMultiValued"] = not options.get("prefersSingleRecordLink", False)
        return definition
