# ==============================================
# TOPIC 4: STORAGE (sources + destination)
# ==============================================
#
# This package holds every piece of I/O around the engine:
# reading tables from a source store, and applying placement
# directives to the destination MySQL schema.
#
# Modules:
# --------
# - data_access.py     → DataAccessPort + InMemoryDataAccess
# - mongo_client.py    → MongoDataAccess (pymongo)
# - airtable_client.py → AirtableDataAccess (requests)
# - mysql_client.py    → MySQLClient, the schema-apply step (PyMySQL)
#
# ==============================================

from .data_access import DataAccessPort, InMemoryDataAccess
from .mongo_client import MongoDataAccess
from .airtable_client import AirtableDataAccess
from .mysql_client import ApplyResult, MySQLClient

__all__ = [
    "AirtableDataAccess",
    "ApplyResult",
    "DataAccessPort",
    "InMemoryDataAccess",
    "MongoDataAccess",
    "MySQLClient",
]
