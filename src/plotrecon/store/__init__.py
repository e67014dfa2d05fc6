"""plotrecon stores -- record store collaborators.

Public API:
    RecordStore      -- list/create/update/delete interface
    InMemoryStore    -- dict-backed store
    FileRecordStore  -- CSV/JSON export loaded into memory (pandas)
    HttpRecordStore  -- JSON-over-HTTP document store client
"""

from ._base import DEFAULT_LIST_LIMIT, RecordStore
from .http import BaseClient, HttpRecordStore
from .memory import FileRecordStore, InMemoryStore

__all__ = [
    "DEFAULT_LIST_LIMIT",
    "RecordStore",
    "InMemoryStore",
    "FileRecordStore",
    "BaseClient",
    "HttpRecordStore",
]
