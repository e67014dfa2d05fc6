"""In-memory and file-backed record stores.

``InMemoryStore`` mirrors the document store semantics the engine relies on
(equality filters, ``-field`` sorting, limits, generated ids). The file store
loads a CSV or JSON export with pandas and writes it back on ``save``.
"""
from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from ..errors import RecordNotFoundError, StoreError
from ._base import DEFAULT_LIST_LIMIT, RecordStore

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex[:24]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryStore(RecordStore):
    """Dict-backed record store, safe to call from worker threads."""

    def __init__(self, records: Optional[Iterable[Dict[str, Any]]] = None, entity: str = "Plot"):
        self.entity = entity
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        for row in records or []:
            row = dict(row)
            row.setdefault("id", _new_id())
            self._rows[str(row["id"])] = row

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, record_id: str) -> bool:
        return record_id in self._rows

    def list(
        self,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> List[Dict[str, Any]]:
        with self._lock:
            rows = [dict(r) for r in self._rows.values()]

        if filter:
            rows = [r for r in rows if all(r.get(k) == v for k, v in filter.items())]

        if sort:
            field = sort.lstrip("-")
            rows.sort(key=lambda r: str(r.get(field) or ""), reverse=sort.startswith("-"))

        return rows[:limit] if limit else rows

    def get(self, record_id: str) -> Dict[str, Any]:
        with self._lock:
            if record_id not in self._rows:
                raise RecordNotFoundError(record_id)
            return dict(self._rows[record_id])

    def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        now = _now()
        row = {**fields, "id": _new_id(), "created_date": now, "updated_date": now}
        with self._lock:
            self._rows[row["id"]] = row
        return dict(row)

    def update(self, record_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            if record_id not in self._rows:
                raise RecordNotFoundError(record_id)
            row = self._rows[record_id]
            row.update({k: v for k, v in fields.items() if k != "id"})
            row["updated_date"] = _now()
            return dict(row)

    def delete(self, record_id: str) -> None:
        with self._lock:
            if self._rows.pop(record_id, None) is None:
                raise RecordNotFoundError(record_id)

    def rows(self) -> List[Dict[str, Any]]:
        """Snapshot of every stored row."""
        with self._lock:
            return [dict(r) for r in self._rows.values()]


class FileRecordStore(InMemoryStore):
    """Record store backed by a CSV or JSON export file."""

    SUPPORTED = (".csv", ".json")

    def __init__(self, file_path: str, entity: str = "Plot"):
        self.file_path = Path(file_path)
        ext = self.file_path.suffix.lower()
        if ext not in self.SUPPORTED:
            raise ValueError(f"Unsupported file format: {ext}")
        if not self.file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        try:
            if ext == ".csv":
                df = pd.read_csv(self.file_path, dtype=str, keep_default_na=False)
            else:
                with open(self.file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    data = data.get("items", [data])
                df = pd.DataFrame(data, dtype=object)
        except ValueError as exc:
            raise StoreError(f"Cannot read {file_path}: {exc}") from exc

        df = df.fillna("").astype(str)
        super().__init__(df.to_dict(orient="records"), entity=entity)
        logger.debug("Loaded %d %s rows from %s", len(df), entity, file_path)

    def save(self, output_path: str = "") -> str:
        """Write the current rows back (to *output_path* if given)."""
        target = Path(output_path) if output_path else self.file_path
        df = pd.DataFrame(self.rows())
        if target.suffix.lower() == ".json":
            df.to_json(target, orient="records", indent=2)
        else:
            df.to_csv(target, index=False)
        return str(target)
