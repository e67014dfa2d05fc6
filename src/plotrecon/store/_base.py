"""Record store interface used by the reconciliation engine."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from .._types import PlotRecord, StoreRecord

DEFAULT_LIST_LIMIT = 10000


class RecordStore(ABC):
    """One entity collection (Plot, NewPlot, Deceased) in a document store.

    Implementations return raw dicts; ``fetch_all`` wraps them in record
    models for the engine.
    """

    entity: str = ""

    @abstractmethod
    def list(
        self,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> List[Dict[str, Any]]:
        """List records, optionally filtered by field equality and sorted.

        ``sort`` is a field name, prefixed with ``-`` for descending order.
        """

    @abstractmethod
    def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Create a record and return it with its assigned id."""

    @abstractmethod
    def update(self, record_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Patch a record and return the updated version."""

    @abstractmethod
    def delete(self, record_id: str) -> None:
        """Delete a record by id."""

    def fetch_all(
        self,
        model: Type[StoreRecord] = PlotRecord,
        filter: Optional[Dict[str, Any]] = None,
        sort: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> List[StoreRecord]:
        """List records and validate them into *model* instances."""
        return [model.model_validate(_clean(row)) for row in self.list(filter, sort, limit)]


_TIMESTAMP_FIELDS = ("created_date", "updated_date")


def _as_text(value: Any) -> Any:
    # Some stores return numeric plot and row numbers
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _clean(row: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for key, value in row.items():
        if value is None:
            cleaned[key] = None if key in _TIMESTAMP_FIELDS else ""
        else:
            cleaned[key] = _as_text(value)
    return cleaned
