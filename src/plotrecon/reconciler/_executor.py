"""Batch execution of delete/create decisions against a record store.

Operations run in fixed-size batches; each batch fans out over a
ThreadPoolExecutor. A failed item is logged and recorded, never raised, so
one bad delete does not abort the rest of the run.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .._types import BatchResult, ItemError
from ..store import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


def _chunks(items: Sequence[Any], size: int) -> List[Sequence[Any]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class BatchExecutor:
    """Applies decision lists to a store with bounded parallelism."""

    def __init__(
        self,
        store: RecordStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_workers: Optional[int] = None,
        dry_run: bool = False,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.store = store
        self.batch_size = batch_size
        self.max_workers = max_workers or batch_size
        self.dry_run = dry_run

    def delete_many(self, record_ids: Sequence[str]) -> BatchResult:
        """Delete every id; failures are collected per id."""
        items = [(rid, rid) for rid in record_ids]
        return self._run("delete", items, lambda rid: self._delete(rid))

    def create_many(self, payloads: Sequence[Dict[str, Any]], labels: Optional[Sequence[str]] = None) -> BatchResult:
        """Create one record per payload; ``succeeded`` holds the new ids.

        Args:
            payloads: Field dicts to create.
            labels: Optional per-payload labels used in error entries.
        """
        labels = list(labels) if labels is not None else [str(i) for i in range(len(payloads))]
        items = list(zip(labels, payloads))
        return self._run("create", items, lambda fields: self.store.create(fields).get("id", ""))

    def _delete(self, record_id: str) -> str:
        self.store.delete(record_id)
        return record_id

    def _run(
        self,
        operation: str,
        items: List[Tuple[str, Any]],
        fn: Callable[[Any], str],
    ) -> BatchResult:
        result = BatchResult(operation=operation, requested=len(items), dry_run=self.dry_run)
        if self.dry_run or not items:
            return result

        for batch in _chunks(items, self.batch_size):
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(batch))) as pool:
                futures = {pool.submit(fn, payload): label for label, payload in batch}
                for future in as_completed(futures):
                    label = futures[future]
                    try:
                        result.succeeded.append(future.result())
                    except Exception as exc:
                        logger.warning("%s failed for %s: %s", operation.capitalize(), label, exc)
                        result.errors.append(ItemError(id=label, error=str(exc)))

        logger.info(
            "%s on %s: %d/%d succeeded, %d errors",
            operation.capitalize(),
            getattr(self.store, "entity", "store") or "store",
            len(result.succeeded),
            result.requested,
            len(result.errors),
        )
        return result
