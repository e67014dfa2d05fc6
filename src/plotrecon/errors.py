"""Exception types raised by plotrecon."""
from __future__ import annotations

from typing import Optional


class PlotReconError(Exception):
    """Base class for plotrecon errors."""


class StoreError(PlotReconError):
    """A record store call failed."""

    def __init__(self, message: str, status: Optional[int] = None, detail: str = ""):
        super().__init__(message)
        self.status = status
        self.detail = detail


class RecordNotFoundError(StoreError):
    """The record id does not exist in the store."""

    def __init__(self, record_id: str):
        super().__init__(f"Record not found: {record_id}", status=404)
        self.record_id = record_id


class ReconcileError(PlotReconError):
    """A reconciliation run was aborted before any decision was applied."""
