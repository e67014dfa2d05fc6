"""Shared record and result types for plotrecon.

Store records are Pydantic models with extra fields allowed, so the same
types carry Plot, NewPlot and Deceased rows. Results of reconciliation runs
are Pydantic models that entry points dump to plain dicts.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class PlotStatus(str, Enum):
    """Closed set of plot statuses used by the cemetery records."""

    AVAILABLE = "Available"
    RESERVED = "Reserved"
    OCCUPIED = "Occupied"
    VETERAN = "Veteran"
    UNAVAILABLE = "Unavailable"
    UNKNOWN = "Unknown"
    NOT_USABLE = "Not Usable"


class GroupingMode(str, Enum):
    """How the duplicate grouper keys records."""

    STRICT = "strict"  # (section, canonical number)
    LOOSE = "loose"  # canonical number, plausible sections only
    EXACT = "exact"  # trimmed raw plot_number


# ── Store records ────────────────────────────────────────────────────────────


class StoreRecord(BaseModel):
    """A row as returned by the record store."""

    model_config = ConfigDict(extra="allow")

    id: str = ""
    created_date: Optional[str] = None
    updated_date: Optional[str] = None

    def get(self, name: str, default: Any = None) -> Any:
        """Read a declared or extra field by name."""
        if name in type(self).model_fields:
            return getattr(self, name)
        return (self.model_extra or {}).get(name, default)


class PlotRecord(StoreRecord):
    """A burial plot (Plot) or a staged candidate plot (NewPlot)."""

    section: str = ""
    row_number: str = ""
    plot_number: str = ""
    status: str = ""
    first_name: str = ""
    last_name: str = ""
    family_name: str = ""
    birth_date: str = ""
    death_date: str = ""
    notes: str = ""


# ── Keeper selection ─────────────────────────────────────────────────────────


class KeeperDecision(BaseModel):
    """Outcome of resolving one duplicate group."""

    key: str = ""
    keeper: StoreRecord
    duplicates: List[StoreRecord] = Field(default_factory=list)

    @property
    def delete_ids(self) -> List[str]:
        return [d.id for d in self.duplicates]

    def summary(self) -> Dict[str, Any]:
        keeper = self.keeper
        return {
            "key": self.key,
            "keeping": {
                "id": keeper.id,
                "status": keeper.get("status", ""),
                "name": f"{keeper.get('first_name') or ''} {keeper.get('last_name') or ''}".strip(),
            },
            "deleting": self.delete_ids,
        }


# ── Gap filling ──────────────────────────────────────────────────────────────


class PlannedCreate(BaseModel):
    """A new authoritative record to materialize for a missing number."""

    number: int
    source_id: str = ""
    score: int = 0
    fields: Dict[str, Any] = Field(default_factory=dict)


class GapFillPlan(BaseModel):
    """What the gap-fill reconciler decided for a target range."""

    target_range: Tuple[int, int]
    present: List[int] = Field(default_factory=list)
    missing: List[int] = Field(default_factory=list)
    creates: List[PlannedCreate] = Field(default_factory=list)
    still_missing: List[int] = Field(default_factory=list)
    candidates_considered: int = 0

    @property
    def filled_numbers(self) -> List[int]:
        return [c.number for c in self.creates]


class PurgePlan(BaseModel):
    """Staging rows that cannot be placed in the target range."""

    target_range: Tuple[int, int]
    rows_scanned: int = 0
    delete_ids: List[str] = Field(default_factory=list)
    sample_labels: List[Dict[str, str]] = Field(default_factory=list)


# ── Batch execution ──────────────────────────────────────────────────────────


class ItemError(BaseModel):
    """A single failed store operation."""

    id: str = ""
    error: str = ""


class BatchResult(BaseModel):
    """Result of applying a list of store operations."""

    operation: str = ""
    requested: int = 0
    succeeded: List[str] = Field(default_factory=list)
    errors: List[ItemError] = Field(default_factory=list)
    dry_run: bool = False

    @property
    def success_count(self) -> int:
        return len(self.succeeded)
