"""plotrecon -- Plot deduplication and gap-fill reconciliation for cemetery records.

Canonicalize messy plot identifiers, collapse duplicate plots onto a single
keeper, and backfill missing plots from a staging collection.

Quick start::

    from plotrecon import canonicalize, cleanup_section_duplicates, FileRecordStore

    canonicalize("A1-07")   # 107

    store = FileRecordStore("plots.csv")
    report = cleanup_section_duplicates(store, dry_run=True)
    print(report["duplicate_groups"], "duplicate groups")
"""

__version__ = "0.4.0"

from ._types import (
    BatchResult,
    GapFillPlan,
    GroupingMode,
    KeeperDecision,
    PlotRecord,
    PlotStatus,
    PurgePlan,
    StoreRecord,
)
from .config import Settings
from .errors import PlotReconError, ReconcileError, RecordNotFoundError, StoreError

# Reconciler
from .reconciler import (
    BatchExecutor,
    canonicalize,
    cleanup_deceased_duplicates,
    cleanup_duplicates,
    cleanup_section_duplicates,
    completeness_score,
    dedupe_plots,
    deduplicate_plots,
    group_duplicates,
    match_strategy,
    plan_gap_fill,
    plan_unplaced_purge,
    populate_missing_plots,
    purge_unplaced_staging,
    resolve_groups,
    select_keeper,
    weighted_score,
)

# Stores
from .store import FileRecordStore, HttpRecordStore, InMemoryStore, RecordStore

__all__ = [
    "__version__",
    # Types
    "PlotRecord",
    "StoreRecord",
    "PlotStatus",
    "GroupingMode",
    "KeeperDecision",
    "GapFillPlan",
    "PurgePlan",
    "BatchResult",
    # Config / errors
    "Settings",
    "PlotReconError",
    "StoreError",
    "RecordNotFoundError",
    "ReconcileError",
    # Reconciler
    "canonicalize",
    "match_strategy",
    "completeness_score",
    "weighted_score",
    "group_duplicates",
    "select_keeper",
    "resolve_groups",
    "plan_gap_fill",
    "plan_unplaced_purge",
    "BatchExecutor",
    "dedupe_plots",
    "cleanup_section_duplicates",
    "deduplicate_plots",
    "cleanup_duplicates",
    "cleanup_deceased_duplicates",
    "populate_missing_plots",
    "purge_unplaced_staging",
    # Stores
    "RecordStore",
    "InMemoryStore",
    "FileRecordStore",
    "HttpRecordStore",
]
