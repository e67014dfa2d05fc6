"""plotrecon reconciler -- plot deduplication and gap-fill engine.

Public API
----------
- ``dedupe_plots(store, ...)`` -- group, pick keepers, delete duplicates
- ``cleanup_section_duplicates(store, ...)`` -- loose Section 1 cleanup (reference ordering)
- ``deduplicate_plots(store, ...)`` -- strict per-section, status-first ordering
- ``cleanup_duplicates(store, ...)`` -- exact plot_number match, legacy ordering
- ``cleanup_deceased_duplicates(store, ...)`` -- Deceased rows by name and dates
- ``populate_missing_plots(plot_store, staging_store, ...)`` -- gap-fill from staging
- ``purge_unplaced_staging(staging_store, ...)`` -- drop A-1 staging rows that cannot be placed

Every entry point fetches the whole collection first, plans in memory,
applies the plan through ``BatchExecutor`` and returns a plain-dict report.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from pydantic import ValidationError

from .._types import GroupingMode, KeeperDecision, PlotRecord, StoreRecord
from ..config import Settings
from ..errors import ReconcileError, StoreError
from ..store import RecordStore
from ._canonical import (
    DIGITS_ONLY_STRATEGIES,
    GAP_FILL_STRATEGIES,
    SECTION_ONE_RANGE,
    STAGING_STRATEGIES,
    TARGET_RANGE_A1,
    Strategy,
    canonicalize,
    match_strategy,
)
from ._executor import BatchExecutor
from ._gapfill import plan_gap_fill, present_numbers
from ._grouper import format_key, group_by, group_duplicates
from ._purge import plan_unplaced_purge
from ._scorer import (
    CANDIDATE_POLICY,
    ScoringPolicy,
    completeness_score,
    weighted_score,
)
from ._selector import (
    COMPLETENESS_POLICY,
    LEGACY_EXACT_POLICY,
    REFERENCE_POLICY,
    STATUS_FIRST_POLICY,
    KeeperPolicy,
    collect_delete_ids,
    get_policy,
    resolve_groups,
    select_keeper,
)

logger = logging.getLogger(__name__)

__all__ = [
    # Entry points
    "dedupe_plots",
    "cleanup_section_duplicates",
    "deduplicate_plots",
    "cleanup_duplicates",
    "cleanup_deceased_duplicates",
    "populate_missing_plots",
    "purge_unplaced_staging",
    # Building blocks
    "canonicalize",
    "match_strategy",
    "completeness_score",
    "weighted_score",
    "group_duplicates",
    "select_keeper",
    "resolve_groups",
    "plan_gap_fill",
    "plan_unplaced_purge",
    "get_policy",
    "BatchExecutor",
    # Named configurations
    "STAGING_STRATEGIES",
    "GAP_FILL_STRATEGIES",
    "DIGITS_ONLY_STRATEGIES",
    "TARGET_RANGE_A1",
    "SECTION_ONE_RANGE",
    "REFERENCE_POLICY",
    "STATUS_FIRST_POLICY",
    "LEGACY_EXACT_POLICY",
    "COMPLETENESS_POLICY",
    "CANDIDATE_POLICY",
]


def _fetch(
    store: RecordStore,
    settings: Settings,
    model: Type[StoreRecord] = PlotRecord,
    filter: Optional[Dict[str, Any]] = None,
    sort: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Any]:
    """Fetch the full collection; any store failure aborts the run."""
    try:
        return store.fetch_all(model, filter=filter, sort=sort, limit=limit or settings.fetch_limit)
    except StoreError as exc:
        raise ReconcileError(
            f"Could not list {store.entity or 'records'}: {exc}"
        ) from exc
    except ValidationError as exc:
        raise ReconcileError(
            f"Malformed {store.entity or 'record'} rows: {exc}"
        ) from exc


def _executor(store: RecordStore, settings: Settings, dry_run: bool) -> BatchExecutor:
    return BatchExecutor(
        store,
        batch_size=settings.batch_size,
        max_workers=settings.max_workers,
        dry_run=dry_run,
    )


def _errors(result) -> Optional[List[Dict[str, str]]]:
    return [e.model_dump() for e in result.errors] or None


def _decisions_report(decisions: List[KeeperDecision], limit: int = 50) -> List[Dict[str, Any]]:
    return [d.summary() for d in decisions[:limit]]


# ── Plot dedup ───────────────────────────────────────────────────────────────


def dedupe_plots(
    store: RecordStore,
    mode: GroupingMode = GroupingMode.STRICT,
    strategies: Sequence[Strategy] = STAGING_STRATEGIES,
    policy: KeeperPolicy = REFERENCE_POLICY,
    key_range: Optional[Tuple[int, int]] = None,
    section: str = "1",
    filter: Optional[Dict[str, Any]] = None,
    sort: Optional[str] = None,
    settings: Optional[Settings] = None,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """Find duplicate plots, keep one per group, delete the rest.

    Args:
        store: Plot record store.
        mode: Grouping mode (strict, loose or exact).
        strategies: Canonicalizer strategy set.
        policy: Keeper policy.
        key_range: Inclusive canonical-number range to consider.
        section: Target section for loose grouping.
        filter: Equality filter passed to the store listing.
        sort: Sort passed to the store listing.
        settings: Batch/fetch limits (defaults from the environment).
        dry_run: Plan only; nothing is deleted.

    Returns:
        Report dict with counts, per-group details and per-item errors.
    """
    t0 = time.time()
    settings = settings or Settings.from_env()

    records = _fetch(store, settings, PlotRecord, filter=filter, sort=sort)
    grouping = group_duplicates(
        records,
        mode=mode,
        strategies=strategies,
        key_range=key_range,
        section=section,
    )
    duplicate_groups = grouping.duplicates()
    decisions = resolve_groups(duplicate_groups, policy, key_formatter=format_key)
    to_delete = collect_delete_ids(decisions)

    result = _executor(store, settings, dry_run).delete_many(to_delete)
    deleted = len(result.succeeded)

    verb = "Would delete" if dry_run else "Deleted"
    message = (
        f"Scanned {grouping.records_scanned} total plots. "
        f"Found {grouping.records_in_scope} in scope. "
        f"Found {len(duplicate_groups)} duplicate groups. "
        f"{verb} {len(to_delete) if dry_run else deleted} records."
    )
    logger.info("%s (%s, %.2fs)", message, policy.name, time.time() - t0)

    return {
        "success": True,
        "message": message,
        "policy": policy.name,
        "mode": GroupingMode(mode).value,
        "dry_run": dry_run,
        "plots_scanned": grouping.records_scanned,
        "plots_in_scope": grouping.records_in_scope,
        "duplicate_groups": len(duplicate_groups),
        "duplicates_found": len(to_delete),
        "deleted_count": deleted,
        "delete_ids": to_delete,
        "debug_sections": sorted(grouping.sections_seen),
        "details": _decisions_report(decisions),
        "errors": _errors(result),
    }


def cleanup_section_duplicates(
    store: RecordStore,
    section: str = "1",
    key_range: Tuple[int, int] = SECTION_ONE_RANGE,
    settings: Optional[Settings] = None,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """Section 1 cleanup: loose section match, digits-only keys, reference ordering."""
    return dedupe_plots(
        store,
        mode=GroupingMode.LOOSE,
        strategies=DIGITS_ONLY_STRATEGIES,
        policy=REFERENCE_POLICY,
        key_range=key_range,
        section=section,
        settings=settings,
        dry_run=dry_run,
    )


def deduplicate_plots(
    store: RecordStore,
    section: str = "Section 1",
    key_range: Tuple[int, int] = SECTION_ONE_RANGE,
    settings: Optional[Settings] = None,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """Strict per-section dedup with the status-first ordering."""
    return dedupe_plots(
        store,
        mode=GroupingMode.STRICT,
        strategies=DIGITS_ONLY_STRATEGIES,
        policy=STATUS_FIRST_POLICY,
        key_range=key_range,
        filter={"section": section},
        settings=settings,
        dry_run=dry_run,
    )


def cleanup_duplicates(
    store: RecordStore,
    section: str = "Section 1",
    settings: Optional[Settings] = None,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """Exact plot_number dedup within one section, legacy ordering."""
    return dedupe_plots(
        store,
        mode=GroupingMode.EXACT,
        policy=LEGACY_EXACT_POLICY,
        filter={"section": section},
        sort="-created_date",
        settings=settings,
        dry_run=dry_run,
    )


# ── Deceased dedup ───────────────────────────────────────────────────────────


def deceased_key(record: StoreRecord) -> str:
    """first|last|birth|death, trimmed and lower-cased."""
    parts = (
        str(record.get("first_name") or "").strip(),
        str(record.get("last_name") or "").strip(),
        str(record.get("date_of_birth") or ""),
        str(record.get("date_of_death") or ""),
    )
    return "|".join(parts).lower()


def cleanup_deceased_duplicates(
    store: RecordStore,
    settings: Optional[Settings] = None,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """Collapse Deceased rows that share name and dates, keeping the most complete."""
    settings = settings or Settings.from_env()
    records = _fetch(store, settings, StoreRecord, sort="-created_date")

    groups = group_by(records, deceased_key)
    decisions = resolve_groups(groups, COMPLETENESS_POLICY)
    to_delete = collect_delete_ids(decisions)
    result = _executor(store, settings, dry_run).delete_many(to_delete)

    message = (
        f"Cleanup complete. Found {len(decisions)} sets of duplicates. "
        f"{'Would delete' if dry_run else 'Deleted'} "
        f"{len(to_delete) if dry_run else len(result.succeeded)} redundant records."
    )
    logger.info(message)

    return {
        "success": True,
        "message": message,
        "dry_run": dry_run,
        "duplicate_groups": len(decisions),
        "duplicates_found": len(to_delete),
        "deleted_count": len(result.succeeded),
        "delete_ids": to_delete,
        "unique_records": len(groups),
        "errors": _errors(result),
    }


# ── Gap filling ──────────────────────────────────────────────────────────────


def populate_missing_plots(
    plot_store: RecordStore,
    staging_store: RecordStore,
    target_range: Tuple[int, int] = TARGET_RANGE_A1,
    policy: ScoringPolicy = CANDIDATE_POLICY,
    settings: Optional[Settings] = None,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """Create Plot records for missing numbers using the best staging rows.

    Args:
        plot_store: Authoritative Plot store.
        staging_store: Staging (NewPlot) store.
        target_range: Inclusive canonical range expected to be complete.
        policy: Candidate scoring policy.
        settings: Batch/fetch limits.
        dry_run: Plan only; nothing is created.

    Returns:
        Report with created ids, filled numbers and the numbers still missing.
    """
    settings = settings or Settings.from_env()
    lo, hi = target_range

    plots = _fetch(plot_store, settings, PlotRecord)
    present = present_numbers(plots, target_range, GAP_FILL_STRATEGIES)
    if len(present) == hi - lo + 1:
        return _gap_fill_report(f"Range {lo}-{hi} appears complete. Nothing to create.", dry_run)

    staging = _fetch(staging_store, settings, PlotRecord)
    plan = plan_gap_fill(plots, staging, target_range, policy=policy)

    if not plan.creates:
        return _gap_fill_report(
            f"No suitable staging rows found to fill missing numbers in {lo}-{hi}.",
            dry_run,
            missing=plan.missing,
            still_missing=plan.still_missing,
        )

    result = _executor(plot_store, settings, dry_run).create_many(
        [c.fields for c in plan.creates],
        labels=[str(c.number) for c in plan.creates],
    )
    failed = {int(e.id) for e in result.errors}
    filled = [c.number for c in plan.creates if c.number not in failed]
    if dry_run:
        filled = plan.filled_numbers

    message = (
        f"{'Would create' if dry_run else 'Created'} {len(filled)} plot(s) "
        f"for {lo}-{hi} using staging data"
    )
    logger.info(message)

    return _gap_fill_report(
        message,
        dry_run,
        created_ids=result.succeeded,
        filled_numbers=filled,
        missing=plan.missing,
        still_missing=sorted(set(plan.still_missing) | failed),
        plan=[c.model_dump(mode="json") for c in plan.creates],
        errors=_errors(result),
    )


def _gap_fill_report(
    message: str,
    dry_run: bool,
    created_ids: Optional[List[str]] = None,
    filled_numbers: Optional[List[int]] = None,
    missing: Optional[List[int]] = None,
    still_missing: Optional[List[int]] = None,
    plan: Optional[List[Dict[str, Any]]] = None,
    errors: Optional[List[Dict[str, str]]] = None,
) -> Dict[str, Any]:
    created_ids = created_ids or []
    return {
        "success": True,
        "message": message,
        "dry_run": dry_run,
        "created": len(created_ids),
        "created_ids": created_ids,
        "filled_numbers": filled_numbers or [],
        "missing": missing or [],
        "still_missing": still_missing or [],
        "plan": plan or [],
        "errors": errors,
    }


def purge_unplaced_staging(
    staging_store: RecordStore,
    target_range: Tuple[int, int] = TARGET_RANGE_A1,
    settings: Optional[Settings] = None,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """Delete staging rows labelled for the target area that cannot be placed in it."""
    settings = settings or Settings.from_env()
    rows = _fetch(staging_store, settings, PlotRecord)
    plan = plan_unplaced_purge(rows, target_range)
    result = _executor(staging_store, settings, dry_run).delete_many(plan.delete_ids)

    count = len(plan.delete_ids) if dry_run else len(result.succeeded)
    return {
        "success": True,
        "message": f"{'Would delete' if dry_run else 'Deleted'} {count} unplaced staging row(s)",
        "dry_run": dry_run,
        "deleted_count": len(result.succeeded),
        "deleted_ids": result.succeeded,
        "delete_ids": plan.delete_ids,
        "sample_labels": plan.sample_labels,
        "errors": _errors(result),
    }
