"""Gap-fill reconciliation between authoritative and staging plot sets.

Given a target range of canonical numbers, find the numbers the
authoritative set (Plot) lacks and pick the best staging row (NewPlot) for
each, producing create payloads for new authoritative records.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple

from .._types import GapFillPlan, PlannedCreate, PlotRecord, PlotStatus
from ._canonical import GAP_FILL_STRATEGIES, TARGET_RANGE_A1, Strategy, canonicalize, in_range
from ._scorer import CANDIDATE_POLICY, ScoringPolicy, raw_weighted_score

logger = logging.getLogger(__name__)

DEFAULT_SECTION = "Section 1"
COPIED_FIELDS = ("first_name", "last_name", "family_name", "birth_date", "death_date", "notes")


def is_a_row_label(row_number: Optional[str]) -> bool:
    """Row label looks like an A-section label ("A-107", "a-1 ...")."""
    row = str(row_number or "").upper()
    return row.startswith("A-") or "A-1" in row


def has_area_prefix(record: PlotRecord, prefix: str = "A") -> bool:
    """Row label or plot number starts with the area letter."""
    prefix = prefix.upper()
    return (
        str(record.row_number or "").upper().startswith(prefix)
        or str(record.plot_number or "").upper().startswith(prefix)
    )


def build_create_fields(
    number: int,
    source: PlotRecord,
    row_prefix: str = "A-",
    default_section: str = DEFAULT_SECTION,
) -> Dict[str, str]:
    """Payload for a new authoritative record sourced from a staging row."""
    fields = {
        "section": source.section or default_section,
        "row_number": f"{row_prefix}{number}",
        "plot_number": str(number),
        "status": source.status or PlotStatus.AVAILABLE.value,
    }
    for name in COPIED_FIELDS:
        fields[name] = getattr(source, name) or ""
    return fields


def present_numbers(
    authoritative: Iterable[PlotRecord],
    target_range: Tuple[int, int] = TARGET_RANGE_A1,
    strategies: Sequence[Strategy] = GAP_FILL_STRATEGIES,
    row_filter: Optional[Callable[[Optional[str]], bool]] = is_a_row_label,
) -> set:
    """Canonical numbers in *target_range* already held by the authoritative set."""
    present = set()
    for record in authoritative:
        if row_filter is not None and not row_filter(record.row_number):
            continue
        number = canonicalize(record.plot_number, record.row_number, strategies)
        if in_range(number, *target_range):
            present.add(number)
    return present


def plan_gap_fill(
    authoritative: Iterable[PlotRecord],
    candidates: Iterable[PlotRecord],
    target_range: Tuple[int, int] = TARGET_RANGE_A1,
    strategies: Sequence[Strategy] = GAP_FILL_STRATEGIES,
    policy: ScoringPolicy = CANDIDATE_POLICY,
    area_prefix: str = "A",
    row_filter: Optional[Callable[[Optional[str]], bool]] = is_a_row_label,
    default_section: str = DEFAULT_SECTION,
) -> GapFillPlan:
    """Decide which missing numbers can be filled from staging rows.

    Args:
        authoritative: Current Plot records.
        candidates: Staging (NewPlot) records.
        target_range: Inclusive range of canonical numbers expected to exist.
        strategies: Canonicalizer strategy set for both collections.
        policy: Scoring policy used to pick the best candidate per number.
        area_prefix: Letter a candidate's row or plot number must start with.
        row_filter: Predicate on an authoritative row label; ``None`` disables.
        default_section: Section used when the candidate has none.

    Returns:
        GapFillPlan with present/missing numbers, creates and still-missing numbers.
    """
    lo, hi = target_range
    if lo > hi:
        raise ValueError(f"Invalid target range: {lo}-{hi}")

    present = present_numbers(authoritative, target_range, strategies, row_filter)
    missing = [n for n in range(lo, hi + 1) if n not in present]
    missing_set = set(missing)

    best: Dict[int, Tuple[int, PlotRecord]] = {}
    considered = 0
    if missing:
        for row in candidates:
            if not has_area_prefix(row, area_prefix):
                continue
            number = canonicalize(row.plot_number, row.row_number, strategies)
            if number not in missing_set:
                continue
            considered += 1
            score = raw_weighted_score(row, policy)
            current = best.get(number)
            if current is None or score > current[0]:
                best[number] = (score, row)

    creates = [
        PlannedCreate(
            number=n,
            source_id=best[n][1].id,
            score=best[n][0],
            fields=build_create_fields(n, best[n][1], f"{area_prefix.upper()}-", default_section),
        )
        for n in missing
        if n in best
    ]
    still_missing = [n for n in missing if n not in best]

    logger.info(
        "Gap fill %d-%d: %d present, %d missing, %d fillable, %d still missing",
        lo,
        hi,
        len(present),
        len(missing),
        len(creates),
        len(still_missing),
    )

    return GapFillPlan(
        target_range=(lo, hi),
        present=sorted(present),
        missing=missing,
        creates=creates,
        still_missing=still_missing,
        candidates_considered=considered,
    )
