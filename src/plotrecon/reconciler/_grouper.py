"""Duplicate grouping by canonical key."""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Set, Tuple, TypeVar

from .._types import GroupingMode, PlotRecord
from ._canonical import STAGING_STRATEGIES, Strategy, canonicalize, in_range

logger = logging.getLogger(__name__)

R = TypeVar("R")

CanonicalKey = Tuple[str, Optional[int]]


def normalize_section(section: Optional[str]) -> str:
    """Fold "Section 1", "section 01 ", "1" and "01" onto the same label."""
    text = str(section or "").strip().lower()
    if text.startswith("section"):
        text = text[len("section"):].strip()
    if text.isdigit():
        text = str(int(text))
    return text


def is_plausible_section(section: Optional[str], target: str = "1") -> bool:
    """Loose section test: text contains *target*, equals "0<target>", or is empty."""
    text = str(section or "").strip()
    return not text or target in text or text == f"0{target}"


def is_exact_section(section: Optional[str], target: str = "1") -> bool:
    """Strict section test after normalization ("Section 01" == "1")."""
    return normalize_section(section) == normalize_section(target)


class GroupingResult:
    """Groups keyed by canonical key plus debug counters."""

    def __init__(self) -> None:
        self.groups: Dict[CanonicalKey, list] = defaultdict(list)
        self.sections_seen: Set[str] = set()
        self.records_scanned = 0
        self.records_in_scope = 0
        self.unparsed = 0

    def duplicates(self) -> Dict[CanonicalKey, list]:
        """Only the groups with two or more records."""
        return {k: v for k, v in self.groups.items() if len(v) > 1}

    def __len__(self) -> int:
        return len(self.groups)


def group_by(records: Iterable[R], key_fn: Callable[[R], Optional[Hashable]]) -> Dict[Hashable, List[R]]:
    """Group records by an arbitrary key; ``None`` keys are skipped."""
    groups: Dict[Hashable, List[R]] = defaultdict(list)
    for record in records:
        key = key_fn(record)
        if key is not None:
            groups[key].append(record)
    return dict(groups)


def group_duplicates(
    records: Iterable[PlotRecord],
    mode: GroupingMode = GroupingMode.STRICT,
    strategies: Sequence[Strategy] = STAGING_STRATEGIES,
    key_range: Optional[Tuple[int, int]] = None,
    section: str = "1",
    section_filter: Optional[Callable[[Optional[str]], bool]] = None,
) -> GroupingResult:
    """Partition plot records by canonical key.

    Args:
        records: Plot records (fetched in full by the caller).
        mode: STRICT keys on (section, number), LOOSE keys on number after a
            plausible-section filter, EXACT keys on the trimmed plot_number.
        strategies: Canonicalizer strategy set for STRICT and LOOSE.
        key_range: Optional inclusive range; keys outside it are left out.
        section: Target section for LOOSE filtering.
        section_filter: Overrides the default section predicate of the mode.

    Returns:
        GroupingResult holding every group, including singletons.
    """
    mode = GroupingMode(mode)
    result = GroupingResult()

    if section_filter is None and mode == GroupingMode.LOOSE:
        section_filter = lambda s: is_plausible_section(s, section)  # noqa: E731

    for record in records:
        result.records_scanned += 1
        result.sections_seen.add(record.section)

        if section_filter is not None and not section_filter(record.section):
            continue

        if mode == GroupingMode.EXACT:
            raw = str(record.plot_number or "").strip()
            result.groups[(raw, None)].append(record)
            result.records_in_scope += 1
            continue

        number = canonicalize(record.plot_number, record.row_number, strategies)
        if number is None or (key_range is not None and not in_range(number, *key_range)):
            result.unparsed += 1
            continue

        section_key = normalize_section(record.section) if mode == GroupingMode.STRICT else ""
        result.groups[(section_key, number)].append(record)
        result.records_in_scope += 1

    logger.debug(
        "Grouped %d/%d records into %d keys (%d skipped as unparseable)",
        result.records_in_scope,
        result.records_scanned,
        len(result.groups),
        result.unparsed,
    )
    return result


def format_key(key: CanonicalKey) -> str:
    """Human-readable form of a canonical key for reports."""
    left, number = key
    if number is None:
        return left
    return f"{left}:{number}" if left else str(number)
