"""Keeper selection within duplicate groups.

A ``KeeperPolicy`` is an ordered chain of rank functions. Each function maps
a record to a comparable value where higher is better; records are sorted
descending on the tuple of ranks, so earlier ranks dominate later ones and
later ranks only break ties. The first record is kept, the rest are
duplicates.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Sequence, Tuple

from .._types import KeeperDecision, StoreRecord
from ._scorer import (
    DEDUP_TABLE,
    IMPORT_MARKER,
    SECTION_ONE_TABLE,
    StatusTable,
    completeness_score,
    created_timestamp,
    has_identity,
    is_imported,
    section_label_rank,
    updated_timestamp,
)

logger = logging.getLogger(__name__)

Rank = Callable[[Any], Any]


class KeeperPolicy(NamedTuple):
    """A named, ordered chain of rank functions."""

    name: str
    ranks: Tuple[Rank, ...]

    def sort_key(self, record: Any) -> Tuple[Any, ...]:
        return tuple(rank(record) for rank in self.ranks)


# ── Rank functions ───────────────────────────────────────────────────────────


def not_imported(record: Any) -> int:
    """1 unless the notes carry the bulk-import marker."""
    return 0 if is_imported(record) else 1


def not_exactly_imported(record: Any) -> int:
    """1 unless the notes are exactly the import marker."""
    return 0 if (record.get("notes") or "") == IMPORT_MARKER else 1


def identity_present(record: Any) -> int:
    return 1 if has_identity(record) else 0


def status_rank(table: StatusTable) -> Rank:
    """Rank by the status weight from *table*."""

    def _rank(record: Any) -> int:
        return table.weight(record.get("status"))

    _rank.__name__ = "status_rank"
    return _rank


def section_cleanliness(record: Any) -> int:
    return section_label_rank(record.get("section"))


def newest_update(record: Any) -> float:
    return updated_timestamp(record)


def newest_creation(record: Any) -> float:
    return created_timestamp(record)


def completeness(record: Any) -> int:
    return completeness_score(record)


# ── Named policies ───────────────────────────────────────────────────────────

# Reference ordering for Section 1 plot dedup.
REFERENCE_POLICY = KeeperPolicy(
    "reference",
    (
        not_imported,
        identity_present,
        status_rank(SECTION_ONE_TABLE),
        section_cleanliness,
        newest_update,
    ),
)

# Status decides first, then names, then recency.
STATUS_FIRST_POLICY = KeeperPolicy(
    "status_first",
    (status_rank(DEDUP_TABLE), identity_present, newest_update),
)

# Exact plot_number cleanup: notes equal to the marker lose, then names,
# then the most recently created row.
LEGACY_EXACT_POLICY = KeeperPolicy(
    "legacy_exact",
    (not_exactly_imported, identity_present, newest_creation),
)

# Deceased rows: most populated fields, then most recently updated.
COMPLETENESS_POLICY = KeeperPolicy(
    "completeness",
    (completeness, newest_update),
)

POLICIES: Dict[str, KeeperPolicy] = {
    p.name: p
    for p in (REFERENCE_POLICY, STATUS_FIRST_POLICY, LEGACY_EXACT_POLICY, COMPLETENESS_POLICY)
}


def get_policy(name: str) -> KeeperPolicy:
    """Look up a named keeper policy."""
    try:
        return POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown keeper policy: {name}. Choose from {', '.join(sorted(POLICIES))}"
        ) from None


# ── Selection ────────────────────────────────────────────────────────────────


def rank_group(group: Sequence[StoreRecord], policy: KeeperPolicy = REFERENCE_POLICY) -> List[StoreRecord]:
    """Order a group best-first. Fully tied records keep their input order."""
    return sorted(group, key=policy.sort_key, reverse=True)


def select_keeper(
    group: Sequence[StoreRecord],
    policy: KeeperPolicy = REFERENCE_POLICY,
    key: str = "",
) -> KeeperDecision:
    """Pick one keeper from a duplicate group.

    Args:
        group: Records sharing a canonical key.
        policy: Rank chain deciding the keeper.
        key: Group key, carried into the decision for reporting.

    Returns:
        KeeperDecision with exactly one keeper and ``len(group) - 1`` duplicates.

    Raises:
        ValueError: If the group is empty.
    """
    if not group:
        raise ValueError("Cannot select a keeper from an empty group")

    ranked = rank_group(group, policy)
    decision = KeeperDecision(key=key, keeper=ranked[0], duplicates=ranked[1:])
    if decision.duplicates:
        logger.debug(
            "Group %s: keeping %s, dropping %s (%s)",
            key or "?",
            decision.keeper.id,
            ", ".join(decision.delete_ids),
            policy.name,
        )
    return decision


def resolve_groups(
    groups: Dict[Any, Sequence[StoreRecord]],
    policy: KeeperPolicy = REFERENCE_POLICY,
    key_formatter: Callable[[Any], str] = str,
) -> List[KeeperDecision]:
    """Select keepers for every group with two or more records."""
    return [
        select_keeper(members, policy, key=key_formatter(key))
        for key, members in groups.items()
        if len(members) > 1
    ]


def collect_delete_ids(decisions: Iterable[KeeperDecision]) -> List[str]:
    """Flatten decisions into the delete-list."""
    return [rid for d in decisions for rid in d.delete_ids]
