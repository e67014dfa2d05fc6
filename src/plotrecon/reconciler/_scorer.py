"""Record completeness scoring.

Two policies coexist:

- Policy A (``completeness_score``) counts every populated field. It is
  schema-agnostic and used for Deceased rows.
- Policy B (``weighted_score``) is plot-specific: identity and date fields,
  a status weight from an injected table, a clean-section bonus and an
  import penalty.

Status weight tables differ between call sites and are kept separate on
purpose; callers pick one through a ``ScoringPolicy``.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from .._types import PlotStatus, StoreRecord

# ── Status weight tables ─────────────────────────────────────────────────────

# Gap-fill candidates
CANDIDATE_STATUS_WEIGHTS: Dict[str, int] = {
    PlotStatus.OCCUPIED.value: 3,
    PlotStatus.VETERAN.value: 3,
    PlotStatus.RESERVED.value: 2,
    PlotStatus.AVAILABLE.value: 1,
    PlotStatus.UNKNOWN.value: 0,
}

# Status-first plot dedup; unlisted statuses weigh 1
DEDUP_STATUS_WEIGHTS: Dict[str, int] = {
    PlotStatus.OCCUPIED.value: 3,
    PlotStatus.VETERAN.value: 3,
    PlotStatus.RESERVED.value: 2,
    PlotStatus.AVAILABLE.value: 0,
}

# Same as DEDUP_STATUS_WEIGHTS but unlisted statuses weigh 0
STRICT_STATUS_WEIGHTS: Dict[str, int] = dict(DEDUP_STATUS_WEIGHTS)

# Section 1 cleanup; Veteran ranks with Reserved, unlisted statuses weigh 1
SECTION_ONE_STATUS_WEIGHTS: Dict[str, int] = {
    PlotStatus.OCCUPIED.value: 3,
    PlotStatus.RESERVED.value: 2,
    PlotStatus.VETERAN.value: 2,
}

IDENTITY_FIELDS: Tuple[str, ...] = ("first_name", "last_name", "family_name")
DATE_FIELDS: Tuple[str, ...] = ("birth_date", "death_date")

IMPORT_MARKER = "Imported"
CLEAN_SECTION_LABEL = "section 1"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class StatusTable(BaseModel):
    """A status -> weight mapping with a default for unlisted statuses."""

    weights: Dict[str, int] = Field(default_factory=dict)
    default: int = 0

    def weight(self, status: Optional[str]) -> int:
        return self.weights.get(status or "", self.default)


CANDIDATE_TABLE = StatusTable(weights=CANDIDATE_STATUS_WEIGHTS, default=0)
DEDUP_TABLE = StatusTable(weights=DEDUP_STATUS_WEIGHTS, default=1)
STRICT_TABLE = StatusTable(weights=STRICT_STATUS_WEIGHTS, default=0)
SECTION_ONE_TABLE = StatusTable(weights=SECTION_ONE_STATUS_WEIGHTS, default=1)


class ScoringPolicy(BaseModel):
    """Configuration for the weighted (Policy B) scorer."""

    name: str = "weighted"
    status_table: StatusTable = Field(default_factory=lambda: CANDIDATE_TABLE)
    fields: Tuple[str, ...] = IDENTITY_FIELDS + DATE_FIELDS
    clean_section_label: Optional[str] = CLEAN_SECTION_LABEL
    section_bonus: int = 1
    import_marker: str = IMPORT_MARKER
    import_penalty: int = 2
    import_case_sensitive: bool = True


CANDIDATE_POLICY = ScoringPolicy(
    name="candidate",
    status_table=CANDIDATE_TABLE,
    import_case_sensitive=False,
)

# Fields + status only; no section bonus, no import penalty
PLAIN_CANDIDATE_POLICY = ScoringPolicy(
    name="plain_candidate",
    status_table=CANDIDATE_TABLE,
    clean_section_label=None,
    section_bonus=0,
    import_penalty=0,
)


# ── Field helpers ────────────────────────────────────────────────────────────


def _populated(value: Any) -> bool:
    return value is not None and value != ""


def _field(record: Any, name: str) -> Any:
    if isinstance(record, StoreRecord):
        return record.get(name)
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _all_values(record: Any) -> list:
    if isinstance(record, BaseModel):
        return list(record.model_dump().values())
    if isinstance(record, Mapping):
        return list(record.values())
    return list(vars(record).values())


def has_identity(record: Any) -> bool:
    """True if any of first/last/family name is populated."""
    return any(_populated(_field(record, f)) for f in IDENTITY_FIELDS)


def is_imported(record: Any, marker: str = IMPORT_MARKER, case_sensitive: bool = True) -> bool:
    """True if the record's notes contain the bulk-import marker."""
    notes = _field(record, "notes") or ""
    if case_sensitive:
        return marker in notes
    return marker.lower() in str(notes).lower()


def section_label_rank(section: Optional[str], clean_label: str = CLEAN_SECTION_LABEL) -> int:
    """Rank a section label: 2 for the clean label, 1 for other text, 0 if empty."""
    text = str(section or "").strip().lower()
    if not text:
        return 0
    return 2 if text == clean_label else 1


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO timestamp; missing or unparseable values become the epoch."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not value:
        return _EPOCH
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def updated_timestamp(record: Any) -> float:
    """``updated_date`` as a POSIX timestamp (0.0 when missing)."""
    return parse_timestamp(_field(record, "updated_date")).timestamp()


def created_timestamp(record: Any) -> float:
    """``created_date`` as a POSIX timestamp (0.0 when missing)."""
    return parse_timestamp(_field(record, "created_date")).timestamp()


# ── Policies ─────────────────────────────────────────────────────────────────


def completeness_score(record: Any) -> int:
    """Policy A: number of non-null, non-empty fields on the record."""
    return sum(1 for v in _all_values(record) if _populated(v))


def raw_weighted_score(record: Any, policy: ScoringPolicy = CANDIDATE_POLICY) -> int:
    """Policy B before the floor at 0; may be negative for imported rows."""
    score = sum(1 for f in policy.fields if _populated(_field(record, f)))
    score += policy.status_table.weight(_field(record, "status"))

    if policy.clean_section_label and policy.section_bonus:
        section = str(_field(record, "section") or "").lower()
        if section == policy.clean_section_label:
            score += policy.section_bonus

    if policy.import_penalty and is_imported(
        record, policy.import_marker, policy.import_case_sensitive
    ):
        score -= policy.import_penalty

    return score


def weighted_score(record: Any, policy: ScoringPolicy = CANDIDATE_POLICY) -> int:
    """Policy B: weighted, plot-specific score (never negative).

    Candidates are ranked on ``raw_weighted_score`` so two imported rows
    that both floor at 0 still order correctly.

    Args:
        record: A plot record (model, mapping or object).
        policy: Status table, bonus and penalty configuration.

    Returns:
        Non-negative integer; higher means more trustworthy.
    """
    return max(raw_weighted_score(record, policy), 0)
