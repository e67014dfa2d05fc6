"""Plot-number canonicalization.

Plot identifiers were typed in over decades with no fixed schema ("A1-07",
"1103", "A110", "107"). Each strategy below recognizes one shape and returns
the canonical plot number, or ``None`` when the shape does not apply. A
strategy set is evaluated in order and the first match wins.
"""
from __future__ import annotations

import re
from typing import Callable, NamedTuple, Optional, Sequence, Tuple

# ── Ranges ───────────────────────────────────────────────────────────────────

TARGET_RANGE_A1: Tuple[int, int] = (101, 132)
SECTION_ONE_RANGE: Tuple[int, int] = (1, 184)

# Short A-section numbers 1..32 map onto 101..132
_SHORT_RANGE = (1, 32)
_A_OFFSET = 100

# 4-digit encodings left behind by historical bulk imports. Lookup table,
# not a formula; overlapping entries are kept as found.
ENCODED_RANGES: Tuple[Tuple[int, int], ...] = (
    (1101, 1132),
    (1180, 1199),
    (1250, 1299),
    (1260, 1299),
)

_ROW_A1_RE = re.compile(r"A1(\d{2})")
_ROW_A1_LOOSE_RE = re.compile(r"A1(\d{1,2})")
_NON_ALNUM_RE = re.compile(r"[^A-Z0-9]")
_WS_RE = re.compile(r"\s+")
_FOUR_DIGITS_RE = re.compile(r"^(\d{4})$")
_THREE_DIGITS_RE = re.compile(r"(\d{3})")
_ONE_TO_THREE_RE = re.compile(r"(\d{1,3})")
_ONE_OR_TWO_RE = re.compile(r"(\d{1,2})")
_NON_DIGIT_RE = re.compile(r"\D")


def in_range(value: Optional[int], lo: int, hi: int) -> bool:
    """True if *value* is an int within ``[lo, hi]``."""
    return value is not None and lo <= value <= hi


def normalize_row(row_number: Optional[str]) -> str:
    """Upper-case a row label and drop everything but letters and digits."""
    return _NON_ALNUM_RE.sub("", str(row_number or "").upper())


def normalize_plot_number(plot_number: Optional[str]) -> str:
    """Upper-case a plot number and drop whitespace."""
    return _WS_RE.sub("", str(plot_number or "").upper())


def _short_to_a(value: int) -> Optional[int]:
    lo, hi = _SHORT_RANGE
    return _A_OFFSET + value if lo <= value <= hi else None


# ── Strategies ───────────────────────────────────────────────────────────────

Extractor = Callable[[str, str], Optional[int]]


class Strategy(NamedTuple):
    """A named extractor taking ``(plot_number, row_number)``."""

    name: str
    extract: Extractor


def _row_label(plot_number: str, row_number: str) -> Optional[int]:
    m = _ROW_A1_RE.search(normalize_row(row_number))
    return _short_to_a(int(m.group(1))) if m else None


def _a1_prefix(plot_number: str, row_number: str) -> Optional[int]:
    pn = normalize_plot_number(plot_number)
    if not pn.startswith("A1"):
        return None
    m = _ONE_TO_THREE_RE.search(pn[2:])
    if not m:
        return None
    value = int(m.group(1))
    if 100 <= value <= 999:
        return value
    return _short_to_a(value)


def _encoded_range(plot_number: str, row_number: str) -> Optional[int]:
    m = _FOUR_DIGITS_RE.match(normalize_plot_number(plot_number))
    if not m:
        return None
    value = int(m.group(1))
    for lo, hi in ENCODED_RANGES:
        if lo <= value <= hi:
            return _A_OFFSET + value % 100
    return None


def _three_digit_run(plot_number: str, row_number: str) -> Optional[int]:
    m = _THREE_DIGITS_RE.search(normalize_plot_number(plot_number))
    return int(m.group(1)) if m else None


def _short_digit_run(plot_number: str, row_number: str) -> Optional[int]:
    m = _ONE_OR_TWO_RE.search(normalize_plot_number(plot_number))
    return _short_to_a(int(m.group(1))) if m else None


def _row_label_fallback(plot_number: str, row_number: str) -> Optional[int]:
    m = _ROW_A1_LOOSE_RE.search(normalize_row(row_number))
    return _short_to_a(int(m.group(1))) if m else None


def _digits_only(plot_number: str, row_number: str) -> Optional[int]:
    digits = _NON_DIGIT_RE.sub("", str(plot_number or ""))
    return int(digits) if digits else None


ROW_LABEL = Strategy("row_label", _row_label)
A1_PREFIX = Strategy("a1_prefix", _a1_prefix)
ENCODED_RANGE = Strategy("encoded_range", _encoded_range)
THREE_DIGIT_RUN = Strategy("three_digit_run", _three_digit_run)
SHORT_DIGIT_RUN = Strategy("short_digit_run", _short_digit_run)
ROW_LABEL_FALLBACK = Strategy("row_label_fallback", _row_label_fallback)
DIGITS_ONLY = Strategy("digits_only", _digits_only)

# Staging rows and dedup: trust the row label, then the plot number, then
# loose digit extraction.
STAGING_STRATEGIES: Tuple[Strategy, ...] = (
    ROW_LABEL,
    A1_PREFIX,
    ENCODED_RANGE,
    THREE_DIGIT_RUN,
    SHORT_DIGIT_RUN,
)

# Gap filling: no encoded-range table, row label retried as a last resort.
GAP_FILL_STRATEGIES: Tuple[Strategy, ...] = (
    ROW_LABEL,
    A1_PREFIX,
    THREE_DIGIT_RUN,
    SHORT_DIGIT_RUN,
    ROW_LABEL_FALLBACK,
)

# Legacy Plot-table parse: every digit of plot_number, concatenated.
DIGITS_ONLY_STRATEGIES: Tuple[Strategy, ...] = (DIGITS_ONLY,)


def match_strategy(
    plot_number: Optional[str],
    row_number: Optional[str] = "",
    strategies: Sequence[Strategy] = STAGING_STRATEGIES,
) -> Tuple[Optional[int], Optional[str]]:
    """Run *strategies* in order and report which one matched.

    Returns:
        ``(number, strategy_name)``, or ``(None, None)`` when nothing matched.
    """
    pn = str(plot_number or "")
    row = str(row_number or "")
    for strategy in strategies:
        value = strategy.extract(pn, row)
        if value is not None:
            return value, strategy.name
    return None, None


def canonicalize(
    plot_number: Optional[str],
    row_number: Optional[str] = "",
    strategies: Sequence[Strategy] = STAGING_STRATEGIES,
) -> Optional[int]:
    """Canonical plot number for a ``(plot_number, row_number)`` pair.

    Args:
        plot_number: Free-text plot number, e.g. ``"A1-07"`` or ``"1103"``.
        row_number: Free-text row label, e.g. ``"A-107"``.
        strategies: Ordered strategy set (default ``STAGING_STRATEGIES``).

    Returns:
        The canonical integer, or ``None`` when no strategy matched.
    """
    return match_strategy(plot_number, row_number, strategies)[0]
