"""Detection of staging rows that cannot be placed in the target range."""
from __future__ import annotations

import logging
import re
from typing import Iterable, Tuple

from .._types import PlotRecord, PurgePlan
from ._canonical import STAGING_STRATEGIES, TARGET_RANGE_A1, canonicalize, in_range, normalize_plot_number, normalize_row

logger = logging.getLogger(__name__)

_ROW_A1_PREFIX_RE = re.compile(r"^A1\d{2}")
_NON_DIGIT_RE = re.compile(r"\D")

# Digits that sit just past A-1 and only appear on mislabelled A-12x rows
OVERFLOW_RANGE: Tuple[int, int] = (133, 199)

SAMPLE_SIZE = 10


def is_unplaced(row: PlotRecord, target_range: Tuple[int, int] = TARGET_RANGE_A1) -> bool:
    """True if the row claims the A-1 area but has no number inside *target_range*."""
    row_norm = normalize_row(row.row_number)
    pn = normalize_plot_number(row.plot_number)

    labelled = "A1" in row_norm or pn.startswith("A1")
    number = canonicalize(row.plot_number, row.row_number, STAGING_STRATEGIES)
    if labelled and not in_range(number, *target_range):
        return True

    digits = _NON_DIGIT_RE.sub("", str(row.plot_number or ""))
    if digits and in_range(int(digits), *OVERFLOW_RANGE):
        return bool(_ROW_A1_PREFIX_RE.match(row_norm))
    return False


def plan_unplaced_purge(
    rows: Iterable[PlotRecord],
    target_range: Tuple[int, int] = TARGET_RANGE_A1,
) -> PurgePlan:
    """Collect staging rows labelled for the A-1 area that fall outside it."""
    plan = PurgePlan(target_range=target_range)
    for row in rows:
        plan.rows_scanned += 1
        if not is_unplaced(row, target_range):
            continue
        plan.delete_ids.append(row.id)
        if len(plan.sample_labels) < SAMPLE_SIZE:
            plan.sample_labels.append(
                {"plot_number": row.plot_number, "row_number": row.row_number}
            )

    logger.info(
        "Unplaced purge: %d of %d staging rows outside %d-%d",
        len(plan.delete_ids),
        plan.rows_scanned,
        *target_range,
    )
    return plan
