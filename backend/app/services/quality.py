"""
Quality dimension calculators: each produces a 0-100 integer score.

Completeness  : % of non-empty cells
Uniqueness    : mean per-column share of distinct non-empty values
Consistency   : mean per-column length regularity of non-empty values
Validity      : % of rows whose key field (first column) is present
Timeliness    : freshness band of the mean age of the detected date column

Every function is pure: rows are read, never modified, and degenerate input
degrades to a fixed score (0, 50 or 100) with a logged warning instead of an
exception.
"""

import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence

import numpy as np

from app.services.date_detection import detect_date_column, parse_date_lenient
from app.services.rows import DimensionScores, Row, cell_text, column_values, extract_columns

logger = logging.getLogger(__name__)

# Returned when freshness cannot be judged
NEUTRAL_TIMELINESS = 50

# (upper bound in hours, exclusive) → score; anything older scores STALE_SCORE
FRESHNESS_BANDS = (
    (1, 100),
    (6, 95),
    (24, 85),
    (72, 70),
    (168, 50),
)
STALE_SCORE = 30


def round_score(value: float) -> int:
    """Round half up and clamp to the 0-100 score range."""
    if value is None or not math.isfinite(value):
        return 0
    return int(min(max(math.floor(value + 0.5), 0), 100))


# ── Completeness ─────────────────────────────────────────────────────

def completeness(rows: Sequence[Row], columns: List[str]) -> int:
    if not rows or not columns:
        logger.warning("completeness: empty dataset or no columns, returning 0")
        return 0

    total_cells = len(rows) * len(columns)
    non_empty = sum(1 for row in rows for col in columns if cell_text(row.get(col)))
    return round_score(non_empty / total_cells * 100)


# ── Uniqueness ───────────────────────────────────────────────────────

def uniqueness(rows: Sequence[Row], columns: List[str]) -> int:
    """
    Average of per-column distinct/non-empty ratios.
    A column with no values at all counts as 100% unique.
    """
    if not rows or not columns:
        logger.warning("uniqueness: empty dataset or no columns, returning 0")
        return 0

    per_column = []
    for col in columns:
        values = column_values(rows, col)
        if not values:
            per_column.append(100.0)
            continue
        per_column.append(len(set(values)) / len(values) * 100)

    return round_score(sum(per_column) / len(per_column))


# ── Consistency ──────────────────────────────────────────────────────

def _length_consistency(values: List[str]) -> float:
    if len(values) <= 1:
        return 100.0
    lengths = np.array([len(v) for v in values], dtype=float)
    mean_length = lengths.mean()
    mean_deviation = np.abs(lengths - mean_length).mean()
    return max(0.0, 100 - (mean_deviation / max(mean_length, 1)) * 100)


def consistency(rows: Sequence[Row], columns: List[str]) -> int:
    """
    Length-regularity proxy for format consistency. Per column the mean
    absolute deviation of value lengths is taken relative to the mean
    length; empty and single-valued columns are fully consistent.
    """
    if not rows or not columns:
        logger.warning("consistency: empty dataset or no columns, returning 0")
        return 0

    per_column = [_length_consistency(column_values(rows, col)) for col in columns]
    return round_score(sum(per_column) / len(per_column))


# ── Validity ─────────────────────────────────────────────────────────

def validity(rows: Sequence[Row], columns: List[str]) -> int:
    """Share of rows with a non-empty key field. The key field is the first column."""
    if not rows or not columns:
        logger.warning("validity: empty dataset or no columns, returning 0")
        return 0

    key = columns[0]
    valid_rows = sum(1 for row in rows if cell_text(row.get(key)))
    return round_score(valid_rows / len(rows) * 100)


# ── Timeliness ───────────────────────────────────────────────────────

def freshness_score(mean_age_hours: float) -> int:
    for upper, score in FRESHNESS_BANDS:
        if mean_age_hours < upper:
            return score
    return STALE_SCORE


def timeliness(
    rows: Sequence[Row],
    date_column: Optional[str],
    now: Optional[datetime] = None,
) -> int:
    """
    Freshness of the dataset based on the mean age of `date_column`.

    Unknown freshness (no date column, no rows, nothing parseable) is neutral,
    not bad. `now` defaults to the current UTC time; pass a fixed value for
    reproducible results.
    """
    if not date_column or not rows:
        logger.warning("timeliness: no date column or empty dataset, returning neutral score")
        return NEUTRAL_TIMELINESS

    ref = now or datetime.now(timezone.utc)
    if ref.tzinfo is None:
        ref = ref.replace(tzinfo=timezone.utc)

    ages = []
    for row in rows:
        parsed = parse_date_lenient(row.get(date_column))
        if parsed is None:
            continue
        ages.append((ref - parsed).total_seconds() / 3600)

    if not ages:
        logger.warning("timeliness: no parseable values in %r, returning neutral score", date_column)
        return NEUTRAL_TIMELINESS

    return freshness_score(sum(ages) / len(ages))


# ── All dimensions ───────────────────────────────────────────────────

def compute_all_scores(rows: Sequence[Row], now: Optional[datetime] = None) -> DimensionScores:
    """
    Score every dimension for a dataset.

    Timeliness is always present here (neutral 50 when no date column is
    detected). Use `app.services.metadata.compute_scores` to leave it out
    instead, so the composite redistributes its weight.
    """
    rows = rows or []
    columns = extract_columns(rows)
    date_column = detect_date_column(rows, columns)

    return {
        "completeness": completeness(rows, columns),
        "uniqueness": uniqueness(rows, columns),
        "consistency": consistency(rows, columns),
        "validity": validity(rows, columns),
        "timeliness": timeliness(rows, date_column, now=now),
    }
