"""
Request-scoped analysis pipeline: rows → metadata → dimension scores → DQS.

ScoringMetadata and the dataset profile describe a dataset's shape and
per-column rates only. Neither carries cell values, so both are safe to hand
to API clients and the explanation layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from app.services.composite import compute_dqs
from app.services.date_detection import detect_date_column
from app.services.quality import (
    completeness,
    consistency,
    timeliness,
    uniqueness,
    validity,
)
from app.services.rows import DimensionScores, Row, cell_text, extract_columns

PROFILE_PRECISION = 3


@dataclass(frozen=True)
class ScoringMetadata:
    columns: List[str] = field(default_factory=list)
    row_count: int = 0
    column_count: int = 0
    has_date_column: bool = False
    date_column_name: Optional[str] = None

    def summary(self) -> Dict[str, Any]:
        """Counts and column names, as exposed to API clients and the LLM."""
        return {
            "row_count": self.row_count,
            "column_count": self.column_count,
            "columns": list(self.columns),
        }


def prepare_metadata(rows: Sequence[Row]) -> ScoringMetadata:
    if not rows:
        return ScoringMetadata()

    columns = extract_columns(rows)
    date_column = detect_date_column(rows, columns)
    return ScoringMetadata(
        columns=columns,
        row_count=len(rows),
        column_count=len(columns),
        has_date_column=date_column is not None,
        date_column_name=date_column,
    )


@dataclass(frozen=True)
class ColumnProfile:
    name: str
    null_rate: float = 0.0
    unique_rate: float = 0.0

    def rates(self) -> Dict[str, float]:
        return {"null_rate": self.null_rate, "unique_rate": self.unique_rate}


def build_dataset_profile(rows: Sequence[Row], columns: Sequence[str]) -> Dict[str, Any]:
    """
    Per-column null and distinct-value rates, each a share of all rows rounded
    to 3 decimals. Empty or missing cells count as null; distinct values are
    counted over the remaining cells. An empty dataset profiles every column
    at 0.0.

    Returns:
    {
        "row_count": int,
        "columns": {column: {"null_rate": float, "unique_rate": float}}
    }
    """
    row_count = len(rows)
    profiles: List[ColumnProfile] = []

    for col in columns:
        if row_count == 0:
            profiles.append(ColumnProfile(name=col))
            continue

        nulls = 0
        distinct = set()
        for row in rows:
            text = cell_text(row.get(col))
            if text:
                distinct.add(text)
            else:
                nulls += 1

        profiles.append(ColumnProfile(
            name=col,
            null_rate=round(nulls / row_count, PROFILE_PRECISION),
            unique_rate=round(len(distinct) / row_count, PROFILE_PRECISION),
        ))

    return {
        "row_count": row_count,
        "columns": {p.name: p.rates() for p in profiles},
    }


def compute_scores(
    rows: Sequence[Row],
    metadata: ScoringMetadata,
    now: Optional[datetime] = None,
) -> DimensionScores:
    """
    Dimension scores for an analysed dataset. Timeliness is only included
    when a date column was detected.
    """
    columns = metadata.columns
    scores: DimensionScores = {
        "completeness": completeness(rows, columns),
        "uniqueness": uniqueness(rows, columns),
        "consistency": consistency(rows, columns),
        "validity": validity(rows, columns),
    }
    if metadata.has_date_column and metadata.date_column_name:
        scores["timeliness"] = timeliness(rows, metadata.date_column_name, now=now)
    return scores


def analyze_rows(
    rows: Sequence[Row],
    weights: Optional[Mapping[str, float]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Full analysis of one dataset.

    Returns:
    {
        "dimensions": {"completeness": int, ..., "timeliness"?: int},
        "DQS": int,
        "metadata": {"row_count": int, "column_count": int, "columns": [str]},
        "profile": {"row_count": int, "columns": {column: {"null_rate", "unique_rate"}}}
    }
    """
    metadata = prepare_metadata(rows)
    dimensions = compute_scores(rows, metadata, now=now)
    result = compute_dqs(dimensions, weights).to_dict()
    result["metadata"] = metadata.summary()
    result["profile"] = build_dataset_profile(rows, metadata.columns)
    return result
