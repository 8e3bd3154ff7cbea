"""Row helpers shared by every quality dimension: column extraction and cell text."""

from typing import Any, Dict, List, Mapping, Sequence

import pandas as pd

Row = Mapping[str, Any]
DimensionScores = Dict[str, int]


def extract_columns(rows: Sequence[Row]) -> List[str]:
    """Ordered keys of the first row; empty dataset → []."""
    if not rows:
        return []
    return list(rows[0].keys())


def cell_text(value: Any) -> str:
    """Trimmed string form of a cell. None / NaN / missing become ''."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def column_values(rows: Sequence[Row], col: str) -> List[str]:
    """Non-empty trimmed values of a column. Rows missing the key count as empty."""
    values = []
    for row in rows:
        text = cell_text(row.get(col))
        if text:
            values.append(text)
    return values
