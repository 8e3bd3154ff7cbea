"""
Date column detection for the Timeliness dimension.

A column counts as a timestamp column when its header looks like one AND the
first few values actually read as dates. Parsing is lenient: anything
python-dateutil accepts is a date.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from dateutil import parser as dateutil_parser

from app.services.rows import Row, cell_text


# Header keywords that mark a candidate timestamp column
DATE_KEYWORDS = ("date", "time", "timestamp", "created", "updated", "modified")

# Number of leading rows sampled when confirming a candidate
DATE_SAMPLE_SIZE = 10

# Share of sampled values that must parse (strictly more than this)
DATE_MAJORITY = 0.5


def has_date_keyword(column: str) -> bool:
    """Check whether a column header contains one of the date keywords."""
    lowered = str(column).lower()
    return any(keyword in lowered for keyword in DATE_KEYWORDS)


def parse_date_lenient(value: Any) -> Optional[datetime]:
    """
    Parse a cell as a date, returning a timezone-aware datetime or None.
    Naive values are read as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = cell_text(value)
        if not text:
            return None
        try:
            parsed = dateutil_parser.parse(text)
        except (ValueError, TypeError, OverflowError):
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def detect_date_column(
    rows: Sequence[Row],
    columns: List[str],
) -> Optional[str]:
    """
    Return the first column (in definition order) whose name contains a date
    keyword and whose sampled values are mostly parseable dates.
    """
    if not rows:
        return None

    sample = rows[:DATE_SAMPLE_SIZE]
    for col in columns:
        if not has_date_keyword(col):
            continue
        values = [cell_text(row.get(col)) for row in sample]
        date_like = sum(1 for v in values if parse_date_lenient(v) is not None)
        if date_like > len(values) * DATE_MAJORITY:
            return col

    return None
