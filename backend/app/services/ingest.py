"""CSV upload validation and parsing into plain row dictionaries."""

import io
import os
from typing import Dict, List

import pandas as pd
from fastapi import UploadFile

from app.config import settings


class CSVParseError(ValueError):
    """Raised when an upload cannot be turned into at least one data row."""


def validate_upload(file: UploadFile) -> dict:
    allowed_extensions = [".csv", ".txt"]
    file_ext = os.path.splitext(file.filename or "")[1].lower()

    if file_ext not in allowed_extensions:
        return {
            "valid": False,
            "error": f"File type '{file_ext}' not allowed. Only CSV files accepted.",
            "file_type": None,
            "file_size": 0,
        }

    file.file.seek(0, 2)
    file_size = file.file.tell()
    file.file.seek(0)

    max_size = settings.MAX_UPLOAD_MB * 1024 * 1024
    if file_size > max_size:
        return {
            "valid": False,
            "error": f"File too large ({file_size / 1024 / 1024:.1f}MB). Maximum {settings.MAX_UPLOAD_MB}MB.",
            "file_type": None,
            "file_size": file_size,
        }

    return {"valid": True, "error": None, "file_type": "csv", "file_size": file_size}


def parse_csv_rows(data: bytes) -> List[Dict[str, str]]:
    """
    Parse CSV bytes into a list of {header: cell} dicts.

    Every cell stays text ("NA", "null" etc. are kept verbatim) so the quality
    dimensions see exactly what was uploaded. Headers and cells are stripped.
    Short rows are padded with empty cells and long rows are cut to the header.
    """
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CSVParseError(f"CSV must be UTF-8 encoded: {e}") from e

    if not text.strip():
        raise CSVParseError("CSV file is empty.")

    try:
        width = len(pd.read_csv(io.StringIO(text), nrows=0).columns)
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
            engine="python",
            on_bad_lines=lambda fields: fields[:width],
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        raise CSVParseError(f"Failed to parse CSV file: {e}") from e

    if df.empty:
        raise CSVParseError("CSV file has a header but no data rows.")

    df.columns = [str(c).strip() for c in df.columns]
    df = df.fillna("").apply(lambda s: s.str.strip())
    return df.to_dict(orient="records")
