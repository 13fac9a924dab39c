"""
listimport/readers.py

Loads input records from CSV and JSON files.

CSV values are typed by pandas; JSON values keep their JSON types, with
ISO-8601 strings optionally promoted to datetimes so they infer as DateTime
columns.
"""

from __future__ import annotations

import json
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Sequence

import pandas as pd

from listimport.mappers.field_coercer import parse_iso_datetime

_ISO_DATE_PREFIX_LENGTH = 10


class RecordReadError(ValueError):
    """
    Raised when an input file cannot be turned into records.
    """


def read_records(path: str | Path, *, parse_dates: Sequence[str] = ()) -> list[dict[str, Any]]:
    """
    Read records from ``path``, choosing the reader by file extension.
    """

    suffix = Path(path).suffix.lower()
    if suffix == ".csv":
        return read_csv_records(path, parse_dates=parse_dates)
    if suffix == ".json":
        return read_json_records(path)
    raise RecordReadError(f"Unsupported input file type '{suffix}'. Use .csv or .json.")


def read_csv_records(path: str | Path, *, parse_dates: Sequence[str] = ()) -> list[dict[str, Any]]:
    try:
        frame = pd.read_csv(path, encoding="utf-8-sig")
    except (OSError, ValueError) as exc:
        raise RecordReadError(f"Could not read CSV input '{path}': {exc}") from exc

    for column in parse_dates:
        if column not in frame.columns:
            raise RecordReadError(f"Date column '{column}' is not present in '{path}'.")
        frame[column] = pd.to_datetime(frame[column], errors="coerce")

    return [
        {str(name): _native_value(value) for name, value in row.items()}
        for row in frame.to_dict(orient="records")
    ]


def read_json_records(path: str | Path, *, parse_dates: bool = True) -> list[dict[str, Any]]:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise RecordReadError(f"Could not read JSON input '{path}': {exc}") from exc

    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise RecordReadError("JSON input must be an object or an array of objects.")

    if not parse_dates:
        return [dict(item) for item in payload]
    return [promote_iso_datetimes(item) for item in payload]


def _native_value(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


def promote_iso_datetime(value: Any) -> Any:
    """
    Return a datetime for ISO-8601 date strings; other values pass through.
    """

    if not isinstance(value, str) or len(value) < _ISO_DATE_PREFIX_LENGTH:
        return value
    # Only strings that start like a calendar date are candidates.
    if not (value[:4].isdigit() and value[4] == "-" and value[7] == "-"):
        return value
    parsed: datetime | None = parse_iso_datetime(value)
    return parsed if parsed is not None else value


def promote_iso_datetimes(record: Mapping[str, Any]) -> dict[str, Any]:
    return {name: promote_iso_datetime(value) for name, value in record.items()}
