"""
listimport/mappers/field_coercer.py

Per-column-kind serialization of field values into markup-safe wire strings.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any
from xml.sax.saxutils import escape, unescape

from listimport.domain.list_schema import ColumnKind

WIRE_DATETIME_LENGTH = 20

_MARKUP_ENTITIES = {"'": "&apos;", '"': "&quot;"}
_MARKUP_ENTITIES_REVERSE = {value: key for key, value in _MARKUP_ENTITIES.items()}


def escape_markup(text: str) -> str:
    """
    Escape the five XML-significant characters.
    """

    return escape(text, _MARKUP_ENTITIES)


def unescape_markup(text: str) -> str:
    return unescape(text, _MARKUP_ENTITIES_REVERSE)


def format_utc_datetime(value: datetime | date) -> str:
    """
    Render a date/time as ``yyyy-MM-ddTHH:mm:ssZ`` in UTC.

    Naive datetimes are interpreted as local time. Plain dates are local
    midnight.
    """

    if not isinstance(value, datetime):
        value = datetime.combine(value, time())
    utc_value = value.astimezone(timezone.utc)
    return (
        f"{utc_value.year:04d}-{utc_value.month:02d}-{utc_value.day:02d}"
        f"T{utc_value.hour:02d}:{utc_value.minute:02d}:{utc_value.second:02d}Z"
    )


def parse_iso_datetime(value: str) -> datetime | None:
    """
    Parse an ISO-8601 string, accepting a trailing ``Z``. Returns None when
    the text is not a date/time.
    """

    text = value.strip()
    if not text:
        return None
    normalized = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def coerce_field(value: Any, kind: ColumnKind) -> str:
    """
    Convert one non-null field value to its wire representation for ``kind``.
    """

    if kind is ColumnKind.DATETIME:
        if isinstance(value, (datetime, date)):
            return format_utc_datetime(value)
        if isinstance(value, str):
            parsed = parse_iso_datetime(value)
            if parsed is not None:
                return format_utc_datetime(parsed)
    return escape_markup(str(value))
