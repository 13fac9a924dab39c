"""
listimport/mappers/type_mapper.py

Host value type inference for list column provisioning.

Inference runs once per field of a single sample record. A field whose
sample value is ``None`` classifies as UNKNOWN and therefore becomes a
``Text`` column; later rows are never consulted.
"""

from __future__ import annotations

import numbers
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from listimport.domain.list_schema import ColumnKind, HostValueType

DEFAULT_LONG_TEXT_THRESHOLD = 255

_KIND_BY_HOST_TYPE: dict[HostValueType, ColumnKind] = {
    HostValueType.FLOAT: ColumnKind.NUMBER,
    HostValueType.INTEGER: ColumnKind.NUMBER,
    HostValueType.DECIMAL: ColumnKind.CURRENCY,
    HostValueType.BOOLEAN: ColumnKind.BOOLEAN,
    HostValueType.DATETIME: ColumnKind.DATETIME,
    HostValueType.GUID: ColumnKind.GUID,
    HostValueType.SHORT_TEXT: ColumnKind.TEXT,
    HostValueType.LONG_TEXT: ColumnKind.NOTE,
}

_FALLBACK_KIND = ColumnKind.TEXT


def classify_host_value(value: Any, *, long_text_threshold: int = DEFAULT_LONG_TEXT_THRESHOLD) -> HostValueType:
    """
    Tag a host value with its HostValueType.
    """

    # bool is an Integral subclass; test it first.
    if isinstance(value, bool):
        return HostValueType.BOOLEAN
    if isinstance(value, Decimal):
        return HostValueType.DECIMAL
    if isinstance(value, numbers.Integral):
        return HostValueType.INTEGER
    if isinstance(value, numbers.Real):
        return HostValueType.FLOAT
    if isinstance(value, (datetime, date)):
        return HostValueType.DATETIME
    if isinstance(value, uuid.UUID):
        return HostValueType.GUID
    if isinstance(value, str):
        if len(value) > long_text_threshold or "\n" in value or "\r" in value:
            return HostValueType.LONG_TEXT
        return HostValueType.SHORT_TEXT
    return HostValueType.UNKNOWN


def infer_column_kind(host_type: HostValueType) -> ColumnKind:
    """
    Map a host value tag to its column kind; unrecognised tags fall back to Text.
    """

    return _KIND_BY_HOST_TYPE.get(host_type, _FALLBACK_KIND)


def infer_value_kind(value: Any, *, long_text_threshold: int = DEFAULT_LONG_TEXT_THRESHOLD) -> ColumnKind:
    return infer_column_kind(classify_host_value(value, long_text_threshold=long_text_threshold))
