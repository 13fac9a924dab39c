"""
listimport/domain/list_schema.py

Column kinds, host value tags, and schema snapshot models for remote lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ColumnKind(str, Enum):
    """
    Closed set of storage kinds a list column may have.
    """

    TEXT = "Text"
    NOTE = "Note"
    NUMBER = "Number"
    DATETIME = "DateTime"
    BOOLEAN = "Boolean"
    CURRENCY = "Currency"
    GUID = "Guid"
    COMPUTED = "Computed"

    @property
    def is_writable(self) -> bool:
        return self is not ColumnKind.COMPUTED


class HostValueType(str, Enum):
    """
    Tag for the host-side type of one sample value.
    """

    FLOAT = "float"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    GUID = "guid"
    SHORT_TEXT = "short_text"
    LONG_TEXT = "long_text"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ColumnDescriptor:
    """
    One column of a list schema snapshot.

    ``internal_name`` is the store-side field name when it differs from the
    display name (e.g. SharePoint encodes spaces as ``_x0020_``).
    """

    name: str
    kind: ColumnKind
    internal_name: str | None = None

    @property
    def wire_name(self) -> str:
        return self.internal_name or self.name


@dataclass(frozen=True)
class ListHandle:
    """
    Store-issued reference to one list.
    """

    list_id: str
    title: str
