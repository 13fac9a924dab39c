"""
listimport/domain package marker.
"""

from listimport.domain.list_import import (
    ErrorMode,
    FailedRowPolicy,
    ListImportOptions,
    ListImportSummary,
    UnknownFieldDropped,
)
from listimport.domain.list_item import (
    RESERVED_FIELD_NAMES,
    CommitResult,
    Record,
    StagedItem,
    StoreSession,
)
from listimport.domain.list_schema import ColumnDescriptor, ColumnKind, HostValueType, ListHandle

__all__ = [
    "RESERVED_FIELD_NAMES",
    "ColumnDescriptor",
    "ColumnKind",
    "CommitResult",
    "ErrorMode",
    "FailedRowPolicy",
    "HostValueType",
    "ListHandle",
    "ListImportOptions",
    "ListImportSummary",
    "Record",
    "StagedItem",
    "StoreSession",
    "UnknownFieldDropped",
]
