"""
listimport/schemas package marker.
"""

from listimport.schemas.list_import import (
    ColumnResponse,
    ListImportRequest,
    ListImportResponse,
    ListImportRunListResponse,
    ListImportRunResponse,
)

__all__ = [
    "ColumnResponse",
    "ListImportRequest",
    "ListImportResponse",
    "ListImportRunListResponse",
    "ListImportRunResponse",
]
