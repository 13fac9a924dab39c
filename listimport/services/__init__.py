"""
listimport/services package marker.
"""

from listimport.services.error_channel import ErrorChannel
from listimport.services.import_run_service import (
    ListImportRunError,
    ListImportRunService,
    TrackedImport,
    get_list_import_run_service,
)
from listimport.services.list_ingestion_service import (
    ListIngestionService,
    get_list_ingestion_service,
)
from listimport.services.schema_reconciler import SchemaReconciler

__all__ = [
    "ErrorChannel",
    "ListImportRunError",
    "ListImportRunService",
    "ListIngestionService",
    "SchemaReconciler",
    "TrackedImport",
    "get_list_import_run_service",
    "get_list_ingestion_service",
]
