"""
Repository layer exports.
"""

from db.repositories.list_import_run_repository import ListImportRunRepository

__all__ = [
    "ListImportRunRepository",
]
