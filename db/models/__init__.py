"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.list_import_run import ListImportRun, ListImportRunStatus

__all__ = [
    "ListImportRun",
    "ListImportRunStatus",
]
