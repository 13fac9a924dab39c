"""
listimport/errors.py

Exception hierarchy for list import runs and store collaborators.
"""

from __future__ import annotations

from typing import Any, Sequence


class ListImportError(Exception):
    """Base exception for list import failures."""


class ListNotFoundError(ListImportError):
    """Raised when the target list does not exist and auto-create is off."""

    def __init__(self, list_name: str) -> None:
        super().__init__(f"List '{list_name}' was not found and auto-create is disabled.")
        self.list_name = list_name


class SchemaProvisionError(ListImportError):
    """Raised when a missing column cannot be created."""

    def __init__(
        self,
        *,
        column_name: str,
        kind: str,
        reason: str,
        created: Sequence[Any] = (),
    ) -> None:
        super().__init__(f"Failed to create column '{column_name}' ({kind}): {reason}")
        self.column_name = column_name
        self.kind = kind
        self.reason = reason
        self.created = tuple(created)


class RowCommitError(ListImportError):
    """Raised when one row cannot be staged, committed, or read back."""

    def __init__(self, *, row_index: int, reason: str, stage: str = "commit") -> None:
        super().__init__(f"Row {row_index} failed during {stage}: {reason}")
        self.row_index = row_index
        self.reason = reason
        self.stage = stage


class StoreError(Exception):
    """Base exception for store collaborator failures."""


class StoreRequestError(StoreError):
    """Raised when a store request fails after retries or is rejected."""


class StoreItemNotFoundError(StoreError):
    """Raised when a read-back targets an item the store does not hold."""
