"""
listimport/domain/list_import.py

Run options, diagnostics, and the end-of-run summary for list imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from listimport.domain.list_item import CommitResult, Record
from listimport.domain.list_schema import ColumnDescriptor


class ErrorMode(str, Enum):
    """
    How reported errors propagate out of a run.
    """

    SOFT = "soft"
    STRICT = "strict"


class FailedRowPolicy(str, Enum):
    """
    What the row loop does after a row fails to commit.

    SKIP discards the row's pending work and moves on. FLUSH_AND_CONFIRM
    flushes the session again and attempts the read-back anyway.
    """

    SKIP = "skip"
    FLUSH_AND_CONFIRM = "flush_and_confirm"


@dataclass(frozen=True)
class ListImportOptions:
    """
    Caller-selected switches for one import run.
    """

    auto_create: bool = False
    quiet: bool = False
    failed_row_policy: FailedRowPolicy = FailedRowPolicy.SKIP


@dataclass(frozen=True)
class UnknownFieldDropped:
    """
    Non-fatal diagnostic: an input field had no matching column.
    """

    row_index: int
    field_name: str

    def describe(self) -> str:
        return f"Row {self.row_index}: field '{self.field_name}' has no matching column and was dropped."


@dataclass
class ListImportSummary:
    """
    End-of-run outcome for one list import.
    """

    list_name: str
    list_id: str | None = None
    list_created: bool = False
    aborted: bool = False
    columns_created: list[ColumnDescriptor] = field(default_factory=list)
    commit_results: list[CommitResult] = field(default_factory=list)
    confirmations: list[Record] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    diagnostics: list[UnknownFieldDropped] = field(default_factory=list)

    @property
    def rows_committed(self) -> int:
        return sum(1 for result in self.commit_results if result.success)

    @property
    def rows_failed(self) -> int:
        return sum(1 for result in self.commit_results if not result.success)

    def to_dict(self) -> dict[str, Any]:
        return {
            "list_name": self.list_name,
            "list_id": self.list_id,
            "list_created": self.list_created,
            "aborted": self.aborted,
            "columns_created": [
                {"name": column.name, "kind": column.kind.value}
                for column in self.columns_created
            ],
            "rows_committed": self.rows_committed,
            "rows_failed": self.rows_failed,
            "item_ids": [result.item_id for result in self.commit_results if result.success],
            "errors": list(self.errors),
            "dropped_fields": [diagnostic.describe() for diagnostic in self.diagnostics],
        }
