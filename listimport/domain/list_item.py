"""
listimport/domain/list_item.py

Staged items, commit outcomes, and the per-run store session.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping

Record = Mapping[str, Any]

RESERVED_FIELD_NAMES: frozenset[str] = frozenset({"ID"})


@dataclass
class StagedItem:
    """
    Write-only projection of one input record, keyed by column name.

    Values are already coerced wire strings. ``item_id`` stays ``None`` until
    the store assigns an identifier on commit.
    """

    list_id: str
    fields: dict[str, str] = field(default_factory=dict)
    staged_key: str = field(default_factory=lambda: uuid.uuid4().hex)
    item_id: str | None = None

    def set_field(self, column_name: str, wire_value: str) -> None:
        if column_name in RESERVED_FIELD_NAMES:
            raise ValueError(f"Field '{column_name}' is assigned by the store and cannot be written.")
        self.fields[column_name] = wire_value


@dataclass(frozen=True)
class CommitResult:
    """
    Outcome of committing one staged item.
    """

    staged_key: str
    item_id: str | None
    success: bool
    error: str | None = None


@dataclass
class StoreSession:
    """
    Explicit per-run context shared by every store call.

    Stores subclass this to carry their transport state. Pending staged items
    accumulate here until ``ListStore.commit`` flushes them.
    """

    pending: list[StagedItem] = field(default_factory=list)

    def add_pending(self, item: StagedItem) -> None:
        self.pending.append(item)

    def discard_pending(self) -> int:
        count = len(self.pending)
        self.pending.clear()
        return count

    def close(self) -> None:
        self.discard_pending()
