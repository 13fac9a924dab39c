"""
listimport/stores/memory_store.py

In-process list store with server-like validation of wire values.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from listimport.domain.list_item import CommitResult, Record, StagedItem, StoreSession
from listimport.domain.list_schema import ColumnDescriptor, ColumnKind, ListHandle
from listimport.errors import StoreItemNotFoundError, StoreRequestError
from listimport.mappers.field_coercer import unescape_markup
from listimport.stores.base import ListStore

logger = logging.getLogger(__name__)

TEXT_COLUMN_MAX_LENGTH = 255
_BOOLEAN_WIRE_VALUES = {"true", "false", "1", "0", "yes", "no"}

_BUILTIN_COLUMNS: tuple[ColumnDescriptor, ...] = (
    ColumnDescriptor(name="ID", kind=ColumnKind.COMPUTED),
    ColumnDescriptor(name="Title", kind=ColumnKind.TEXT),
    ColumnDescriptor(name="LinkTitle", kind=ColumnKind.COMPUTED),
)


@dataclass
class _MemoryList:
    handle: ListHandle
    columns: dict[str, ColumnDescriptor]
    items: dict[str, dict[str, str]] = field(default_factory=dict)
    next_item_id: int = 1


class InMemoryListStore(ListStore):
    """
    ListStore implementation that keeps lists and items in memory.
    """

    name = "memory"

    def __init__(self) -> None:
        self._lists: dict[str, _MemoryList] = {}
        self._lists_by_id: dict[str, _MemoryList] = {}

    def add_list(self, list_name: str, columns: dict[str, ColumnKind] | None = None) -> ListHandle:
        """
        Seed a list with extra columns, as if it had been created beforehand.
        """

        handle = self._register_list(list_name)
        for column_name, kind in (columns or {}).items():
            self._lists[list_name].columns[column_name] = ColumnDescriptor(name=column_name, kind=kind)
        return handle

    def items(self, list_name: str) -> list[dict[str, str]]:
        memory_list = self._lists.get(list_name)
        if memory_list is None:
            return []
        return [dict(values) for values in memory_list.items.values()]

    def open_session(self) -> StoreSession:
        return StoreSession()

    def resolve_list(self, session: StoreSession, list_name: str) -> ListHandle | None:
        memory_list = self._lists.get(list_name)
        return memory_list.handle if memory_list is not None else None

    def create_list(self, session: StoreSession, list_name: str) -> ListHandle:
        if list_name in self._lists:
            raise StoreRequestError(f"A list named '{list_name}' already exists.")
        handle = self._register_list(list_name)
        logger.info("Memory list created list=%s list_id=%s", list_name, handle.list_id)
        return handle

    def get_all_columns(self, session: StoreSession, handle: ListHandle) -> tuple[ColumnDescriptor, ...]:
        return tuple(self._require_list(handle).columns.values())

    def create_column(self, session: StoreSession, handle: ListHandle, column: ColumnDescriptor) -> None:
        memory_list = self._require_list(handle)
        if column.name in memory_list.columns:
            raise StoreRequestError(f"Column '{column.name}' already exists on list '{handle.title}'.")
        if not column.kind.is_writable:
            raise StoreRequestError(f"Column kind '{column.kind.value}' cannot be created by clients.")
        memory_list.columns[column.name] = column

    def stage_new_item(self, session: StoreSession, handle: ListHandle) -> StagedItem:
        self._require_list(handle)
        item = StagedItem(list_id=handle.list_id)
        session.add_pending(item)
        return item

    def commit(self, session: StoreSession) -> list[CommitResult]:
        results: list[CommitResult] = []
        for item in list(session.pending):
            results.append(self._commit_item(item))
        session.discard_pending()
        return results

    def read_item(self, session: StoreSession, handle: ListHandle, item_id: str | None) -> Record:
        memory_list = self._require_list(handle)
        if item_id is None or item_id not in memory_list.items:
            raise StoreItemNotFoundError(f"Item '{item_id}' does not exist in list '{handle.title}'.")
        return {"ID": item_id, **memory_list.items[item_id]}

    def _commit_item(self, item: StagedItem) -> CommitResult:
        memory_list = self._lists_by_id.get(item.list_id)
        if memory_list is None:
            return CommitResult(
                staged_key=item.staged_key,
                item_id=None,
                success=False,
                error=f"List '{item.list_id}' does not exist.",
            )

        stored: dict[str, str] = {}
        for column_name, wire_value in item.fields.items():
            column = memory_list.columns.get(column_name)
            if column is None or not column.kind.is_writable:
                return self._rejected(item, f"Column '{column_name}' does not exist or is read-only.")
            value = unescape_markup(wire_value)
            problem = _validate_value(value, column.kind)
            if problem is not None:
                return self._rejected(item, f"Column '{column_name}': {problem}")
            stored[column_name] = value

        item_id = str(memory_list.next_item_id)
        memory_list.next_item_id += 1
        memory_list.items[item_id] = stored
        item.item_id = item_id
        return CommitResult(staged_key=item.staged_key, item_id=item_id, success=True)

    @staticmethod
    def _rejected(item: StagedItem, error: str) -> CommitResult:
        return CommitResult(staged_key=item.staged_key, item_id=None, success=False, error=error)

    def _register_list(self, list_name: str) -> ListHandle:
        handle = ListHandle(list_id=str(uuid.uuid4()), title=list_name)
        memory_list = _MemoryList(
            handle=handle,
            columns={column.name: column for column in _BUILTIN_COLUMNS},
        )
        self._lists[list_name] = memory_list
        self._lists_by_id[handle.list_id] = memory_list
        return handle

    def _require_list(self, handle: ListHandle) -> _MemoryList:
        memory_list = self._lists_by_id.get(handle.list_id)
        if memory_list is None:
            raise StoreRequestError(f"List '{handle.title}' ({handle.list_id}) does not exist.")
        return memory_list


def _validate_value(value: str, kind: ColumnKind) -> str | None:
    """
    Return a problem description when ``value`` is not valid for ``kind``.
    """

    checks: dict[ColumnKind, Any] = {
        ColumnKind.NUMBER: _is_number,
        ColumnKind.CURRENCY: _is_decimal,
        ColumnKind.BOOLEAN: lambda text: text.strip().lower() in _BOOLEAN_WIRE_VALUES,
        ColumnKind.DATETIME: _is_wire_datetime,
        ColumnKind.GUID: _is_guid,
        ColumnKind.TEXT: lambda text: len(text) <= TEXT_COLUMN_MAX_LENGTH,
    }
    check = checks.get(kind)
    if check is None or check(value):
        return None
    return f"value '{value}' is not valid for a {kind.value} column."


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def _is_decimal(text: str) -> bool:
    try:
        Decimal(text)
    except InvalidOperation:
        return False
    return True


def _is_wire_datetime(text: str) -> bool:
    try:
        datetime.strptime(text, "%Y-%m-%dT%H:%M:%SZ")
    except ValueError:
        return False
    return True


def _is_guid(text: str) -> bool:
    try:
        uuid.UUID(text)
    except ValueError:
        return False
    return True
