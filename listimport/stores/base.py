"""
listimport/stores/base.py

Store collaborator interface for remote lists.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from listimport.domain.list_item import CommitResult, Record, StagedItem, StoreSession
from listimport.domain.list_schema import ColumnDescriptor, ListHandle


class ListStore(ABC):
    """
    Remote list store operations consumed by the import service.

    Every call receives the run's StoreSession explicitly. Transport and
    server failures surface as StoreError subclasses.
    """

    name: str

    @abstractmethod
    def open_session(self) -> StoreSession:
        """
        Create the context shared by every call of one import run.
        """

    @abstractmethod
    def resolve_list(self, session: StoreSession, list_name: str) -> ListHandle | None:
        """
        Return a handle for ``list_name`` or None when the list does not exist.
        """

    @abstractmethod
    def create_list(self, session: StoreSession, list_name: str) -> ListHandle:
        ...

    @abstractmethod
    def get_all_columns(self, session: StoreSession, handle: ListHandle) -> tuple[ColumnDescriptor, ...]:
        """
        Return every visible column, read-only (Computed) ones included.
        """

    def get_columns(self, session: StoreSession, handle: ListHandle) -> tuple[ColumnDescriptor, ...]:
        """
        Return the list's writable columns; Computed columns are excluded.
        """

        return tuple(column for column in self.get_all_columns(session, handle) if column.kind.is_writable)

    @abstractmethod
    def create_column(self, session: StoreSession, handle: ListHandle, column: ColumnDescriptor) -> None:
        """
        Add one column. Raises StoreRequestError when the store refuses it.
        """

    @abstractmethod
    def stage_new_item(self, session: StoreSession, handle: ListHandle) -> StagedItem:
        """
        Register a new pending item on the session and return it for filling.
        """

    @abstractmethod
    def commit(self, session: StoreSession) -> list[CommitResult]:
        """
        Flush all pending staged items, one result per item in staging order.

        Per-item rejections come back as unsuccessful results. A transport
        failure raises and leaves the pending items on the session.
        """

    @abstractmethod
    def read_item(self, session: StoreSession, handle: ListHandle, item_id: str | None) -> Record:
        """
        Read one committed item back. Raises StoreItemNotFoundError when absent.
        """
