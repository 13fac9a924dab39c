"""
listimport/services/list_ingestion_service.py

Orchestration service for importing records into a remote list.

A run resolves the target list, optionally creates and provisions it from
the first record, then commits every record as its own item. Each row is a
separate round trip to the store; a failed row never rolls back earlier ones.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Iterable, Sequence

from listimport.config import get_list_import_settings
from listimport.domain.list_import import (
    FailedRowPolicy,
    ListImportOptions,
    ListImportSummary,
    UnknownFieldDropped,
)
from listimport.domain.list_item import CommitResult, Record, StagedItem, StoreSession
from listimport.domain.list_schema import ColumnDescriptor, ListHandle
from listimport.errors import ListNotFoundError, RowCommitError, SchemaProvisionError, StoreError
from listimport.mappers.item_mapper import ItemMapper
from listimport.services.error_channel import ErrorChannel
from listimport.services.schema_reconciler import SchemaReconciler
from listimport.stores import ListStore, get_list_store

logger = logging.getLogger(__name__)


class ListIngestionService:
    """
    Coordinates schema provisioning and per-row commits against a ListStore.
    """

    def __init__(
        self,
        *,
        store: ListStore,
        reconciler: SchemaReconciler | None = None,
        mapper: ItemMapper | None = None,
    ) -> None:
        self._store = store
        self._reconciler = reconciler or SchemaReconciler()
        self._mapper = mapper or ItemMapper()

    @property
    def store(self) -> ListStore:
        return self._store

    def ingest(
        self,
        *,
        session: StoreSession,
        list_name: str,
        records: Iterable[Record],
        options: ListImportOptions | None = None,
        errors: ErrorChannel | None = None,
    ) -> ListImportSummary:
        """
        Import ``records`` into ``list_name`` and return the run summary.

        Errors go through ``errors``: in strict mode the first one is raised,
        in soft mode it is collected on the summary and the run continues
        where the failure allows. Store failures while resolving or creating
        the list propagate as StoreError.
        """

        options = options or ListImportOptions()
        channel = errors or ErrorChannel()
        rows: Sequence[Record] = list(records)
        summary = ListImportSummary(list_name=list_name)

        handle = self._store.resolve_list(session, list_name)
        if handle is None and not options.auto_create:
            summary.aborted = True
            try:
                channel.report(ListNotFoundError(list_name))
            finally:
                _collect_channel(summary, channel)
            return summary

        try:
            if handle is None:
                handle, columns = self._create_and_provision(session, list_name, rows, summary, channel)
            else:
                columns = self._store.get_columns(session, handle)
            summary.list_id = handle.list_id

            for row_index, record in enumerate(rows):
                self._ingest_row(session, handle, columns, record, row_index, options, summary, channel)
        finally:
            _collect_channel(summary, channel)

        logger.info(
            "List import completed list=%s list_created=%s rows=%s committed=%s failed=%s dropped_fields=%s",
            list_name,
            summary.list_created,
            len(rows),
            summary.rows_committed,
            summary.rows_failed,
            len(summary.diagnostics),
        )
        return summary

    def _create_and_provision(
        self,
        session: StoreSession,
        list_name: str,
        rows: Sequence[Record],
        summary: ListImportSummary,
        channel: ErrorChannel,
    ) -> tuple[ListHandle, tuple[ColumnDescriptor, ...]]:
        handle = self._store.create_list(session, list_name)
        summary.list_created = True
        summary.list_id = handle.list_id
        logger.info("List created list=%s list_id=%s", list_name, handle.list_id)

        if rows:
            existing_columns = self._store.get_all_columns(session, handle)
            try:
                summary.columns_created = self._reconciler.reconcile(
                    session=session,
                    store=self._store,
                    handle=handle,
                    existing_columns=existing_columns,
                    sample=rows[0],
                )
            except SchemaProvisionError as exc:
                summary.columns_created = list(exc.created)
                channel.report(exc)

        return handle, self._store.get_columns(session, handle)

    def _ingest_row(
        self,
        session: StoreSession,
        handle: ListHandle,
        columns: Sequence[ColumnDescriptor],
        record: Record,
        row_index: int,
        options: ListImportOptions,
        summary: ListImportSummary,
        channel: ErrorChannel,
    ) -> None:
        staged, result = self._commit_row(session, handle, columns, record, row_index, channel)

        if not result.success:
            if options.failed_row_policy is FailedRowPolicy.SKIP:
                session.discard_pending()
                summary.commit_results.append(result)
                return
            result = self._flush_after_failure(session, staged, result, row_index, channel)

        summary.commit_results.append(result)
        if options.quiet:
            return

        confirmation = self._confirm(session, handle, result, row_index, channel)
        if confirmation is not None:
            summary.confirmations.append(confirmation)

    def _commit_row(
        self,
        session: StoreSession,
        handle: ListHandle,
        columns: Sequence[ColumnDescriptor],
        record: Record,
        row_index: int,
        channel: ErrorChannel,
    ) -> tuple[StagedItem | None, CommitResult]:
        staged: StagedItem | None = None
        try:
            staged = self._store.stage_new_item(session, handle)
            mapped = self._mapper.map_row(record, columns, staged=staged)
            for field_name in mapped.dropped_fields:
                channel.warn(UnknownFieldDropped(row_index=row_index, field_name=field_name))
            results = self._store.commit(session)
        except StoreError as exc:
            failure = CommitResult(
                staged_key=staged.staged_key if staged is not None else "",
                item_id=None,
                success=False,
                error=str(exc),
            )
            channel.report(RowCommitError(row_index=row_index, reason=str(exc)))
            return staged, failure

        result = _result_for(results, staged)
        if result is None:
            result = CommitResult(
                staged_key=staged.staged_key,
                item_id=None,
                success=False,
                error="Store returned no result for the staged item.",
            )
        if not result.success:
            channel.report(RowCommitError(row_index=row_index, reason=result.error or "commit rejected"))
        return staged, result

    def _flush_after_failure(
        self,
        session: StoreSession,
        staged: StagedItem | None,
        result: CommitResult,
        row_index: int,
        channel: ErrorChannel,
    ) -> CommitResult:
        try:
            results = self._store.commit(session)
        except StoreError as exc:
            # Drop the failed row's item so the next row's commit does not write it.
            session.discard_pending()
            channel.report(RowCommitError(row_index=row_index, reason=str(exc), stage="flush"))
            return result

        retried = _result_for(results, staged) if staged is not None else None
        if retried is not None and retried.success:
            logger.info("Row committed on flush row=%s item_id=%s", row_index, retried.item_id)
            return retried
        return result

    def _confirm(
        self,
        session: StoreSession,
        handle: ListHandle,
        result: CommitResult,
        row_index: int,
        channel: ErrorChannel,
    ) -> Record | None:
        try:
            return self._store.read_item(session, handle, result.item_id)
        except StoreError as exc:
            channel.report(RowCommitError(row_index=row_index, reason=str(exc), stage="confirm"))
            return None


def _result_for(results: Sequence[CommitResult], staged: StagedItem) -> CommitResult | None:
    for result in results:
        if result.staged_key == staged.staged_key:
            return result
    return None


def _collect_channel(summary: ListImportSummary, channel: ErrorChannel) -> None:
    summary.errors = [str(error) for error in channel.errors]
    summary.diagnostics = list(channel.diagnostics)


@lru_cache(maxsize=1)
def get_list_ingestion_service() -> ListIngestionService:
    """
    Build and cache the list ingestion service for the configured store.
    """

    settings = get_list_import_settings()
    return ListIngestionService(
        store=get_list_store(),
        reconciler=SchemaReconciler(long_text_threshold=settings.long_text_threshold),
    )
