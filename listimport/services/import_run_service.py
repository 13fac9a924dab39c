"""
listimport/services/import_run_service.py

Runs a list import and records its lifecycle in run history.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Sequence

from sqlalchemy.orm import Session

from db.models.list_import_run import ListImportRun
from db.repositories.list_import_run_repository import ListImportRunRepository
from listimport.domain.list_import import ErrorMode, ListImportOptions, ListImportSummary
from listimport.domain.list_item import Record
from listimport.errors import ListImportError, ListNotFoundError, StoreError
from listimport.services.error_channel import ErrorChannel
from listimport.services.list_ingestion_service import ListIngestionService, get_list_ingestion_service

logger = logging.getLogger(__name__)


class ListImportRunError(RuntimeError):
    """
    Raised when a tracked run fails as a whole; carries the persisted run.
    """

    def __init__(self, message: str, *, run: ListImportRun, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.run = run
        self.cause = cause

    @property
    def list_not_found(self) -> bool:
        return isinstance(self.cause, ListNotFoundError)

    @property
    def store_unavailable(self) -> bool:
        return isinstance(self.cause, StoreError)


@dataclass(frozen=True)
class TrackedImport:
    run: ListImportRun
    summary: ListImportSummary


class ListImportRunService:
    """
    Wraps ListIngestionService with run-history persistence.
    """

    def __init__(self, *, ingestion_service: ListIngestionService) -> None:
        self._ingestion_service = ingestion_service

    def run_import(
        self,
        *,
        db: Session,
        list_name: str,
        records: Sequence[Record],
        options: ListImportOptions,
        error_mode: ErrorMode,
    ) -> TrackedImport:
        """
        Execute one import and persist its outcome.

        Raises ListImportRunError when the run aborts (list missing, strict-mode
        error, or store failure); the run is marked failed before raising.
        """

        repository = ListImportRunRepository(db)
        with db.begin():
            run = repository.create_run(
                list_name=list_name,
                store=self._ingestion_service.store.name,
                rows_total=len(records),
                options_payload={
                    "auto_create": options.auto_create,
                    "quiet": options.quiet,
                    "error_mode": error_mode.value,
                    "failed_row_policy": options.failed_row_policy.value,
                },
            )
            repository.mark_running(run_id=run.id)

        session = self._ingestion_service.store.open_session()
        try:
            summary = self._ingestion_service.ingest(
                session=session,
                list_name=list_name,
                records=records,
                options=options,
                errors=ErrorChannel(error_mode),
            )
        except (ListImportError, StoreError) as exc:
            logger.error("List import run failed run_id=%s list=%s error=%s", run.id, list_name, exc)
            with db.begin():
                repository.mark_failed(run_id=run.id, error_message=str(exc))
            raise ListImportRunError(str(exc), run=run, cause=exc) from exc
        finally:
            session.close()

        if summary.aborted:
            message = summary.errors[0] if summary.errors else "List import aborted."
            with db.begin():
                repository.mark_failed(run_id=run.id, error_message=message, summary_payload=summary.to_dict())
            raise ListImportRunError(message, run=run, cause=ListNotFoundError(list_name))

        with db.begin():
            repository.mark_completed(
                run_id=run.id,
                rows_committed=summary.rows_committed,
                rows_failed=summary.rows_failed,
                summary_payload=summary.to_dict(),
            )
        return TrackedImport(run=run, summary=summary)


@lru_cache(maxsize=1)
def get_list_import_run_service() -> ListImportRunService:
    return ListImportRunService(ingestion_service=get_list_ingestion_service())
