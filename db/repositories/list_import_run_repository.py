"""
db/repositories/list_import_run_repository.py

Repository for list import run lifecycle persistence and status lookup.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.base import utcnow
from db.models.list_import_run import ListImportRun, ListImportRunStatus


class ListImportRunRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_run(
        self,
        *,
        list_name: str,
        store: str,
        rows_total: int,
        options_payload: dict[str, Any] | None = None,
    ) -> ListImportRun:
        run = ListImportRun(
            list_name=list_name,
            store=store,
            status=ListImportRunStatus.PENDING,
            rows_total=rows_total,
            options_payload=options_payload,
        )
        self._session.add(run)
        self._session.flush()
        self._session.refresh(run)
        return run

    def get_run(self, run_id: uuid.UUID) -> ListImportRun | None:
        return self._session.get(ListImportRun, run_id)

    def list_runs(
        self,
        *,
        limit: int = 100,
        list_name: str | None = None,
        status: str | None = None,
    ) -> list[ListImportRun]:
        stmt: Select[tuple[ListImportRun]] = select(ListImportRun)

        if list_name:
            stmt = stmt.where(ListImportRun.list_name == list_name)
        if status:
            stmt = stmt.where(ListImportRun.status == status)

        stmt = stmt.order_by(ListImportRun.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def mark_running(self, *, run_id: uuid.UUID) -> ListImportRun | None:
        run = self.get_run(run_id)
        if run is None:
            return None
        run.status = ListImportRunStatus.RUNNING
        run.started_at = utcnow()
        run.completed_at = None
        run.error_message = None
        return run

    def mark_completed(
        self,
        *,
        run_id: uuid.UUID,
        rows_committed: int,
        rows_failed: int,
        summary_payload: dict[str, Any] | None = None,
    ) -> ListImportRun | None:
        """
        Close a run. A run with any failed row is recorded as partial.
        """

        run = self.get_run(run_id)
        if run is None:
            return None
        run.status = ListImportRunStatus.PARTIAL if rows_failed else ListImportRunStatus.COMPLETED
        run.rows_committed = rows_committed
        run.rows_failed = rows_failed
        run.completed_at = utcnow()
        run.summary_payload = summary_payload
        run.error_message = None
        return run

    def mark_failed(
        self,
        *,
        run_id: uuid.UUID,
        error_message: str,
        summary_payload: dict[str, Any] | None = None,
    ) -> ListImportRun | None:
        run = self.get_run(run_id)
        if run is None:
            return None
        run.status = ListImportRunStatus.FAILED
        run.completed_at = utcnow()
        run.error_message = error_message
        if summary_payload is not None:
            run.summary_payload = summary_payload
            run.rows_committed = int(summary_payload.get("rows_committed", 0))
            run.rows_failed = int(summary_payload.get("rows_failed", 0))
        return run
