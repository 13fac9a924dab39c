"""
List import trigger and run-history endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from db.models.list_import_run import ListImportRun
from db.repositories.list_import_run_repository import ListImportRunRepository
from db.session import get_db
from listimport.config import ListImportSettings, get_list_import_settings
from listimport.domain.list_import import ErrorMode, ListImportOptions
from listimport.readers import promote_iso_datetimes
from listimport.schemas.list_import import (
    ColumnResponse,
    ListImportRequest,
    ListImportResponse,
    ListImportRunListResponse,
    ListImportRunResponse,
)
from listimport.services.import_run_service import (
    ListImportRunError,
    ListImportRunService,
    get_list_import_run_service,
)

router = APIRouter(tags=["list-import"])


@router.post(
    "/lists/{list_name}/items",
    status_code=status.HTTP_201_CREATED,
    response_model=ListImportResponse,
)
def import_list_items(
    list_name: str,
    payload: ListImportRequest,
    db: Session = Depends(get_db),
    run_service: ListImportRunService = Depends(get_list_import_run_service),
    settings: ListImportSettings = Depends(get_list_import_settings),
) -> ListImportResponse:
    if not payload.records:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one record is required.",
        )

    records = [promote_iso_datetimes(record) for record in payload.records] if payload.parse_dates else payload.records
    options = ListImportOptions(
        auto_create=settings.auto_create if payload.auto_create is None else payload.auto_create,
        quiet=settings.quiet if payload.quiet is None else payload.quiet,
        failed_row_policy=payload.failed_row_policy or settings.failed_row_policy,
    )
    if payload.strict is None:
        error_mode = settings.error_mode
    else:
        error_mode = ErrorMode.STRICT if payload.strict else ErrorMode.SOFT

    try:
        tracked = run_service.run_import(
            db=db,
            list_name=list_name,
            records=records,
            options=options,
            error_mode=error_mode,
        )
    except ListImportRunError as exc:
        if exc.list_not_found:
            status_code = status.HTTP_404_NOT_FOUND
        elif exc.store_unavailable:
            status_code = status.HTTP_502_BAD_GATEWAY
        else:
            status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        raise HTTPException(
            status_code=status_code,
            detail={"run_id": str(exc.run.id), "error": str(exc)},
        ) from exc

    summary = tracked.summary.to_dict()
    return ListImportResponse(
        run_id=tracked.run.id,
        status=tracked.run.status,
        list_name=summary["list_name"],
        list_id=summary["list_id"],
        list_created=summary["list_created"],
        columns_created=[ColumnResponse(**column) for column in summary["columns_created"]],
        rows_committed=summary["rows_committed"],
        rows_failed=summary["rows_failed"],
        item_ids=summary["item_ids"],
        confirmations=[dict(record) for record in tracked.summary.confirmations],
        errors=summary["errors"],
        dropped_fields=summary["dropped_fields"],
    )


@router.get("/imports/{run_id}", response_model=ListImportRunResponse)
def get_import_run(
    run_id: UUID,
    db: Session = Depends(get_db),
) -> ListImportRunResponse:
    run = ListImportRunRepository(db).get_run(run_id)
    if run is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"List import run not found: {run_id}",
        )
    return _to_run_response(run)


@router.get("/imports", response_model=ListImportRunListResponse)
def list_import_runs(
    list_name: str | None = Query(default=None, description="Optional list title filter"),
    status_filter: str | None = Query(default=None, alias="status", description="Optional status filter"),
    limit: int = Query(default=100, ge=1, le=500, description="Max runs returned"),
    db: Session = Depends(get_db),
) -> ListImportRunListResponse:
    runs = ListImportRunRepository(db).list_runs(limit=limit, list_name=list_name, status=status_filter)
    return ListImportRunListResponse(runs=[_to_run_response(run) for run in runs])


def _to_run_response(run: ListImportRun) -> ListImportRunResponse:
    return ListImportRunResponse(
        run_id=run.id,
        list_name=run.list_name,
        store=run.store,
        status=run.status,
        rows_total=run.rows_total,
        rows_committed=run.rows_committed,
        rows_failed=run.rows_failed,
        created_at=run.created_at,
        updated_at=run.updated_at,
        started_at=run.started_at,
        completed_at=run.completed_at,
        options_payload=run.options_payload,
        summary_payload=run.summary_payload,
        error_message=run.error_message,
    )
