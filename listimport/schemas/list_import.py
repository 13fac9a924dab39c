"""
Schemas for list import trigger and run-history endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from listimport.domain.list_import import FailedRowPolicy


class ListImportRequest(BaseModel):
    records: list[dict[str, Any]] = Field(default_factory=list)
    auto_create: bool | None = None
    quiet: bool | None = None
    strict: bool | None = None
    failed_row_policy: FailedRowPolicy | None = None
    parse_dates: bool = Field(
        default=True,
        description="Promote ISO-8601 strings to datetimes so they import as DateTime columns",
    )


class ColumnResponse(BaseModel):
    name: str
    kind: str


class ListImportResponse(BaseModel):
    run_id: UUID
    status: str
    list_name: str
    list_id: str | None = None
    list_created: bool = False
    columns_created: list[ColumnResponse] = Field(default_factory=list)
    rows_committed: int = 0
    rows_failed: int = 0
    item_ids: list[str | None] = Field(default_factory=list)
    confirmations: list[dict[str, Any]] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    dropped_fields: list[str] = Field(default_factory=list)


class ListImportRunResponse(BaseModel):
    run_id: UUID
    list_name: str
    store: str
    status: str
    rows_total: int
    rows_committed: int
    rows_failed: int
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    options_payload: dict[str, Any] | None = None
    summary_payload: dict[str, Any] | None = None
    error_message: str | None = None


class ListImportRunListResponse(BaseModel):
    runs: list[ListImportRunResponse] = Field(default_factory=list)
