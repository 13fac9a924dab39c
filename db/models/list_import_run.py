"""
db/models/list_import_run.py

Run history for list imports triggered through the API.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

_JSON_PAYLOAD = JSON().with_variant(JSONB(), "postgresql")


class ListImportRunStatus:
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class ListImportRun(Base, TimestampMixin):
    __tablename__ = "list_import_runs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    list_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Target list title as requested",
    )
    store: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="memory or sharepoint",
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ListImportRunStatus.PENDING,
    )
    rows_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rows_committed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rows_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    options_payload: Mapped[dict[str, Any] | None] = mapped_column(
        _JSON_PAYLOAD,
        nullable=True,
        comment="auto_create, quiet, error_mode, failed_row_policy",
    )
    summary_payload: Mapped[dict[str, Any] | None] = mapped_column(
        _JSON_PAYLOAD,
        nullable=True,
        comment="Serialized ListImportSummary",
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_list_import_runs_list_name", "list_name"),
        Index("ix_list_import_runs_status", "status"),
        Index("ix_list_import_runs_created_at", "created_at"),
    )
