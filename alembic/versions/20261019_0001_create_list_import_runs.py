"""create list_import_runs table

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "list_import_runs",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("list_name", sa.String(length=255), nullable=False),
        sa.Column("store", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("rows_total", sa.Integer(), nullable=False),
        sa.Column("rows_committed", sa.Integer(), nullable=False),
        sa.Column("rows_failed", sa.Integer(), nullable=False),
        sa.Column("options_payload", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("summary_payload", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_list_import_runs"),
    )
    op.create_index("ix_list_import_runs_created_at", "list_import_runs", ["created_at"], unique=False)
    op.create_index("ix_list_import_runs_list_name", "list_import_runs", ["list_name"], unique=False)
    op.create_index("ix_list_import_runs_status", "list_import_runs", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_list_import_runs_status", table_name="list_import_runs")
    op.drop_index("ix_list_import_runs_list_name", table_name="list_import_runs")
    op.drop_index("ix_list_import_runs_created_at", table_name="list_import_runs")
    op.drop_table("list_import_runs")
