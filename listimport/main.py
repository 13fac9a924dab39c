from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

logger = logging.getLogger(__name__)


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    database_url = os.getenv("LIST_IMPORT_DATABASE_URL", "").strip() or os.getenv("DATABASE_URL", "").strip()
    if not database_url:
        errors.append("No database URL configured. Set LIST_IMPORT_DATABASE_URL or DATABASE_URL.")

    store = os.getenv("LIST_IMPORT_STORE", "sharepoint").strip().lower()
    if store == "sharepoint":
        if not os.getenv("SHAREPOINT_SITE_URL", "").strip():
            errors.append("SHAREPOINT_SITE_URL is not set but LIST_IMPORT_STORE is 'sharepoint'.")
        has_token = bool(os.getenv("SHAREPOINT_ACCESS_TOKEN", "").strip())
        has_user = bool(os.getenv("SHAREPOINT_USERNAME", "").strip())
        if not has_token and not has_user:
            errors.append("Set SHAREPOINT_ACCESS_TOKEN or SHAREPOINT_USERNAME/SHAREPOINT_PASSWORD.")

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _verify_run_history_db() -> None:
    """
    Confirm the run-history database answers and holds the list_import_runs table.

    Raises RuntimeError otherwise; migrations are never applied here.
    """
    from sqlalchemy import inspect as sa_inspect
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    from db.models import ListImportRun
    from db.session import get_engine

    engine = get_engine()
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise RuntimeError("Run-history database unavailable.") from exc

    table_name = ListImportRun.__tablename__
    if not sa_inspect(engine).has_table(table_name):
        logger.critical("Run-history table missing table=%s. Run 'alembic upgrade head'.", table_name)
        raise RuntimeError(f"Table '{table_name}' is missing. Run migrations and restart.")


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    _verify_run_history_db()
    logger.info("Run-history database verified")
    yield


def create_app(*, validate_env: bool = True) -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    if validate_env:
        _validate_env()
    _configure_logging()

    application = FastAPI(
        title="List Import API",
        version="1.0.0",
        lifespan=_lifespan if validate_env else None,
    )

    from listimport.api.routers import list_import_router

    application.include_router(list_import_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application
