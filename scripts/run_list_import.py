"""
Import records from a CSV or JSON file into a remote list from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from listimport.config import get_list_import_settings
from listimport.domain.list_import import ErrorMode, FailedRowPolicy, ListImportOptions
from listimport.errors import ListImportError, StoreError
from listimport.readers import RecordReadError, read_records
from listimport.services.error_channel import ErrorChannel
from listimport.services.list_ingestion_service import ListIngestionService
from listimport.stores.factory import build_list_store


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import records into a remote list.")
    parser.add_argument("--list", dest="list_name", required=True, help="Target list title.")
    parser.add_argument("--input", dest="input_path", required=True, help="Path to a .csv or .json file.")
    parser.add_argument(
        "--auto-create",
        action="store_true",
        default=None,
        help="Create the list and its columns from the first record when it does not exist.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        default=None,
        help="Skip reading each committed item back.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Stop at the first error instead of collecting errors.",
    )
    parser.add_argument(
        "--flush-failed-rows",
        action="store_true",
        default=None,
        help="After a failed row, flush the session again and attempt the read-back anyway.",
    )
    parser.add_argument(
        "--store",
        choices=("sharepoint", "memory"),
        default=None,
        help="Store backend; defaults to LIST_IMPORT_STORE.",
    )
    parser.add_argument(
        "--username",
        default=None,
        help="SharePoint user name; the password is read from SHAREPOINT_PASSWORD.",
    )
    parser.add_argument(
        "--parse-dates",
        nargs="*",
        default=(),
        metavar="COLUMN",
        help="CSV columns to parse as dates.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if args.username:
        os.environ["SHAREPOINT_USERNAME"] = args.username

    settings = get_list_import_settings()
    options = ListImportOptions(
        auto_create=settings.auto_create if args.auto_create is None else args.auto_create,
        quiet=settings.quiet if args.quiet is None else args.quiet,
        failed_row_policy=(
            FailedRowPolicy.FLUSH_AND_CONFIRM if args.flush_failed_rows else settings.failed_row_policy
        ),
    )
    error_mode = ErrorMode.STRICT if args.strict else settings.error_mode

    try:
        records = read_records(args.input_path, parse_dates=args.parse_dates)
    except RecordReadError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    try:
        store = build_list_store(args.store or settings.store)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    service = ListIngestionService(store=store)
    session = store.open_session()
    try:
        summary = service.ingest(
            session=session,
            list_name=args.list_name,
            records=records,
            options=options,
            errors=ErrorChannel(error_mode),
        )
    except (ListImportError, StoreError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    finally:
        session.close()

    payload = summary.to_dict()
    payload["confirmations"] = [dict(record) for record in summary.confirmations]
    print(json.dumps(payload, indent=2, default=str))
    if summary.aborted:
        return 2
    return 1 if summary.errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
