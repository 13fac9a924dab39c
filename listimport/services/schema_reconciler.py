"""
listimport/services/schema_reconciler.py

Additive column provisioning from a sample record.
"""

from __future__ import annotations

import logging
from typing import Iterable

from listimport.domain.list_item import RESERVED_FIELD_NAMES, Record, StoreSession
from listimport.domain.list_schema import ColumnDescriptor, ListHandle
from listimport.errors import SchemaProvisionError, StoreError
from listimport.mappers.type_mapper import DEFAULT_LONG_TEXT_THRESHOLD, infer_value_kind
from listimport.stores.base import ListStore

logger = logging.getLogger(__name__)


class SchemaReconciler:
    """
    Diffs a sample record against a list's columns and creates what is missing.

    Existing columns, read-only ones included, are matched by display or
    internal name (case-sensitive). They are never inspected or modified,
    even when the inferred kind disagrees.
    """

    def __init__(
        self,
        *,
        long_text_threshold: int = DEFAULT_LONG_TEXT_THRESHOLD,
        reserved_fields: Iterable[str] = RESERVED_FIELD_NAMES,
    ) -> None:
        self._long_text_threshold = long_text_threshold
        self._reserved_fields = frozenset(reserved_fields)

    def plan_new_columns(
        self,
        existing_columns: Iterable[ColumnDescriptor],
        sample: Record,
    ) -> list[ColumnDescriptor]:
        """
        Return one descriptor per sample field absent from ``existing_columns``,
        in the sample's field order.
        """

        existing_names: set[str] = set()
        for column in existing_columns:
            existing_names.add(column.name)
            if column.internal_name:
                existing_names.add(column.internal_name)
        planned: list[ColumnDescriptor] = []
        for field_name, value in sample.items():
            if field_name in existing_names or field_name in self._reserved_fields:
                continue
            kind = infer_value_kind(value, long_text_threshold=self._long_text_threshold)
            planned.append(ColumnDescriptor(name=field_name, kind=kind))
        return planned

    def reconcile(
        self,
        *,
        session: StoreSession,
        store: ListStore,
        handle: ListHandle,
        existing_columns: Iterable[ColumnDescriptor],
        sample: Record,
    ) -> list[ColumnDescriptor]:
        """
        Create missing columns one at a time and return the ones created.

        Raises SchemaProvisionError on the first refused column; columns after
        it are not attempted. The partial list is on ``error.created``.
        """

        created: list[ColumnDescriptor] = []
        for column in self.plan_new_columns(existing_columns, sample):
            try:
                store.create_column(session, handle, column)
            except StoreError as exc:
                raise SchemaProvisionError(
                    column_name=column.name,
                    kind=column.kind.value,
                    reason=str(exc),
                    created=created,
                ) from exc
            logger.info(
                "Column provisioned list=%s column=%s kind=%s",
                handle.title,
                column.name,
                column.kind.value,
            )
            created.append(column)
        return created
