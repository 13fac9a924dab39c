"""
listimport/mappers/item_mapper.py

Maps one input record onto a staged list item using a schema snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from listimport.domain.list_item import RESERVED_FIELD_NAMES, Record, StagedItem
from listimport.domain.list_schema import ColumnDescriptor
from listimport.mappers.field_coercer import coerce_field


@dataclass(frozen=True)
class MappedRow:
    """
    Staged item produced for one record plus the fields it could not place.
    """

    item: StagedItem
    dropped_fields: tuple[str, ...] = field(default_factory=tuple)


class ItemMapper:
    """
    Projects records onto staged items.

    Reserved fields are skipped silently, null values are omitted, and fields
    with no writable column are dropped and reported on the result.
    """

    def __init__(self, *, reserved_fields: Iterable[str] = RESERVED_FIELD_NAMES) -> None:
        self._reserved_fields = frozenset(reserved_fields)

    def map_row(
        self,
        record: Record,
        columns: Iterable[ColumnDescriptor],
        *,
        staged: StagedItem | None = None,
    ) -> MappedRow:
        item = staged if staged is not None else StagedItem(list_id="")
        column_lookup = {column.name: column for column in columns if column.kind.is_writable}
        dropped: list[str] = []

        for field_name, value in record.items():
            if field_name in self._reserved_fields:
                continue
            column = column_lookup.get(field_name)
            if column is None:
                dropped.append(field_name)
                continue
            if value is None:
                continue
            item.set_field(column.name, coerce_field(value, column.kind))

        return MappedRow(item=item, dropped_fields=tuple(dropped))


def map_row(record: Record, columns: Iterable[ColumnDescriptor]) -> StagedItem:
    """
    Build a fresh staged item for ``record``; unknown fields are discarded.
    """

    return ItemMapper().map_row(record, columns).item
