"""
listimport/mappers package marker.
"""

from listimport.mappers.field_coercer import coerce_field, escape_markup, format_utc_datetime
from listimport.mappers.item_mapper import ItemMapper, MappedRow, map_row
from listimport.mappers.type_mapper import classify_host_value, infer_column_kind, infer_value_kind

__all__ = [
    "ItemMapper",
    "MappedRow",
    "classify_host_value",
    "coerce_field",
    "escape_markup",
    "format_utc_datetime",
    "infer_column_kind",
    "infer_value_kind",
    "map_row",
]
