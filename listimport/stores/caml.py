"""
listimport/stores/caml.py

Markup builders and response parsers for the SharePoint Lists web service.

Item values arrive here already escaped by the field coercer, so batch
markup is assembled from strings rather than through ElementTree, which
would escape them a second time.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator, Sequence

from listimport.domain.list_item import StagedItem
from listimport.domain.list_schema import ColumnDescriptor, ColumnKind
from listimport.mappers.field_coercer import escape_markup

SOAP_NAMESPACE = "http://schemas.microsoft.com/sharepoint/soap/"
ROW_ATTRIBUTE_PREFIX = "ows_"
SUCCESS_ERROR_CODE = "0x00000000"
LIST_NOT_FOUND_ERROR_CODE = "0x82000006"

_ENVELOPE_TEMPLATE = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<soap:Envelope xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    'xmlns:xsd="http://www.w3.org/2001/XMLSchema" '
    'xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">'
    "<soap:Body>"
    '<{action} xmlns="{namespace}">{parameters}</{action}>'
    "</soap:Body>"
    "</soap:Envelope>"
)

_FIELD_TYPE_BY_KIND: dict[ColumnKind, str] = {
    ColumnKind.TEXT: "Text",
    ColumnKind.NOTE: "Note",
    ColumnKind.NUMBER: "Number",
    ColumnKind.DATETIME: "DateTime",
    ColumnKind.BOOLEAN: "Boolean",
    ColumnKind.CURRENCY: "Currency",
    ColumnKind.GUID: "Guid",
}

_KIND_BY_FIELD_TYPE: dict[str, ColumnKind] = {
    **{field_type: kind for kind, field_type in _FIELD_TYPE_BY_KIND.items()},
    "Computed": ColumnKind.COMPUTED,
    "Counter": ColumnKind.COMPUTED,
    "Calculated": ColumnKind.COMPUTED,
    "Integer": ColumnKind.NUMBER,
    "Choice": ColumnKind.TEXT,
    "URL": ColumnKind.TEXT,
}


def build_envelope(action: str, parameters: dict[str, str]) -> str:
    """
    Wrap parameters in a SOAP envelope. Values must already be markup.
    """

    body = "".join(f"<{name}>{value}</{name}>" for name, value in parameters.items())
    return _ENVELOPE_TEMPLATE.format(action=action, namespace=SOAP_NAMESPACE, parameters=body)


def encode_internal_name(display_name: str) -> str:
    """
    Encode a display name the way SharePoint derives internal field names.
    """

    encoded: list[str] = []
    for char in display_name:
        if char.isascii() and (char.isalnum() or char == "_"):
            encoded.append(char)
        else:
            encoded.append(f"_x{ord(char):04x}_")
    return "".join(encoded)


def build_new_field_markup(column: ColumnDescriptor) -> str:
    field_type = _FIELD_TYPE_BY_KIND[column.kind]
    display_name = escape_markup(column.name)
    internal_name = escape_markup(column.internal_name or encode_internal_name(column.name))
    return (
        '<Fields><Method ID="1">'
        f'<Field Type="{field_type}" DisplayName="{display_name}" Name="{internal_name}" />'
        "</Method></Fields>"
    )


def build_new_items_batch(items: Sequence[StagedItem], wire_names: dict[str, str]) -> str:
    """
    Build an UpdateListItems batch with one ``New`` method per staged item.

    Method IDs are 1-based positions in ``items``.
    """

    methods: list[str] = []
    for position, item in enumerate(items, start=1):
        fields = ['<Field Name="ID">New</Field>']
        for column_name, wire_value in item.fields.items():
            field_name = escape_markup(wire_names.get(column_name, column_name))
            fields.append(f'<Field Name="{field_name}">{wire_value}</Field>')
        methods.append(f'<Method ID="{position}" Cmd="New">{"".join(fields)}</Method>')
    return f'<Batch OnError="Continue">{"".join(methods)}</Batch>'


def build_item_query(item_id: str) -> str:
    return (
        "<Query><Where><Eq>"
        '<FieldRef Name="ID" />'
        f'<Value Type="Counter">{escape_markup(item_id)}</Value>'
        "</Eq></Where></Query>"
    )


def local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def iter_elements(root: ET.Element, name: str) -> Iterator[ET.Element]:
    for element in root.iter():
        if local_name(element.tag) == name:
            yield element


def find_element(root: ET.Element, name: str) -> ET.Element | None:
    return next(iter_elements(root, name), None)


def child_text(node: ET.Element, name: str) -> str | None:
    for child in list(node):
        if local_name(child.tag) == name:
            return child.text
    return None


def parse_fault(root: ET.Element) -> tuple[str | None, str] | None:
    """
    Return ``(error_code, message)`` for a SOAP fault document, else None.
    """

    fault = find_element(root, "Fault")
    if fault is None:
        return None
    error_code_element = find_element(fault, "errorcode")
    error_string_element = find_element(fault, "errorstring")
    message = (
        error_string_element.text
        if error_string_element is not None and error_string_element.text
        else child_text(fault, "faultstring") or "SOAP fault"
    )
    error_code = error_code_element.text.strip() if error_code_element is not None and error_code_element.text else None
    return error_code, message.strip()


def parse_columns(list_element: ET.Element) -> list[ColumnDescriptor]:
    """
    Read the field definitions of a ``List`` element.

    Hidden fields are skipped. Read-only fields and field types without a
    writable counterpart come back as Computed. A field whose display name
    is already taken (``LinkTitle`` shows as "Title") is named by its
    internal name instead.
    """

    columns: list[ColumnDescriptor] = []
    seen: set[str] = set()
    for field in iter_elements(list_element, "Field"):
        internal_name = field.get("Name")
        if not internal_name or field.get("Hidden", "").upper() == "TRUE":
            continue
        display_name = field.get("DisplayName") or internal_name
        if display_name in seen:
            display_name = internal_name
        if display_name in seen:
            continue
        seen.add(display_name)
        kind = _KIND_BY_FIELD_TYPE.get(field.get("Type", ""), ColumnKind.COMPUTED)
        if field.get("ReadOnly", "").upper() == "TRUE":
            kind = ColumnKind.COMPUTED
        columns.append(ColumnDescriptor(name=display_name, kind=kind, internal_name=internal_name))
    return columns


def parse_batch_results(root: ET.Element) -> dict[int, tuple[str | None, str | None]]:
    """
    Map each batch method ID to ``(item_id, error)``; exactly one is set.
    """

    outcomes: dict[int, tuple[str | None, str | None]] = {}
    for result in iter_elements(root, "Result"):
        method_id_raw = (result.get("ID") or "").split(",", 1)[0]
        try:
            method_id = int(method_id_raw)
        except ValueError:
            continue
        error_code = (child_text(result, "ErrorCode") or "").strip()
        if error_code and error_code != SUCCESS_ERROR_CODE:
            error_text = (child_text(result, "ErrorText") or "").strip()
            outcomes[method_id] = (None, error_text or f"error code {error_code}")
            continue
        row = find_element(result, "row")
        item_id = row.get(f"{ROW_ATTRIBUTE_PREFIX}ID") if row is not None else None
        if item_id is None:
            outcomes[method_id] = (None, "Store did not return an item ID.")
        else:
            outcomes[method_id] = (item_id, None)
    return outcomes


def parse_new_field_error(root: ET.Element) -> str | None:
    new_fields = find_element(root, "NewFields")
    if new_fields is None:
        return None
    for method in iter_elements(new_fields, "Method"):
        error_code = (child_text(method, "ErrorCode") or "").strip()
        if error_code and error_code != SUCCESS_ERROR_CODE:
            return (child_text(method, "ErrorText") or "").strip() or f"error code {error_code}"
    return None


def parse_row_attributes(row: ET.Element) -> dict[str, str]:
    return {
        name[len(ROW_ATTRIBUTE_PREFIX):]: value
        for name, value in row.attrib.items()
        if name.startswith(ROW_ATTRIBUTE_PREFIX)
    }
