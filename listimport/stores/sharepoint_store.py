"""
listimport/stores/sharepoint_store.py

ListStore backed by the SharePoint Lists web service (``_vti_bin/Lists.asmx``).
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

import requests

from listimport.config import SharePointSettings, StoreHTTPSettings
from listimport.domain.list_item import CommitResult, Record, StagedItem, StoreSession
from listimport.domain.list_schema import ColumnDescriptor, ListHandle
from listimport.errors import StoreItemNotFoundError, StoreRequestError
from listimport.mappers.field_coercer import escape_markup
from listimport.stores import caml
from listimport.stores.base import ListStore
from listimport.stores.soap_client import SoapClient, SoapFaultError

logger = logging.getLogger(__name__)

LISTS_SERVICE_PATH = "/_vti_bin/Lists.asmx"
GENERIC_LIST_TEMPLATE_ID = "100"


@dataclass
class SharePointSession(StoreSession):
    """
    Store session carrying the SOAP transport and per-list column names.
    """

    client: SoapClient | None = None
    http: requests.Session | None = None
    columns_by_list: dict[str, tuple[ColumnDescriptor, ...]] = field(default_factory=dict)

    def soap(self) -> SoapClient:
        if self.client is None:
            raise StoreRequestError("SharePoint session is not connected.")
        return self.client

    def close(self) -> None:
        super().close()
        if self.http is not None:
            self.http.close()


class SharePointListStore(ListStore):
    """
    Lists, columns, and items over SOAP.
    """

    name = "sharepoint"

    def __init__(
        self,
        *,
        settings: SharePointSettings,
        http_settings: StoreHTTPSettings,
        http_session_factory: type[requests.Session] = requests.Session,
    ) -> None:
        if not settings.site_url:
            raise ValueError("SHAREPOINT_SITE_URL must be set to use the SharePoint store.")
        self._settings = settings
        self._http_settings = http_settings
        self._http_session_factory = http_session_factory
        self._endpoint_url = f"{settings.site_url.rstrip('/')}{LISTS_SERVICE_PATH}"

    def open_session(self) -> SharePointSession:
        http = self._http_session_factory()
        http.verify = self._settings.verify_tls
        if self._settings.access_token:
            http.headers["Authorization"] = f"Bearer {self._settings.access_token}"
        elif self._settings.username:
            http.auth = (self._settings.username, self._settings.password or "")
        client = SoapClient(
            endpoint_url=self._endpoint_url,
            http_settings=self._http_settings,
            session=http,
        )
        return SharePointSession(client=client, http=http)

    def resolve_list(self, session: StoreSession, list_name: str) -> ListHandle | None:
        sp_session = _as_sharepoint(session)
        try:
            root = sp_session.soap().call("GetList", {"listName": escape_markup(list_name)})
        except SoapFaultError as exc:
            if exc.error_code == caml.LIST_NOT_FOUND_ERROR_CODE:
                return None
            raise
        return self._remember_list(sp_session, root, list_name)

    def create_list(self, session: StoreSession, list_name: str) -> ListHandle:
        sp_session = _as_sharepoint(session)
        root = sp_session.soap().call(
            "AddList",
            {
                "listName": escape_markup(list_name),
                "description": "",
                "templateID": GENERIC_LIST_TEMPLATE_ID,
            },
        )
        return self._remember_list(sp_session, root, list_name)

    def get_all_columns(self, session: StoreSession, handle: ListHandle) -> tuple[ColumnDescriptor, ...]:
        sp_session = _as_sharepoint(session)
        root = sp_session.soap().call("GetList", {"listName": escape_markup(handle.list_id)})
        self._remember_list(sp_session, root, handle.title)
        return sp_session.columns_by_list.get(handle.list_id, ())

    def create_column(self, session: StoreSession, handle: ListHandle, column: ColumnDescriptor) -> None:
        sp_session = _as_sharepoint(session)
        if not column.kind.is_writable:
            raise StoreRequestError(f"Column kind '{column.kind.value}' cannot be created by clients.")
        root = sp_session.soap().call(
            "UpdateList",
            {
                "listName": escape_markup(handle.list_id),
                "listProperties": "",
                "newFields": caml.build_new_field_markup(column),
                "updateFields": "",
                "deleteFields": "",
                "listVersion": "",
            },
        )
        error = caml.parse_new_field_error(root)
        if error is not None:
            raise StoreRequestError(f"UpdateList refused column '{column.name}': {error}")

    def stage_new_item(self, session: StoreSession, handle: ListHandle) -> StagedItem:
        item = StagedItem(list_id=handle.list_id)
        session.add_pending(item)
        return item

    def commit(self, session: StoreSession) -> list[CommitResult]:
        sp_session = _as_sharepoint(session)
        pending = list(sp_session.pending)
        if not pending:
            return []

        results_by_key: dict[str, CommitResult] = {}
        for list_id in dict.fromkeys(item.list_id for item in pending):
            items = [item for item in pending if item.list_id == list_id]
            for result in self._commit_list_items(sp_session, list_id, items):
                results_by_key[result.staged_key] = result

        sp_session.discard_pending()
        return [results_by_key[item.staged_key] for item in pending]

    def read_item(self, session: StoreSession, handle: ListHandle, item_id: str | None) -> Record:
        sp_session = _as_sharepoint(session)
        if item_id is None:
            raise StoreItemNotFoundError(f"Item has no identifier in list '{handle.title}'.")
        root = sp_session.soap().call(
            "GetListItems",
            {
                "listName": escape_markup(handle.list_id),
                "viewName": "",
                "query": caml.build_item_query(item_id),
                "viewFields": "",
                "rowLimit": "1",
                "queryOptions": "<QueryOptions />",
            },
        )
        row = caml.find_element(root, "row")
        if row is None:
            raise StoreItemNotFoundError(f"Item '{item_id}' does not exist in list '{handle.title}'.")

        display_names = {
            column.wire_name: column.name for column in sp_session.columns_by_list.get(handle.list_id, ())
        }
        return {
            display_names.get(internal_name, internal_name): value
            for internal_name, value in caml.parse_row_attributes(row).items()
        }

    def _commit_list_items(
        self,
        sp_session: SharePointSession,
        list_id: str,
        items: list[StagedItem],
    ) -> list[CommitResult]:
        wire_names = {
            column.name: column.wire_name for column in sp_session.columns_by_list.get(list_id, ())
        }
        root = sp_session.soap().call(
            "UpdateListItems",
            {
                "listName": escape_markup(list_id),
                "updates": caml.build_new_items_batch(items, wire_names),
            },
        )
        outcomes = caml.parse_batch_results(root)

        results: list[CommitResult] = []
        for position, item in enumerate(items, start=1):
            item_id, error = outcomes.get(position, (None, "Store returned no result for this item."))
            if item_id is not None:
                item.item_id = item_id
                results.append(CommitResult(staged_key=item.staged_key, item_id=item_id, success=True))
            else:
                logger.warning("Item rejected list_id=%s error=%s", list_id, error)
                results.append(CommitResult(staged_key=item.staged_key, item_id=None, success=False, error=error))
        return results

    @staticmethod
    def _remember_list(sp_session: SharePointSession, root: ET.Element, list_name: str) -> ListHandle:
        list_element = caml.find_element(root, "List")
        if list_element is None or not list_element.get("ID"):
            raise StoreRequestError(f"Response for list '{list_name}' did not describe a list.")
        handle = ListHandle(list_id=list_element.get("ID", ""), title=list_element.get("Title") or list_name)
        sp_session.columns_by_list[handle.list_id] = tuple(caml.parse_columns(list_element))
        return handle


def _as_sharepoint(session: StoreSession) -> SharePointSession:
    if not isinstance(session, SharePointSession):
        raise StoreRequestError("SharePoint store requires a session opened by SharePointListStore.")
    return session
