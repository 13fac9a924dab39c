"""
listimport/stores package marker.
"""

from listimport.stores.base import ListStore
from listimport.stores.factory import build_list_store, get_list_store
from listimport.stores.memory_store import InMemoryListStore
from listimport.stores.sharepoint_store import SharePointListStore, SharePointSession
from listimport.stores.soap_client import SoapClient, SoapFaultError

__all__ = [
    "InMemoryListStore",
    "ListStore",
    "SharePointListStore",
    "SharePointSession",
    "SoapClient",
    "SoapFaultError",
    "build_list_store",
    "get_list_store",
]
