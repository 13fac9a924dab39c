"""
listimport/stores/factory.py

Store construction from runtime settings.
"""

from __future__ import annotations

from functools import lru_cache

from listimport.config import get_list_import_settings, get_sharepoint_settings, get_store_http_settings
from listimport.stores.base import ListStore
from listimport.stores.memory_store import InMemoryListStore
from listimport.stores.sharepoint_store import SharePointListStore


def build_list_store(store_name: str) -> ListStore:
    """
    Build the store named ``store_name`` from environment settings.
    """

    normalized = store_name.strip().lower()
    if normalized == InMemoryListStore.name:
        return InMemoryListStore()
    if normalized == SharePointListStore.name:
        return SharePointListStore(
            settings=get_sharepoint_settings(),
            http_settings=get_store_http_settings(),
        )
    raise ValueError(f"Unsupported store '{store_name}'. Allowed stores: memory, sharepoint.")


@lru_cache(maxsize=1)
def get_list_store() -> ListStore:
    """
    Return the configured store, built once per process.
    """

    return build_list_store(get_list_import_settings().store)
