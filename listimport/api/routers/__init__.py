"""
listimport/api/routers package marker.
"""

from listimport.api.routers.list_import import router as list_import_router

__all__ = [
    "list_import_router",
]
