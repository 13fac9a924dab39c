from __future__ import annotations

from collections.abc import Callable

import pytest
import requests

from listimport.config import get_list_import_settings, get_sharepoint_settings, get_store_http_settings
from listimport.services.list_ingestion_service import get_list_ingestion_service
from listimport.stores.factory import get_list_store


class FakeResponse:
    def __init__(self, status_code: int = 200, content: str | bytes = b"") -> None:
        self.status_code = status_code
        self.content = content.encode("utf-8") if isinstance(content, str) else content

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class FakeHTTPSession:
    """
    Stand-in for requests.Session that replays queued responses.

    Queue entries are FakeResponse objects or exceptions to raise.
    """

    def __init__(self, responses: list[FakeResponse | Exception] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict] = []
        self.headers: dict[str, str] = {}
        self.auth = None
        self.verify = True
        self.closed = False

    def queue(self, *responses: FakeResponse | Exception) -> None:
        self.responses.extend(responses)

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append(
            {
                "url": url,
                "body": data.decode("utf-8") if isinstance(data, bytes) else data,
                "headers": dict(headers or {}),
                "timeout": timeout,
            }
        )
        if not self.responses:
            raise AssertionError("No fake response queued.")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


def soap_response(action: str, result: str) -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">'
        "<soap:Body>"
        f'<{action}Response xmlns="http://schemas.microsoft.com/sharepoint/soap/">'
        f"<{action}Result>{result}</{action}Result>"
        f"</{action}Response>"
        "</soap:Body></soap:Envelope>"
    )


def soap_fault(error_code: str, message: str) -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">'
        "<soap:Body><soap:Fault>"
        "<faultcode>soap:Server</faultcode>"
        "<faultstring>Exception of type 'Microsoft.SharePoint.SoapServer.SoapServerException' was thrown.</faultstring>"
        "<detail>"
        f'<errorstring xmlns="http://schemas.microsoft.com/sharepoint/soap/">{message}</errorstring>'
        f'<errorcode xmlns="http://schemas.microsoft.com/sharepoint/soap/">{error_code}</errorcode>'
        "</detail>"
        "</soap:Fault></soap:Body></soap:Envelope>"
    )


@pytest.fixture()
def fake_http() -> FakeHTTPSession:
    return FakeHTTPSession()


@pytest.fixture()
def fake_response() -> type[FakeResponse]:
    return FakeResponse


@pytest.fixture()
def soap() -> Callable[[str, str], str]:
    return soap_response


@pytest.fixture()
def fault() -> Callable[[str, str], str]:
    return soap_fault


@pytest.fixture()
def clear_settings_cache():
    caches = (
        get_list_import_settings,
        get_sharepoint_settings,
        get_store_http_settings,
        get_list_store,
        get_list_ingestion_service,
    )
    for cached in caches:
        cached.cache_clear()
    yield
    for cached in caches:
        cached.cache_clear()
