from __future__ import annotations

import pytest
import requests

from listimport.config import StoreHTTPSettings
from listimport.errors import StoreRequestError
from listimport.stores import soap_client as soap_client_module
from listimport.stores.caml import LIST_NOT_FOUND_ERROR_CODE, find_element
from listimport.stores.soap_client import SoapClient, SoapFaultError

ENDPOINT = "https://contoso.example/sites/ops/_vti_bin/Lists.asmx"


@pytest.fixture()
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    recorded: list[float] = []
    monkeypatch.setattr(soap_client_module.time, "sleep", recorded.append)
    return recorded


def _client(http, max_retries: int = 2) -> SoapClient:
    return SoapClient(
        endpoint_url=ENDPOINT,
        http_settings=StoreHTTPSettings(
            timeout_seconds=5.0,
            max_retries=max_retries,
            backoff_initial_seconds=0.5,
            backoff_multiplier=2.0,
            rate_limit_per_second=0.0,
        ),
        session=http,
    )


def test_call_posts_envelope_with_soap_action(fake_http, fake_response, soap, sleeps) -> None:
    fake_http.queue(fake_response(200, soap("GetList", '<List ID="{abc}" Title="Tasks" />')))

    root = _client(fake_http).call("GetList", {"listName": "Tasks"})

    call = fake_http.calls[0]
    assert call["url"] == ENDPOINT
    assert call["headers"]["SOAPAction"] == '"http://schemas.microsoft.com/sharepoint/soap/GetList"'
    assert call["headers"]["Content-Type"].startswith("text/xml")
    assert "<listName>Tasks</listName>" in call["body"]
    assert call["timeout"] == 5.0
    assert find_element(root, "List").get("ID") == "{abc}"
    assert sleeps == []


def test_retryable_status_is_retried_with_backoff(fake_http, fake_response, soap, sleeps) -> None:
    fake_http.queue(
        fake_response(503, "busy"),
        fake_response(429, "slow down"),
        fake_response(200, soap("GetList", '<List ID="{abc}" />')),
    )

    _client(fake_http).call("GetList", {"listName": "Tasks"})

    assert len(fake_http.calls) == 3
    assert sleeps == [0.5, 1.0]


def test_connection_errors_exhaust_retries(fake_http, sleeps) -> None:
    fake_http.queue(*(requests.ConnectionError("refused") for _ in range(3)))

    with pytest.raises(StoreRequestError, match="after retries"):
        _client(fake_http).call("GetList", {"listName": "Tasks"})

    assert len(fake_http.calls) == 3


def test_non_retryable_status_fails_immediately(fake_http, fake_response, sleeps) -> None:
    fake_http.queue(fake_response(401, "denied"))

    with pytest.raises(StoreRequestError, match="HTTP 401"):
        _client(fake_http).call("GetList", {"listName": "Tasks"})

    assert len(fake_http.calls) == 1


def test_soap_fault_is_decoded_and_not_retried(fake_http, fake_response, fault, sleeps) -> None:
    fake_http.queue(fake_response(500, fault(LIST_NOT_FOUND_ERROR_CODE, "List does not exist.")))

    with pytest.raises(SoapFaultError) as exc_info:
        _client(fake_http).call("GetList", {"listName": "Missing"})

    assert exc_info.value.error_code == LIST_NOT_FOUND_ERROR_CODE
    assert exc_info.value.message == "List does not exist."
    assert exc_info.value.action == "GetList"
    assert len(fake_http.calls) == 1


def test_invalid_xml_is_a_request_error(fake_http, fake_response, sleeps) -> None:
    fake_http.queue(fake_response(200, "<html>login page"))

    with pytest.raises(StoreRequestError, match="not valid XML"):
        _client(fake_http).call("GetList", {"listName": "Tasks"})
