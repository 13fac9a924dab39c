"""
listimport/stores/soap_client.py

SOAP transport with rate limiting, retries, and fault decoding.
"""

from __future__ import annotations

import logging
import time
import xml.etree.ElementTree as ET

import requests

from listimport.config import StoreHTTPSettings
from listimport.errors import StoreRequestError
from listimport.stores.caml import SOAP_NAMESPACE, build_envelope, parse_fault

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class SoapFaultError(StoreRequestError):
    """
    Raised when the service answers with a SOAP fault.
    """

    def __init__(self, *, action: str, error_code: str | None, message: str) -> None:
        super().__init__(f"{action} failed: {message}" + (f" ({error_code})" if error_code else ""))
        self.action = action
        self.error_code = error_code
        self.message = message


class SoapClient:
    """
    Posts SOAP actions to one endpoint and returns the parsed response document.
    """

    def __init__(
        self,
        *,
        endpoint_url: str,
        http_settings: StoreHTTPSettings,
        session: requests.Session,
    ) -> None:
        self._endpoint_url = endpoint_url
        self._session = session
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier
        self._min_request_interval_seconds = (
            1.0 / http_settings.rate_limit_per_second if http_settings.rate_limit_per_second > 0 else 0.0
        )
        self._last_request_monotonic: float = 0.0

    def call(self, action: str, parameters: dict[str, str]) -> ET.Element:
        """
        Invoke ``action`` and return the response root element.

        Raises SoapFaultError for faults and StoreRequestError for transport
        failures that survive the retry budget.
        """

        payload = build_envelope(action, parameters).encode("utf-8")
        headers = {
            "Content-Type": "text/xml; charset=utf-8",
            "SOAPAction": f'"{SOAP_NAMESPACE}{action}"',
        }
        response = self._request(action=action, payload=payload, headers=headers)
        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as exc:
            raise StoreRequestError(f"{action}: response was not valid XML.") from exc

        fault = parse_fault(root)
        if fault is not None:
            error_code, message = fault
            raise SoapFaultError(action=action, error_code=error_code, message=message)
        return root

    def _request(self, *, action: str, payload: bytes, headers: dict[str, str]) -> requests.Response:
        """
        Execute a POST with rate limiting and exponential backoff.

        A 500 carrying a SOAP fault is returned as-is so the caller can decode
        it; faults are never retried.
        """

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            self._apply_rate_limit()
            try:
                response = self._session.post(
                    self._endpoint_url,
                    data=payload,
                    headers=headers,
                    timeout=self._timeout_seconds,
                )
                if response.status_code == 500 and _looks_like_fault(response):
                    return response
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable HTTP status code: {response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(
                        "Store request failed action=%s status=%s url=%s error=%s",
                        action,
                        status_code,
                        self._endpoint_url,
                        exc,
                    )
                    raise StoreRequestError(f"{action}: non-retryable request failure (HTTP {status_code}).") from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "Store request retry action=%s attempt=%s/%s wait_seconds=%.2f",
                action,
                attempt + 1,
                self._max_retries,
                backoff_seconds,
            )
            time.sleep(backoff_seconds)

        logger.error(
            "Store request exhausted retries action=%s url=%s error=%s",
            action,
            self._endpoint_url,
            last_error,
        )
        raise StoreRequestError(f"{action}: request failed after retries.") from last_error

    def _apply_rate_limit(self) -> None:
        """
        Enforce minimum interval between outbound requests.
        """

        if self._min_request_interval_seconds <= 0:
            return

        now = time.monotonic()
        elapsed = now - self._last_request_monotonic
        remaining = self._min_request_interval_seconds - elapsed
        if remaining > 0:
            time.sleep(remaining)
        self._last_request_monotonic = time.monotonic()


def _looks_like_fault(response: requests.Response) -> bool:
    return b"Fault>" in response.content
