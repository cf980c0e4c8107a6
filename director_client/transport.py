"""HTTP transport to the director service."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from .auth import get_auth_headers
from .config import ClientConfig
from .exceptions import MalformedResponseError, NotFoundError, TransportError
from .resilience import RetryConfig, retry_with_backoff, ClientCircuitBreaker
from .scope import PrivilegeContext

logger = logging.getLogger(__name__)


@dataclass
class Transport:
    """
    Synchronous request/response against one director endpoint.

    Reads are retried with backoff; mutations are sent once. Every
    failure surfaces as a DirectorError subclass, never as an httpx error.
    """
    config: ClientConfig
    context: PrivilegeContext

    _retry_config: RetryConfig = field(init=False)
    _circuit_breaker: ClientCircuitBreaker = field(default_factory=ClientCircuitBreaker, init=False)

    def __post_init__(self) -> None:
        self._retry_config = RetryConfig.from_client_config(self.config)

    def get(self, locator: str) -> Any:
        return retry_with_backoff(self._request, self._retry_config, "GET", locator)

    def put(self, locator: str, payload: dict[str, Any]) -> Any:
        return self._request("PUT", locator, payload)

    def post(self, locator: str, payload: dict[str, Any]) -> Any:
        return self._request("POST", locator, payload)

    def delete(self, locator: str) -> Any:
        return self._request("DELETE", locator)

    def _request(self, method: str, locator: str, payload: dict[str, Any] | None = None) -> Any:
        self.context.check_access(locator)

        self._circuit_breaker.before_request(locator)
        try:
            response = self._send(method, locator, payload)
        except TransportError:
            self._circuit_breaker.record_failure()
            raise

        if response.status_code == 404:
            # Don't count 404s as circuit breaker failures
            self._circuit_breaker.record_success()
            raise NotFoundError(f"Not found: {method} {locator}", locator=locator)

        if response.status_code >= 400:
            if response.status_code >= 500:
                self._circuit_breaker.record_failure()
            raise TransportError(
                f"{method} {locator} failed with HTTP {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
                locator=locator,
                response=response,
            )

        self._circuit_breaker.record_success()

        if not response.content:
            return {}
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedResponseError(
                f"{method} {locator} returned a non-JSON body",
                payload=response.text,
            ) from e

    def _send(self, method: str, locator: str, payload: dict[str, Any] | None) -> httpx.Response:
        try:
            with httpx.Client(timeout=self.config.timeout, verify=self.config.verify_ssl) as client:
                return client.request(
                    method,
                    locator,
                    headers=self._get_headers(),
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {locator} failed: {e}", locator=locator) from e

    def _get_headers(self) -> dict[str, str]:
        """Build request headers including authentication."""
        headers = {
            "Accept": f"application/*+json;version={self.config.api_version}",
        }
        headers.update(get_auth_headers(self.config))
        return headers


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text
    if isinstance(data, dict):
        return data.get("message") or data.get("detail") or response.text
    return response.text
