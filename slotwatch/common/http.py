"""HTTP client with timeouts and network/status error classification."""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests

from slotwatch.common.constants import USER_AGENT
from slotwatch.common.errors import WatchError


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 20.0
    read: float = 120.0


class HttpRequestError(WatchError):
    error_code = "HTTP_ERROR"


class RetryableHttpError(HttpRequestError):
    pass


class NetworkError(RetryableHttpError):
    error_code = "NETWORK_ERROR"


class StatusError(RetryableHttpError):
    error_code = "STATUS_ERROR"

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"HTTP status {status_code} for {url}")
        self.status_code = status_code


class HttpClient:
    """Thin wrapper over a shared ``requests.Session``.

    The client holds no per-request state, so one instance is shared read-only
    by every fetch worker.
    """

    def __init__(self, *, timeout: TimeoutConfig | None = None) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status(self, response: requests.Response, url: str) -> None:
        status = response.status_code
        if not 200 <= status < 300:
            raise StatusError(status, url)

    def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> requests.Response:
        req_timeout = timeout or self.timeout
        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=self._headers(headers),
                timeout=(req_timeout.connect, req_timeout.read),
            )
        except requests.RequestException as exc:
            raise NetworkError(f"Network error for {url}: {exc}") from exc
        self._raise_for_status(response, url)
        return response

    def get_text(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> str:
        response = self._send("GET", url, params=params, headers=headers, timeout=timeout)
        return response.text

    def post_json(
        self,
        url: str,
        *,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        response = self._send("POST", url, json_body=payload, headers=headers, timeout=timeout)
        try:
            body = response.json()
        except ValueError as exc:
            raise HttpRequestError(f"Invalid JSON payload from {url}") from exc
        if not isinstance(body, dict):
            raise HttpRequestError(f"Unexpected JSON payload from {url}")
        return body
