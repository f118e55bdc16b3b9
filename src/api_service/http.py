"""Thin HTTP client over requests: URL building, header merging, body decoding."""

from __future__ import annotations

import json as _json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlencode

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10
DEFAULT_HEADERS = {"Accept": "application/json"}
INVALID_JSON_BODY = {"message": "Invalid JSON response."}


class HttpError(Exception):
    """Base class for transport-side failures."""


class NetworkError(HttpError):
    """Raised when the HTTP call cannot complete (DNS, reset, timeout)."""


class TransportError(HttpError):
    """Raised when a response arrives with a non-2xx status."""

    def __init__(self, status: int, status_text: str, url: str, body: Any = None) -> None:
        super().__init__(f"HTTP {status} {status_text}: {url}")
        self.status = status
        self.status_text = status_text
        self.url = url
        self.body = body


@dataclass(frozen=True)
class Request:
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str | None = None


@dataclass(frozen=True)
class Response:
    status_code: int
    body: Any
    headers: Mapping[str, str] = field(default_factory=dict)
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def _is_absolute(endpoint: str) -> bool:
    return endpoint.startswith(("http://", "https://"))


def _decode_body(resp: requests.Response) -> Any:
    content_type = resp.headers.get("Content-Type", "") or ""
    if "json" in content_type.lower():
        try:
            return resp.json()
        except ValueError:
            logger.debug("Undecodable JSON body from %s", resp.url)
            return dict(INVALID_JSON_BODY)
    return resp.text


class HttpClient:
    """Facade over a requests session bound to one base URL.

    ``base_url`` and ``headers`` are captured once at construction and never
    modified afterwards, so one client can be shared between callers.
    """

    def __init__(
        self,
        base_url: str = "",
        headers: Mapping[str, str] | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url
        self._headers = dict(headers or {})
        self._timeout = timeout
        self._session = session or requests.Session()

    def build_url(self, endpoint: str, params: Mapping[str, Any] | None = None) -> str:
        url = endpoint if _is_absolute(endpoint) else f"{self._base_url}{endpoint}"
        if params:
            sep = "&" if "?" in url else "?"
            url = f"{url}{sep}{urlencode(params, doseq=True)}"
        return url

    def _prepare(
        self,
        method: str,
        endpoint: str,
        params: Mapping[str, Any] | None,
        headers: Mapping[str, str] | None,
        body: str | None,
    ) -> Request:
        merged = {**DEFAULT_HEADERS, **self._headers, **(headers or {})}
        return Request(
            method=method.upper(),
            url=self.build_url(endpoint, params),
            headers=merged,
            body=body,
        )

    def request(
        self,
        endpoint: str,
        method: str = "GET",
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        data: str | None = None,
        timeout: float | None = None,
    ) -> Response:
        """Issue one HTTP call. Raises NetworkError or TransportError on failure."""
        req = self._prepare(method, endpoint, params, headers, data)
        logger.debug("%s %s", req.method, req.url)

        try:
            resp = self._session.request(
                req.method,
                req.url,
                headers=dict(req.headers),
                data=req.body,
                timeout=timeout if timeout is not None else self._timeout,
            )
        except requests.exceptions.RequestException as exc:
            logger.warning("Network failure on %s %s: %s", req.method, req.url, exc)
            raise NetworkError(f"{req.method} {req.url} failed: {exc}") from exc

        body = _decode_body(resp)
        result = Response(
            status_code=resp.status_code,
            body=body,
            headers=dict(resp.headers),
            url=resp.url or req.url,
        )
        if not result.ok:
            logger.warning("HTTP %s on %s %s", resp.status_code, req.method, req.url)
            raise TransportError(resp.status_code, resp.reason or "", result.url, body)
        return result

    def get(self, endpoint: str, params: Mapping[str, Any] | None = None, **kwargs: Any) -> Any:
        return self.request(endpoint, "GET", params=params, **kwargs).body

    def delete(self, endpoint: str, **kwargs: Any) -> Any:
        return self.request(endpoint, "DELETE", **kwargs).body

    def post(self, endpoint: str, data: Any, **kwargs: Any) -> Any:
        return self._send_json("POST", endpoint, data, **kwargs)

    def put(self, endpoint: str, data: Any, **kwargs: Any) -> Any:
        return self._send_json("PUT", endpoint, data, **kwargs)

    def _send_json(self, method: str, endpoint: str, data: Any, **kwargs: Any) -> Any:
        headers = {"Content-Type": "application/json", **(kwargs.pop("headers", None) or {})}
        payload = _json.dumps(data, ensure_ascii=False)
        return self.request(endpoint, method, headers=headers, data=payload, **kwargs).body
