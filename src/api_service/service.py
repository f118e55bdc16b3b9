"""Retrying request orchestration and user-facing error messages."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Mapping

from .http import HttpClient

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 1
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_ERROR_MESSAGE = "API request failed."
WEATHER_ENDPOINT = "getWthrDataList"
WEATHER_ERROR_MESSAGE = "기상 데이터 조회에 실패했습니다."

ERROR_MESSAGES: dict[int, str] = {
    400: "잘못된 요청입니다.",
    401: "인증이 필요합니다.",
    403: "접근이 거부되었습니다.",
    404: "데이터를 찾을 수 없습니다.",
    429: "요청이 너무 많습니다. 나중에 다시 시도하세요.",
    500: "서버 오류가 발생했습니다.",
}


class ValidationError(Exception):
    """Raised when a response is rejected by ``validate_status``."""

    def __init__(self, value: Any) -> None:
        super().__init__("Custom validation failed.")
        self.value = value


class ApiError(Exception):
    """Raised once retries are exhausted."""

    def __init__(self, message: str, original_error: BaseException, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.status = status


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class RetryOptions:
    retries: int = DEFAULT_RETRIES
    retry_delay: int = DEFAULT_RETRY_DELAY_MS  # milliseconds
    error_message: str = DEFAULT_ERROR_MESSAGE
    transform_response: Callable[[Any], Any] = _identity
    validate_status: Callable[[Any], bool] | None = None

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {self.retry_delay}")


def error_message_for_status(status: int | None, fallback: str) -> str:
    """Return the localized message for ``status``, or ``fallback``."""
    if status is None:
        return fallback
    return ERROR_MESSAGES.get(status, fallback)


def _status_of(exc: BaseException) -> int | None:
    status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


def _extract_items(payload: Any) -> list:
    """Pull ``response.body.items.item`` out of a data.go.kr style payload."""
    node = payload
    for key in ("response", "body", "items", "item"):
        if not isinstance(node, dict):
            return []
        node = node.get(key)
    return node or []


class ApiService:
    """Wraps an :class:`HttpClient` with retry, validation and error mapping."""

    def __init__(
        self,
        base_url: str = "",
        headers: Mapping[str, str] | None = None,
        *,
        client: HttpClient | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client or HttpClient(base_url, headers)
        self._sleep = sleep

    def request(
        self,
        request_fn: Callable[[], Any],
        options: RetryOptions | None = None,
        **overrides: Any,
    ) -> Any:
        """
        Run ``request_fn`` until it succeeds or the retry budget is spent.

        Any exception from ``request_fn`` and any result rejected by
        ``validate_status`` count as a failed attempt. ``retries`` is the
        number of attempts after the first; the wait between attempts is a
        constant ``retry_delay`` milliseconds, spent in the injected ``sleep``
        (``time.sleep`` by default, which blocks the calling thread but holds
        no lock or connection).

        Raises:
            ApiError: after the final attempt fails. ``original_error`` holds
                the last underlying failure.
        """
        opts = replace(options or RetryOptions(), **overrides)
        total = opts.retries + 1
        last_exc: BaseException | None = None

        for attempt in range(total):
            try:
                result = request_fn()
                if opts.validate_status is not None and not opts.validate_status(result):
                    raise ValidationError(result)
                return opts.transform_response(result)
            except Exception as exc:
                last_exc = exc

            if attempt < opts.retries:
                logger.warning(
                    "Request failed on attempt %d/%d (%s); retrying in %dms",
                    attempt + 1,
                    total,
                    last_exc,
                    opts.retry_delay,
                )
                self._sleep(opts.retry_delay / 1000)

        status = _status_of(last_exc)
        message = error_message_for_status(status, opts.error_message)
        logger.error("Request failed after %d attempt(s): %s", total, last_exc)
        raise ApiError(message, last_exc, status) from last_exc

    def get_weather_data(self, params: Mapping[str, Any], **options: Any) -> list:
        """Fetch daily ASOS observations; returns the list of items (may be empty)."""
        opts = {
            "error_message": WEATHER_ERROR_MESSAGE,
            "transform_response": _extract_items,
            **options,
        }
        return self.request(lambda: self.client.get(WEATHER_ENDPOINT, params=params), **opts)
