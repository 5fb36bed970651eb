"""HTTP plumbing for embedding providers: retries, timeouts and status mapping."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

import requests
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from hybrid_retrieval.exceptions import RetrievalError

logger = logging.getLogger(__name__)

USER_AGENT = "hybrid-retrieval-engine"

# Overloaded or restarting model servers answer with these; anything else is final.
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
MAX_ATTEMPTS = 3

_DETAIL_LIMIT = 200


class ClientError(RetrievalError):
    """Base exception for embedding provider transport errors."""


class NotFoundError(ClientError):
    """Raised for HTTP 404, e.g. a wrong base URL or endpoint path."""


class RateLimitedError(ClientError):
    """Raised when HTTP 429 persists after retries."""

    def __init__(self, message: str, retry_after: Optional[float] = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class RequestRejectedError(ClientError):
    """Raised for any other HTTP 4xx."""

    def __init__(self, status: int, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.detail = detail


class UpstreamError(ClientError):
    """Raised for HTTP 5xx after retries, or when the server cannot be reached."""


class RetryableResponseError(Exception):
    """Carries a retryable response through tenacity."""

    def __init__(self, response: requests.Response):
        super().__init__(f"Retryable status {response.status_code}")
        self.response = response


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds to wait from a ``Retry-After`` header (delta-seconds or HTTP date)."""

    if not value:
        return None
    if value.isdigit():
        return float(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max((when - datetime.now(timezone.utc)).total_seconds(), 0.0)


_fallback_wait = wait_exponential(multiplier=0.5, min=0.5, max=8)


def _retry_wait(retry_state: RetryCallState) -> float:
    wait_seconds: Optional[float] = None
    outcome = retry_state.outcome
    if outcome is not None and outcome.failed:
        exception = outcome.exception()
        if isinstance(exception, RetryableResponseError):
            wait_seconds = _parse_retry_after(exception.response.headers.get("Retry-After"))
    if wait_seconds is None:
        wait_seconds = _fallback_wait(retry_state)

    logger.debug("Retrying request (attempt %d) in %.2fs", retry_state.attempt_number, wait_seconds)
    return wait_seconds


class BaseHttpClient:
    """Session-owning client that retries transient failures and maps statuses to errors.

    Subclasses set ``BASE_URL`` and may override :meth:`_error_detail` to pull a
    provider's own error text out of a failed response.
    """

    BASE_URL = ""

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.session.headers.setdefault("Accept", "application/json")
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout

    @retry(
        reraise=True,
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=_retry_wait,
        retry=retry_if_exception_type((requests.RequestException, RetryableResponseError)),
    )
    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        if response.status_code in RETRYABLE_STATUS_CODES:
            raise RetryableResponseError(response)
        return response

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self._send(method, url, **kwargs)
        except RetryableResponseError as exc:
            response = exc.response
        except requests.RequestException as exc:
            raise UpstreamError(f"Request to {url} failed: {exc}") from exc
        return self._handle_response(response)

    def _error_detail(self, response: requests.Response) -> Optional[str]:
        text = " ".join(response.text.split())
        return text[:_DETAIL_LIMIT] or None

    def _handle_response(self, response: requests.Response) -> requests.Response:
        status = response.status_code
        if status < 400:
            return response

        detail = self._error_detail(response)
        suffix = f": {detail}" if detail else ""
        if status == 404:
            raise NotFoundError(f"Not found ({response.url}){suffix}")
        if status == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            raise RateLimitedError(f"Rate limit exceeded{suffix}", retry_after=retry_after)
        if status >= 500:
            raise UpstreamError(f"Upstream service error ({status}){suffix}")
        raise RequestRejectedError(status, f"Request rejected ({status}){suffix}", detail=detail)


__all__ = [
    "BaseHttpClient",
    "ClientError",
    "NotFoundError",
    "RateLimitedError",
    "RequestRejectedError",
    "UpstreamError",
]
