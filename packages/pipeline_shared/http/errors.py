"""Typed failures raised by the shared async HTTP client.

Every failure names the request it belongs to so callers such as resource
transports can report which location could not be fetched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

import httpx

_RETRYABLE_STATUS_CODES = frozenset({408, 425, 429})


@dataclass(eq=False)
class HttpError(Exception):
    """Root of every failure raised by the shared HTTP helpers."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class HttpClientError(HttpError):
    """Outbound call failure tied to one request."""

    method: str
    url: str

    @property
    def retryable(self) -> bool:
        """Return True when repeating the same request could succeed."""
        return False


@dataclass(eq=False)
class HttpRequestError(HttpClientError):
    """The request never produced a response (DNS, connect, read, timeout)."""

    cause: Exception | None = None

    @property
    def retryable(self) -> bool:
        return True

    @property
    def timed_out(self) -> bool:
        """Return True when the underlying failure was a timeout."""
        return isinstance(self.cause, httpx.TimeoutException)

    @classmethod
    def from_exception(
        cls, exc: httpx.RequestError, *, method: str, url: str
    ) -> HttpRequestError:
        """Build the error from an httpx transport failure."""
        try:
            request: httpx.Request | None = exc.request
        except RuntimeError:
            request = None
        if request is not None:
            method, url = request.method, str(request.url)
        else:
            method = method.upper()
        return cls(
            message=f"HTTP request failed for {method} {url}: {exc}",
            method=method,
            url=url,
            cause=exc,
        )


@dataclass(eq=False)
class HttpStatusError(HttpClientError):
    """The server answered with a 4xx or 5xx status."""

    status_code: int = 0
    response_body: str = ""
    response_headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500 or self.status_code in _RETRYABLE_STATUS_CODES

    @classmethod
    def from_response(cls, response: httpx.Response) -> HttpStatusError:
        """Build the error from one unsuccessful response."""
        request = response.request
        return cls(
            message=f"HTTP {response.status_code} for {request.method} {request.url}",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
            response_body=response_body_or_empty(response),
            response_headers=dict(response.headers.items()),
        )


def response_body_or_empty(response: httpx.Response) -> str:
    """Return response text, or an empty string when it cannot be decoded."""
    try:
        return response.text
    except (UnicodeDecodeError, LookupError, httpx.ResponseNotRead):
        return ""
