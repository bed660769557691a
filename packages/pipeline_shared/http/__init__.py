"""Public shared HTTP API for pipeline packages."""

from .client import AsyncHttpClient
from .errors import (
    HttpClientError,
    HttpError,
    HttpRequestError,
    HttpStatusError,
)

__all__ = [
    "AsyncHttpClient",
    "HttpClientError",
    "HttpError",
    "HttpRequestError",
    "HttpStatusError",
]
