"""Built-in transport capabilities for processing units."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Final
from urllib.parse import unquote, urlparse

from packages.pipeline_shared.http import AsyncHttpClient
from services.stage.resource_materializer.domain import Transport

HTTP_SCHEMES: Final[frozenset[str]] = frozenset({"http", "https"})
FILE_SCHEMES: Final[frozenset[str]] = frozenset({"", "file"})


class HttpTransport:
    """Fetch a location over HTTP(S) and return the response body text."""

    def __init__(
        self,
        client: AsyncHttpClient | None = None,
        *,
        timeout_seconds: float = 10.0,
        follow_redirects: bool = True,
    ) -> None:
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._follow_redirects = follow_redirects

    async def __call__(self, location: str) -> str:
        if self._client is not None:
            return await self._client.get_text(location)
        async with AsyncHttpClient(
            timeout_seconds=self._timeout_seconds,
            follow_redirects=self._follow_redirects,
        ) as client:
            return await client.get_text(location)


class FileTransport:
    """Read a local path or ``file://`` URI without blocking the event loop."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    async def __call__(self, location: str) -> str:
        path = file_location_to_path(location)
        return await asyncio.to_thread(path.read_text, encoding=self._encoding)


class SchemeTransport:
    """Dispatch to the HTTP or file transport based on the location scheme."""

    def __init__(
        self,
        *,
        http: HttpTransport | None = None,
        file: FileTransport | None = None,
    ) -> None:
        self._http = http or HttpTransport()
        self._file = file or FileTransport()

    async def __call__(self, location: str) -> str:
        scheme = _scheme(location)
        if scheme in HTTP_SCHEMES:
            return await self._http(location)
        if scheme in FILE_SCHEMES:
            return await self._file(location)
        raise ValueError(f"Unsupported location scheme '{scheme}': {location}")


def file_location_to_path(location: str) -> Path:
    """Convert a plain path or ``file://`` URI into a filesystem path."""
    parsed = urlparse(location)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(location)


def _scheme(location: str) -> str:
    """Return the lowercase URI scheme, treating drive letters as plain paths."""
    scheme = urlparse(location).scheme.lower()
    if len(scheme) == 1:
        return ""
    return scheme


TransportFactory = Callable[[AsyncHttpClient | None, float], Transport]

TRANSPORT_FACTORIES: Final[Mapping[str, TransportFactory]] = {
    "auto": lambda client, timeout: SchemeTransport(
        http=HttpTransport(client, timeout_seconds=timeout)
    ),
    "http": lambda client, timeout: HttpTransport(client, timeout_seconds=timeout),
    "file": lambda client, timeout: FileTransport(),
}
