"""Tests for built-in transport capabilities."""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import pytest

from packages.pipeline_shared.http import AsyncHttpClient, HttpStatusError
from services.stage.resource_materializer.transports import (
    TRANSPORT_FACTORIES,
    FileTransport,
    HttpTransport,
    SchemeTransport,
    file_location_to_path,
)


def _text_client(body: str, *, status_code: int = 200) -> AsyncHttpClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text=body, request=request)

    return AsyncHttpClient(transport=httpx.MockTransport(handler))


def test_http_transport_returns_response_text() -> None:
    """HttpTransport should GET the location and return its body."""

    async def _run() -> str:
        client = _text_client("payload")
        try:
            return await HttpTransport(client)("https://files.test/a.txt")
        finally:
            await client.aclose()

    assert asyncio.run(_run()) == "payload"


def test_http_transport_raises_on_error_status() -> None:
    """Non-2xx responses should raise the shared status error."""

    async def _run() -> None:
        client = _text_client("missing", status_code=404)
        try:
            await HttpTransport(client)("https://files.test/a.txt")
        finally:
            await client.aclose()

    with pytest.raises(HttpStatusError):
        asyncio.run(_run())


def test_file_transport_reads_plain_path_and_file_uri(tmp_path: Path) -> None:
    """FileTransport should accept both plain paths and file:// URIs."""
    target = tmp_path / "notes.txt"
    target.write_text("line one\n", encoding="utf-8")
    transport = FileTransport()

    assert asyncio.run(transport(str(target))) == "line one\n"
    assert asyncio.run(transport(target.as_uri())) == "line one\n"


def test_file_transport_propagates_missing_file(tmp_path: Path) -> None:
    """Missing files should raise the underlying OS error."""
    with pytest.raises(FileNotFoundError):
        asyncio.run(FileTransport()(str(tmp_path / "absent.txt")))


def test_scheme_transport_dispatches_by_scheme(tmp_path: Path) -> None:
    """http(s) locations go to HTTP and everything path-like goes to disk."""
    target = tmp_path / "local.txt"
    target.write_text("local", encoding="utf-8")

    async def _run() -> tuple[str, str]:
        client = _text_client("remote")
        try:
            transport = SchemeTransport(http=HttpTransport(client))
            return (
                await transport("https://files.test/remote.txt"),
                await transport(str(target)),
            )
        finally:
            await client.aclose()

    assert asyncio.run(_run()) == ("remote", "local")


def test_scheme_transport_rejects_unknown_scheme() -> None:
    """Unsupported schemes should fail rather than guess."""
    with pytest.raises(ValueError, match="Unsupported location scheme 'ftp'"):
        asyncio.run(SchemeTransport()("ftp://files.test/a.txt"))


def test_file_location_to_path_decodes_uri_escapes() -> None:
    """file:// URIs should be unquoted into filesystem paths."""
    assert file_location_to_path("file:///tmp/with%20space.txt") == Path(
        "/tmp/with space.txt"
    )
    assert file_location_to_path("relative/name.txt") == Path("relative/name.txt")


def test_transport_factories_cover_plan_names() -> None:
    """Every plan transport name should build a callable transport."""
    assert set(TRANSPORT_FACTORIES) == {"auto", "http", "file"}
    assert isinstance(TRANSPORT_FACTORIES["auto"](None, 3.0), SchemeTransport)
    assert isinstance(TRANSPORT_FACTORIES["http"](None, 3.0), HttpTransport)
    assert isinstance(TRANSPORT_FACTORIES["file"](None, 3.0), FileTransport)
