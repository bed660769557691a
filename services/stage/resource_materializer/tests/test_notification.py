"""Tests for stage notification sinks and detached dispatch."""

from __future__ import annotations

import asyncio
import json
import logging

import httpx
import pytest

from packages.pipeline_shared.http import AsyncHttpClient, HttpStatusError
from packages.pipeline_shared.logging import ContextFilter, fields, get_context
from services.stage.resource_materializer.notification import (
    HttpNotificationSink,
    NullNotificationSink,
    dispatch_notification,
    drain_notifications,
    pending_notifications,
)


class _NeverFinishingSink:
    async def notify(self, stage: str) -> None:
        await asyncio.Event().wait()


class _ExplodingSink:
    async def notify(self, stage: str) -> None:
        raise RuntimeError("socket closed")


@pytest.mark.asyncio
async def test_http_sink_posts_stage_message() -> None:
    """HttpNotificationSink should POST a JSON body naming the stage."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204, request=request)

    client = AsyncHttpClient(transport=httpx.MockTransport(handler))
    try:
        sink = HttpNotificationSink("https://hooks.test/stages", client=client)
        await sink.notify("NodeDown")
    finally:
        await client.aclose()

    assert len(seen) == 1
    assert seen[0].method == "POST"
    assert str(seen[0].url) == "https://hooks.test/stages"
    assert json.loads(seen[0].content) == {"node": "NodeDown"}


@pytest.mark.asyncio
async def test_http_sink_raises_typed_error_on_rejected_notification() -> None:
    """Endpoint failures should surface as shared HTTP errors from notify."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway", request=request)

    client = AsyncHttpClient(transport=httpx.MockTransport(handler))
    try:
        sink = HttpNotificationSink("https://hooks.test/stages", client=client)
        with pytest.raises(HttpStatusError) as exc_info:
            await sink.notify("NodeDown")
    finally:
        await client.aclose()

    assert exc_info.value.status_code == 502


def test_http_sink_rejects_blank_endpoint() -> None:
    """A sink without an endpoint cannot deliver anything."""
    with pytest.raises(ValueError):
        HttpNotificationSink("  ")


@pytest.mark.asyncio
async def test_null_sink_accepts_notifications() -> None:
    """The null sink should complete without side effects."""
    assert await NullNotificationSink().notify("NodeDown") is None


@pytest.mark.asyncio
async def test_dispatch_logs_sink_failures_without_raising(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Detached notification failures should be logged with the stage name."""
    caplog.set_level(logging.ERROR)

    task = dispatch_notification(_ExplodingSink(), "NodeDown")
    await task

    assert task.exception() is None
    messages = [record.getMessage() for record in caplog.records]
    assert "Stage notification failed: stage=NodeDown" in messages


@pytest.mark.asyncio
async def test_dispatch_failure_record_carries_stage_field(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """The failure record should bind the stage under the canonical field name."""
    caplog.set_level(logging.ERROR)
    caplog.handler.addFilter(ContextFilter())

    await dispatch_notification(_ExplodingSink(), "NodeDown")

    failures = [
        record
        for record in caplog.records
        if record.getMessage().startswith("Stage notification failed")
    ]
    assert len(failures) == 1
    assert failures[0].context[fields.STAGE] == "NodeDown"
    assert fields.STAGE not in get_context()


@pytest.mark.asyncio
async def test_drain_reports_notifications_still_pending() -> None:
    """Draining should give up after the timeout and report leftovers."""
    task = dispatch_notification(_NeverFinishingSink(), "NodeDown")

    assert pending_notifications() == 1
    assert await drain_notifications(0.01) == 1

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert pending_notifications() == 0


@pytest.mark.asyncio
async def test_drain_without_pending_notifications_returns_zero() -> None:
    """Draining an idle loop should return immediately."""
    assert await drain_notifications(0.01) == 0
