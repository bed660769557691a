"""Best-effort stage notifications dispatched as detached asyncio tasks.

The materializer signals that it ran by handing one message to a
``NotificationSink``. Delivery is fire-and-forget: the dispatching coroutine
never awaits the task, and any failure is logged here and discarded.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from packages.pipeline_shared.http import AsyncHttpClient
from packages.pipeline_shared.logging import fields, get_logger, log_context

_LOGGER = get_logger(__name__)

# Strong references so pending tasks are not garbage collected mid-flight.
_PENDING: set[asyncio.Task[None]] = set()


class NotificationSink(Protocol):
    """Outbound signal that one named stage executed."""

    async def notify(self, stage: str) -> None:
        """Deliver one notification for ``stage``."""


class NullNotificationSink:
    """Sink used when no notification endpoint is configured."""

    async def notify(self, stage: str) -> None:
        """Discard the notification."""
        return None


class HttpNotificationSink:
    """Send one JSON message per notification to a remote endpoint.

    Each notification opens a connection, posts ``{"node": <stage>}``, and
    closes the connection again. A shared ``client`` may be injected for tests;
    it is not closed by the sink.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout_seconds: float = 5.0,
        client: AsyncHttpClient | None = None,
    ) -> None:
        if endpoint.strip() == "":
            raise ValueError("endpoint must be non-empty")
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds
        self._client = client

    async def notify(self, stage: str) -> None:
        """Post one stage message, raising shared HTTP errors on failure."""
        if self._client is not None:
            await self._client.post(self.endpoint, json={"node": stage})
            return
        async with AsyncHttpClient(timeout_seconds=self.timeout_seconds) as client:
            await client.post(self.endpoint, json={"node": stage})


def dispatch_notification(sink: NotificationSink, stage: str) -> asyncio.Task[None]:
    """Schedule ``sink.notify(stage)`` without waiting for it to finish."""
    task = asyncio.get_running_loop().create_task(
        _notify_safely(sink, stage), name=f"notify:{stage}"
    )
    _PENDING.add(task)
    task.add_done_callback(_PENDING.discard)
    return task


async def drain_notifications(timeout_seconds: float) -> int:
    """Wait up to ``timeout_seconds`` for pending notifications.

    Returns the number of notifications still pending afterwards. Only
    short-lived hosts that are about to close their event loop need this.
    """
    loop = asyncio.get_running_loop()
    pending = [
        task for task in _PENDING if not task.done() and task.get_loop() is loop
    ]
    if not pending:
        return 0
    _, still_pending = await asyncio.wait(pending, timeout=timeout_seconds)
    return len(still_pending)


def pending_notifications() -> int:
    """Return how many dispatched notifications have not finished yet."""
    loop = asyncio.get_running_loop()
    return sum(
        1 for task in _PENDING if not task.done() and task.get_loop() is loop
    )


async def _notify_safely(sink: NotificationSink, stage: str) -> None:
    """Run one notification, logging and discarding any failure."""
    try:
        await sink.notify(stage)
    except Exception:
        with log_context({fields.STAGE: stage}):
            _LOGGER.exception("Stage notification failed: stage=%s", stage)
