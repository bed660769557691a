"""Authoritative in-process Python API for the Resource Materializer."""

from __future__ import annotations

from abc import ABC, abstractmethod

from packages.pipeline_shared.config import PipelineSettings
from packages.pipeline_shared.http import AsyncHttpClient
from services.stage.resource_materializer.domain import (
    DryRunConfig,
    MaterializerSpec,
    MaterializeOutcome,
    ResourceMap,
)
from services.stage.resource_materializer.notification import NotificationSink


class ResourceMaterializerService(ABC):
    """Public API for materializing resource values into a new resource map."""

    @property
    @abstractmethod
    def stage_name(self) -> str:
        """Return the stage name used in notifications and completion notes."""

    @abstractmethod
    async def process(
        self,
        resource_map: ResourceMap,
        dry_run: DryRunConfig | None = None,
    ) -> MaterializeOutcome:
        """Fetch and transform every matched resource into a fresh map."""


def build_resource_materializer(
    *,
    spec: MaterializerSpec,
    settings: PipelineSettings,
    notification_sink: NotificationSink | None = None,
    http_client: AsyncHttpClient | None = None,
) -> ResourceMaterializerService:
    """Build the default materializer implementation from typed settings."""
    from services.stage.resource_materializer.config import (
        resolve_resource_materializer_settings,
    )
    from services.stage.resource_materializer.implementation import (
        DefaultResourceMaterializer,
    )
    from services.stage.resource_materializer.notification import (
        HttpNotificationSink,
        NullNotificationSink,
    )

    service_settings = resolve_resource_materializer_settings(settings)
    if notification_sink is None:
        endpoint = service_settings.notification.endpoint
        if endpoint is None:
            notification_sink = NullNotificationSink()
        else:
            notification_sink = HttpNotificationSink(
                endpoint,
                timeout_seconds=service_settings.notification.timeout_seconds,
                client=http_client,
            )
    return DefaultResourceMaterializer(
        spec,
        stage_name=service_settings.stage_name,
        notification_sink=notification_sink,
    )
