"""Pydantic settings for Resource Materializer behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.pipeline_shared.config import PipelineSettings, resolve_component_settings
from services.stage.resource_materializer.component import (
    DEFAULT_STAGE_NAME,
    SERVICE_COMPONENT_ID,
)
from services.stage.resource_materializer.domain import DryRunConfig


class NotificationSettings(BaseModel):
    """Remote notification endpoint used to signal that the stage ran."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint: str | None = None
    timeout_seconds: float = Field(default=5.0, gt=0)

    @field_validator("endpoint", mode="before")
    @classmethod
    def _blank_endpoint_is_none(cls, value: object) -> object:
        """Treat blank endpoints as unconfigured."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value


class TransportHttpSettings(BaseModel):
    """HTTP client options for built-in transports."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout_seconds: float = Field(default=10.0, gt=0)
    follow_redirects: bool = True


class ResourceMaterializerSettings(BaseModel):
    """Resource Materializer runtime behavior settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    stage_name: str = DEFAULT_STAGE_NAME
    notification: NotificationSettings = Field(default_factory=NotificationSettings)
    http: TransportHttpSettings = Field(default_factory=TransportHttpSettings)
    dry_run: DryRunConfig = Field(default_factory=DryRunConfig)

    @field_validator("stage_name", mode="before")
    @classmethod
    def _validate_stage_name(cls, value: object) -> object:
        """Reject blank stage names used in notifications and notes."""
        if isinstance(value, str):
            normalized = value.strip()
            if normalized == "":
                raise ValueError("stage_name must be non-empty")
            return normalized
        return value


def resolve_resource_materializer_settings(
    settings: PipelineSettings,
) -> ResourceMaterializerSettings:
    """Resolve materializer settings from ``service.resource_materializer``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=ResourceMaterializerSettings,
    )
