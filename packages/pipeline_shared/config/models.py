"""Typed configuration models for pipeline runtime settings."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Iterator, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "pipeline" / "pipeline.yaml"

COMPONENT_KINDS = ("service",)

ENV_PREFIX = "PIPELINE_"

_CONFIG_PATH: ContextVar[Path] = ContextVar(
    "pipeline_config_path", default=DEFAULT_CONFIG_PATH
)


class LoggingSettings(BaseModel):
    """Root logging options applied once by each entrypoint."""

    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "pipeline"
    environment: str = "dev"


class ComponentsSettings(BaseModel):
    """Per-component settings grouped as ``components.<kind>.<name>``.

    Component subtrees stay untyped here; each component validates its own
    subtree with ``resolve_component_settings``.
    """

    model_config = ConfigDict(extra="forbid")

    service: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _reject_flat_component_keys(cls, value: object) -> object:
        """Point ``components.service_x`` users at ``components.service.x``."""
        if not isinstance(value, dict):
            return value
        for key in value:
            for kind in COMPONENT_KINDS:
                if isinstance(key, str) and key.startswith(f"{kind}_"):
                    name = key.removeprefix(f"{kind}_")
                    raise ValueError(
                        f"components.{key} is invalid; use components.{kind}.{name} instead"
                    )
        return value


class PipelineSettings(BaseSettings):
    """Root settings resolved from init kwargs, environment, YAML, and defaults.

    Precedence, highest first: keyword arguments (CLI params), ``PIPELINE_*``
    environment variables with ``__`` between nested keys, then the YAML
    config file. ``PIPELINE_COMPONENTS__SERVICE__RESOURCE_MATERIALIZER__STAGE_NAME``
    therefore sets ``components.service.resource_materializer.stage_name``.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    components: ComponentsSettings = Field(default_factory=ComponentsSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Read init kwargs, then env vars, then the active YAML config file."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(
                settings_cls,
                yaml_file=_CONFIG_PATH.get(),
                yaml_file_encoding="utf-8",
            ),
        )


@contextmanager
def config_file(path: Path) -> Iterator[None]:
    """Read ``path`` instead of ``DEFAULT_CONFIG_PATH`` for settings built in the block."""
    token = _CONFIG_PATH.set(path)
    try:
        yield
    finally:
        _CONFIG_PATH.reset(token)


SettingsT = TypeVar("SettingsT", bound=BaseModel)


def resolve_component_settings(
    *,
    settings: PipelineSettings,
    component_id: str,
    model: type[SettingsT],
) -> SettingsT:
    """Validate one component's subtree, e.g. ``service_x`` -> ``components.service.x``."""
    kind, _, name = component_id.partition("_")
    if kind not in COMPONENT_KINDS or not name:
        raise ValueError(f"Unknown component id: {component_id}")
    namespace: dict[str, Any] = getattr(settings.components, kind)
    subtree = namespace.get(name, {})
    if not isinstance(subtree, dict):
        raise TypeError(f"components.{kind}.{name} must resolve to an object mapping")
    return model.model_validate(subtree)
