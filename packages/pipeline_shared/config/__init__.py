"""Public API for shared pipeline configuration utilities."""

from .loader import load_settings
from .models import (
    COMPONENT_KINDS,
    DEFAULT_CONFIG_PATH,
    ENV_PREFIX,
    ComponentsSettings,
    LoggingSettings,
    PipelineSettings,
    config_file,
    resolve_component_settings,
)

__all__ = [
    "COMPONENT_KINDS",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "ComponentsSettings",
    "LoggingSettings",
    "PipelineSettings",
    "config_file",
    "load_settings",
    "resolve_component_settings",
]
