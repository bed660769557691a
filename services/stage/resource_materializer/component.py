"""Component declaration for the Resource Materializer service."""

from __future__ import annotations

from typing import Final

SERVICE_COMPONENT_ID: Final[str] = "service_resource_materializer"
DEFAULT_STAGE_NAME: Final[str] = "NodeDown"
