"""Resource Materializer native package exports."""

from services.stage.resource_materializer.component import (
    DEFAULT_STAGE_NAME,
    SERVICE_COMPONENT_ID,
)
from services.stage.resource_materializer.config import (
    NotificationSettings,
    ResourceMaterializerSettings,
    TransportHttpSettings,
    resolve_resource_materializer_settings,
)
from services.stage.resource_materializer.domain import (
    DryRunConfig,
    MaterializerSpec,
    MaterializeOutcome,
    OutcomeKind,
    ProcessingUnit,
    Resource,
    ResourceMap,
    Transform,
    Transport,
)
from services.stage.resource_materializer.errors import (
    MaterializerError,
    PlanError,
    SpecificationError,
    TransportOrTransformError,
)
from services.stage.resource_materializer.implementation import (
    DefaultResourceMaterializer,
)
from services.stage.resource_materializer.notification import (
    HttpNotificationSink,
    NotificationSink,
    NullNotificationSink,
    dispatch_notification,
    drain_notifications,
)
from services.stage.resource_materializer.service import (
    ResourceMaterializerService,
    build_resource_materializer,
)

__all__ = [
    "DEFAULT_STAGE_NAME",
    "SERVICE_COMPONENT_ID",
    "DefaultResourceMaterializer",
    "DryRunConfig",
    "HttpNotificationSink",
    "MaterializeOutcome",
    "MaterializerError",
    "MaterializerSpec",
    "NotificationSettings",
    "NotificationSink",
    "NullNotificationSink",
    "OutcomeKind",
    "PlanError",
    "ProcessingUnit",
    "Resource",
    "ResourceMap",
    "ResourceMaterializerService",
    "ResourceMaterializerSettings",
    "SpecificationError",
    "Transform",
    "Transport",
    "TransportHttpSettings",
    "TransportOrTransformError",
    "build_resource_materializer",
    "dispatch_notification",
    "drain_notifications",
    "resolve_resource_materializer_settings",
]
