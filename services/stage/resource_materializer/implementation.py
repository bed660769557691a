"""Concrete Resource Materializer implementation."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from packages.pipeline_shared.logging import fields, get_logger, log_context
from services.stage.resource_materializer.component import DEFAULT_STAGE_NAME
from services.stage.resource_materializer.domain import (
    DryRunConfig,
    MaterializerSpec,
    MaterializeOutcome,
    OutcomeKind,
    ProcessingUnit,
    Resource,
    ResourceMap,
)
from services.stage.resource_materializer.errors import (
    SpecificationError,
    TransportOrTransformError,
)
from services.stage.resource_materializer.notification import (
    NotificationSink,
    NullNotificationSink,
    dispatch_notification,
)
from services.stage.resource_materializer.service import ResourceMaterializerService

_LOGGER = get_logger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class DefaultResourceMaterializer(ResourceMaterializerService):
    """Materialize resource values one key at a time, failing fast.

    Units are read-only after construction, so concurrent ``process`` calls
    with different maps are safe. No reference to either map is retained after
    a call returns.
    """

    def __init__(
        self,
        spec: MaterializerSpec,
        *,
        stage_name: str = DEFAULT_STAGE_NAME,
        notification_sink: NotificationSink | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if not isinstance(spec, MaterializerSpec):
            raise SpecificationError(
                f"spec must be a MaterializerSpec (type={type(spec).__name__})"
            )
        if stage_name.strip() == "":
            raise SpecificationError("stage_name cannot be empty")
        self._spec = spec
        self._stage_name = stage_name.strip()
        self._sink = notification_sink or NullNotificationSink()
        self._sleep = sleep

    @property
    def stage_name(self) -> str:
        return self._stage_name

    @property
    def spec(self) -> MaterializerSpec:
        return self._spec

    async def process(
        self,
        resource_map: ResourceMap,
        dry_run: DryRunConfig | None = None,
    ) -> MaterializeOutcome:
        """Fetch and transform every matched resource into a fresh map."""
        dry_run = dry_run or DryRunConfig()
        with log_context({fields.STAGE: self._stage_name}):
            if not dry_run.suppress_notification:
                dispatch_notification(self._sink, self._stage_name)

            if dry_run.simulate:
                await self._sleep(dry_run.simulate_delay_seconds)
                _LOGGER.info(
                    "Stage simulated: delay_ms=%s", dry_run.simulate_delay_ms
                )
                return MaterializeOutcome(
                    kind=OutcomeKind.SIMULATED,
                    note=f"{self._stage_name} completed in DryRun mode",
                )

            return await self._materialize(resource_map)

    async def _materialize(self, resource_map: ResourceMap) -> MaterializeOutcome:
        """Run transport then transform for each matched key, in map order."""
        new_map: dict[str, Resource[Any]] = dict(resource_map)
        processed: list[str] = []
        skipped: list[str] = []

        for key in list(resource_map.keys()):
            with log_context({fields.RESOURCE_KEY: key}):
                unit = self._spec.unit_for(key)
                if unit is None:
                    _LOGGER.debug("Skipping resource: %s", key)
                    skipped.append(key)
                    continue

                resource = resource_map[key]
                value = await self._run_unit(unit, key, resource)
                new_map[key] = resource.with_value(value)
                processed.append(key)
                _LOGGER.debug("Materialized resource: %s", key)

        _LOGGER.info(
            "Stage completed: processed=%d skipped=%d", len(processed), len(skipped)
        )
        return MaterializeOutcome(
            kind=OutcomeKind.COMPLETED,
            note=f"{self._stage_name} completed",
            resource_map=new_map,
            processed_keys=tuple(processed),
            skipped_keys=tuple(skipped),
        )

    async def _run_unit(
        self, unit: ProcessingUnit, key: str, resource: Resource[Any]
    ) -> Any:
        """Await transport, then transform, wrapping either failure with context."""
        try:
            content = await unit.transport(resource.path)
        except Exception as exc:
            raise TransportOrTransformError.wrap(
                key=key, stage="transport", location=resource.path, cause=exc
            ) from exc

        try:
            value = unit.transform(content)
            if inspect.isawaitable(value):
                value = await value
        except Exception as exc:
            raise TransportOrTransformError.wrap(
                key=key, stage="transform", location=resource.path, cause=exc
            ) from exc
        return value
