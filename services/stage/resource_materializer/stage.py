"""Pipeline-stage adapter over hosting-graph state.

A hosting workflow passes a ``StageState`` into ``invoke`` and merges the
returned partial ``StageUpdate`` with ``apply_update``. Messages accumulate;
the resource map is replaced only when the stage produced one.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from services.stage.resource_materializer.domain import (
    DryRunConfig,
    MaterializeOutcome,
    Resource,
    ResourceMap,
)
from services.stage.resource_materializer.service import ResourceMaterializerService


@dataclass(frozen=True)
class StageState:
    """Workflow state visible to one stage invocation."""

    resource_map: ResourceMap = field(default_factory=dict)
    dry_run: DryRunConfig = field(default_factory=DryRunConfig)
    messages: tuple[str, ...] = ()


@dataclass(frozen=True)
class StageUpdate:
    """Partial state produced by one stage invocation."""

    messages: tuple[str, ...] = ()
    resource_map: ResourceMap | None = None


class MaterializerStage:
    """Expose a materializer as a named workflow stage."""

    def __init__(self, materializer: ResourceMaterializerService) -> None:
        self._materializer = materializer

    @property
    def name(self) -> str:
        return self._materializer.stage_name

    async def invoke(self, state: StageState) -> StageUpdate:
        """Run the materializer against ``state`` and return a partial update."""
        outcome = await self._materializer.process(state.resource_map, state.dry_run)
        return update_from_outcome(outcome)


def update_from_outcome(outcome: MaterializeOutcome) -> StageUpdate:
    """Convert a materializer outcome into a stage update."""
    if outcome.simulated or outcome.resource_map is None:
        return StageUpdate(messages=(outcome.note,))
    return StageUpdate(messages=(outcome.note,), resource_map=outcome.resource_map)


def apply_update(state: StageState, update: StageUpdate) -> StageState:
    """Return new state with ``update`` merged in; ``state`` is left untouched."""
    resource_map: Mapping[str, Resource[Any]] = state.resource_map
    if update.resource_map is not None:
        resource_map = MappingProxyType(dict(update.resource_map))
    return StageState(
        resource_map=resource_map,
        dry_run=state.dry_run,
        messages=state.messages + tuple(update.messages),
    )
