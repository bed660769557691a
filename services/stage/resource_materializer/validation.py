"""Declarative unit plans and resource-map parsing for the materializer.

A plan names, per resource key, which built-in transport and transform to use.
Plans are plain YAML so a workflow can declare units without writing code:

    units:
      - key: catalog
        transport: http
        transform: json
      - key: notes
        transform: lines
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from packages.pipeline_shared.http import AsyncHttpClient
from services.stage.resource_materializer.domain import (
    MaterializerSpec,
    ProcessingUnit,
    Resource,
    ResourceMap,
)
from services.stage.resource_materializer.errors import PlanError
from services.stage.resource_materializer.transforms import TRANSFORMS
from services.stage.resource_materializer.transports import TRANSPORT_FACTORIES


def _strip_text(value: object) -> object:
    """Normalize surrounding whitespace for textual plan fields."""
    if isinstance(value, str):
        return value.strip()
    return value


class UnitDeclaration(BaseModel):
    """One declared unit: a resource key plus capability names."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str = Field(min_length=1)
    transport: str = "auto"
    transform: str = "text"

    @field_validator("key", "transport", "transform", mode="before")
    @classmethod
    def _normalize_text(cls, value: object) -> object:
        """Normalize surrounding whitespace for declaration fields."""
        return _strip_text(value)


class MaterializerPlan(BaseModel):
    """Validated list of unit declarations with unique keys."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    units: list[UnitDeclaration] = Field(default_factory=list)

    @model_validator(mode="after")
    def _reject_duplicate_keys(self) -> MaterializerPlan:
        """Reject plans that declare the same key twice."""
        seen: set[str] = set()
        for unit in self.units:
            if unit.key in seen:
                raise ValueError(f"duplicate unit key: {unit.key}")
            seen.add(unit.key)
        return self


def load_plan(path: str | Path) -> MaterializerPlan:
    """Load and validate a YAML plan file."""
    resolved = Path(path)
    try:
        raw = yaml.safe_load(resolved.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise PlanError(f"Cannot read plan file {resolved}: {exc}") from exc
    return parse_plan(raw if raw is not None else {}, source=str(resolved))


def parse_plan(data: object, *, source: str = "<plan>") -> MaterializerPlan:
    """Validate raw plan data into a ``MaterializerPlan``."""
    if not isinstance(data, Mapping):
        raise PlanError(f"Plan {source} must contain a top-level mapping")
    try:
        return MaterializerPlan.model_validate(dict(data))
    except ValidationError as exc:
        raise PlanError(f"Invalid plan {source}: {exc}") from exc


def build_spec(
    plan: MaterializerPlan,
    *,
    http_client: AsyncHttpClient | None = None,
    timeout_seconds: float = 10.0,
) -> MaterializerSpec:
    """Resolve capability names in ``plan`` into an executable spec."""
    units: list[ProcessingUnit] = []
    for declaration in plan.units:
        transport_factory = TRANSPORT_FACTORIES.get(declaration.transport)
        if transport_factory is None:
            raise PlanError(
                f"Unknown transport '{declaration.transport}' for unit {declaration.key}; "
                f"expected one of {sorted(TRANSPORT_FACTORIES)}"
            )
        transform = TRANSFORMS.get(declaration.transform)
        if transform is None:
            raise PlanError(
                f"Unknown transform '{declaration.transform}' for unit {declaration.key}; "
                f"expected one of {sorted(TRANSFORMS)}"
            )
        units.append(
            ProcessingUnit(
                key=declaration.key,
                transport=transport_factory(http_client, timeout_seconds),
                transform=transform,
            )
        )
    return MaterializerSpec.of(units)


def parse_resource_map(data: object) -> ResourceMap:
    """Validate raw ``{key: {path, ...}}`` data into a resource map."""
    if not isinstance(data, Mapping):
        raise PlanError("Resource map must be a mapping of key to resource")
    resources: dict[str, Resource[Any]] = {}
    for key, raw in data.items():
        if not isinstance(key, str) or key.strip() == "":
            raise PlanError(f"Resource keys must be non-empty strings: {key!r}")
        try:
            resources[key] = Resource.model_validate(raw)
        except ValidationError as exc:
            raise PlanError(f"Invalid resource '{key}': {exc}") from exc
    return resources
