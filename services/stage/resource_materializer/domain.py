"""Domain contracts for the Resource Materializer service."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeAlias, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.stage.resource_materializer.errors import SpecificationError

ValueT = TypeVar("ValueT")

Transport: TypeAlias = Callable[[str], Awaitable[Any]]
Transform: TypeAlias = Callable[[Any], Any]


class Resource(BaseModel, Generic[ValueT]):
    """One immutable resource snapshot keyed by logical name in a resource map.

    ``path`` is an opaque location string or URI. ``value`` holds the last
    computed result and its shape is owned by the unit's transform. Unknown
    attributes are kept so a materialized copy preserves everything except
    ``value``.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    path: str
    value: ValueT | None = None

    @field_validator("path")
    @classmethod
    def _require_path(cls, value: str) -> str:
        """Reject blank resource locations."""
        if value.strip() == "":
            raise ValueError("path must be non-empty")
        return value

    @property
    def has_value(self) -> bool:
        """Return True when ``value`` was explicitly set on this snapshot."""
        return "value" in self.model_fields_set

    def with_value(self, value: Any) -> Resource[Any]:
        """Return a new snapshot equal to this one except for ``value``."""
        updated = self.model_copy(update={"value": value})
        updated.model_fields_set.add("value")
        return updated


ResourceMap: TypeAlias = Mapping[str, Resource[Any]]


@dataclass(frozen=True)
class ProcessingUnit:
    """Binding of a resource key to its transport and transform capabilities."""

    key: str
    transport: Transport
    transform: Transform

    def __post_init__(self) -> None:
        if not isinstance(self.key, str):
            raise SpecificationError(
                f"Unit key must be a string (type={type(self.key).__name__})"
            )
        key = self.key.strip()
        if not key:
            raise SpecificationError("Unit key cannot be empty")
        object.__setattr__(self, "key", key)
        if not callable(self.transport):
            raise SpecificationError(f"Unit {key} transport must be callable")
        if not callable(self.transform):
            raise SpecificationError(f"Unit {key} transform must be callable")


@dataclass(frozen=True)
class MaterializerSpec:
    """Ordered, read-only set of processing units owned by one materializer."""

    units: tuple[ProcessingUnit, ...] = ()
    _index: dict[str, ProcessingUnit] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        units = tuple(self.units)
        object.__setattr__(self, "units", units)
        index: dict[str, ProcessingUnit] = {}
        for unit in units:
            if not isinstance(unit, ProcessingUnit):
                raise SpecificationError(
                    f"Spec units must be ProcessingUnit (type={type(unit).__name__})"
                )
            if unit.key in index:
                raise SpecificationError(f"Duplicate unit key: {unit.key}")
            index[unit.key] = unit
        object.__setattr__(self, "_index", index)

    @classmethod
    def of(cls, units: Iterable[ProcessingUnit]) -> MaterializerSpec:
        """Build a spec from any iterable of units."""
        return cls(units=tuple(units))

    def keys(self) -> tuple[str, ...]:
        """Return unit keys in declaration order."""
        return tuple(unit.key for unit in self.units)

    def unit_for(self, key: str) -> ProcessingUnit | None:
        """Return the unit declared for ``key``, or None when absent."""
        return self._index.get(key)


class DryRunConfig(BaseModel):
    """Dry-run switches supplied by the hosting workflow per invocation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    suppress_notification: bool = False
    simulate: bool = False
    simulate_delay_ms: int = Field(default=0, ge=0)

    @property
    def simulate_delay_seconds(self) -> float:
        """Return the simulated delay converted to seconds."""
        return self.simulate_delay_ms / 1000.0


class OutcomeKind(str, Enum):
    """How one ``process`` invocation completed."""

    COMPLETED = "completed"
    SIMULATED = "simulated"


@dataclass(frozen=True)
class MaterializeOutcome:
    """Result of one materializer invocation.

    ``resource_map`` is a fresh map for completed runs and None for simulated
    runs, where the caller keeps its current map unchanged.
    """

    kind: OutcomeKind
    note: str
    resource_map: ResourceMap | None = None
    processed_keys: tuple[str, ...] = ()
    skipped_keys: tuple[str, ...] = ()

    @property
    def simulated(self) -> bool:
        """Return True when the run was replaced by a timed no-op."""
        return self.kind == OutcomeKind.SIMULATED
