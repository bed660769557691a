"""Error types raised by the Resource Materializer service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

FailedStage = Literal["transport", "transform"]


@dataclass(eq=False)
class MaterializerError(Exception):
    """Base error type for resource materializer failures."""

    message: str

    def __str__(self) -> str:
        """Return the human-readable error message."""
        return self.message


@dataclass(eq=False)
class SpecificationError(MaterializerError, ValueError):
    """Raised when processing units or unit sets are invalid."""


@dataclass(eq=False)
class PlanError(MaterializerError, ValueError):
    """Raised when a declarative unit plan cannot be loaded or resolved."""


@dataclass(eq=False)
class TransportOrTransformError(MaterializerError):
    """Raised when a unit's transport or transform fails for one resource."""

    key: str
    stage: FailedStage
    location: str
    cause: Exception

    @classmethod
    def wrap(
        cls,
        *,
        key: str,
        stage: FailedStage,
        location: str,
        cause: Exception,
    ) -> TransportOrTransformError:
        """Build the error with a message naming the failing key and stage."""
        return cls(
            message=(
                f"Error fetching or processing resource '{key}' during {stage}: {cause}"
            ),
            key=key,
            stage=stage,
            location=location,
            cause=cause,
        )
