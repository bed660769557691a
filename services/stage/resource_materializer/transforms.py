"""Built-in transform capabilities for processing units.

Transforms turn raw transport content into a unit's typed value. The
materializer never inspects the value; ``typed_transform`` lets a unit
validate its own payload shape instead.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Callable, Mapping
from typing import Any, Final, TypeVar

import yaml
from pydantic import TypeAdapter

T = TypeVar("T")


def text_transform(content: Any) -> str:
    """Return content as text, decoding bytes as UTF-8."""
    if isinstance(content, bytes):
        return content.decode("utf-8")
    return str(content)


def json_transform(content: Any) -> Any:
    """Parse JSON text into Python values."""
    return json.loads(text_transform(content))


def yaml_transform(content: Any) -> Any:
    """Parse YAML text into Python values using the safe loader."""
    return yaml.safe_load(text_transform(content))


def lines_transform(content: Any) -> list[str]:
    """Split text into stripped, non-empty lines."""
    return [line.strip() for line in text_transform(content).splitlines() if line.strip()]


def typed_transform(
    type_: type[T] | Any,
    inner: Callable[[Any], Any] = json_transform,
) -> Callable[[Any], Any]:
    """Wrap ``inner`` so its output is validated as ``type_`` with pydantic."""
    adapter: TypeAdapter[T] = TypeAdapter(type_)

    async def transform(content: Any) -> T:
        value = inner(content)
        if inspect.isawaitable(value):
            value = await value
        return adapter.validate_python(value)

    return transform


TRANSFORMS: Final[Mapping[str, Callable[[Any], Any]]] = {
    "text": text_transform,
    "json": json_transform,
    "yaml": yaml_transform,
    "lines": lines_transform,
}
