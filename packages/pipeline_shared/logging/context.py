"""Per-task structured logging context.

Fields bound here (stage name, resource key, service) are copied onto every
record by ``ContextFilter``. The context lives in a ``ContextVar``, so each
asyncio task, including detached notification tasks, sees the values that
were bound when it was created.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

_EMPTY: Mapping[str, str] = MappingProxyType({})
_LOG_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar(
    "pipeline_log_context", default=_EMPTY
)


def get_context() -> dict[str, str]:
    """Return a copy of the fields bound in the current context."""
    return dict(_LOG_CONTEXT.get())


def _merged(values: Mapping[str, object]) -> Mapping[str, str]:
    """Return current fields updated with stringified non-None ``values``."""
    merged = dict(_LOG_CONTEXT.get())
    merged.update({str(key): str(value) for key, value in values.items() if value is not None})
    return MappingProxyType(merged)


def bind_context(**values: object) -> None:
    """Bind fields for the rest of the current context; ``None`` values are skipped."""
    if values:
        _LOG_CONTEXT.set(_merged(values))


def clear_context(*keys: str) -> None:
    """Drop the named fields, or every field when no names are given."""
    if not keys:
        _LOG_CONTEXT.set(_EMPTY)
        return
    remaining = {key: value for key, value in _LOG_CONTEXT.get().items() if key not in keys}
    _LOG_CONTEXT.set(MappingProxyType(remaining))


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` for the duration of a block."""
    token = _LOG_CONTEXT.set(_merged(values))
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)
