"""Structured logging context carried in a ``ContextVar``.

The context is an immutable snapshot of string fields. Binding replaces the
snapshot, so each asyncio task sees the fields bound in its own context and
inherits a copy of its parent's fields when it is created.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

_EMPTY: Mapping[str, str] = MappingProxyType({})
_LOG_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar(
    "mfws_log_context", default=_EMPTY
)


def get_context() -> dict[str, str]:
    """Return the bound fields as a new ``dict``."""
    return dict(_LOG_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Bind ``values`` into the current context; ``None`` values are skipped."""
    rendered = _render(values)
    if rendered:
        _LOG_CONTEXT.set(MappingProxyType({**_LOG_CONTEXT.get(), **rendered}))


def clear_context(*keys: str) -> None:
    """Drop ``keys``, or every field when no key is given."""
    if not keys:
        _LOG_CONTEXT.set(_EMPTY)
        return
    remaining = {k: v for k, v in _LOG_CONTEXT.get().items() if k not in keys}
    _LOG_CONTEXT.set(MappingProxyType(remaining))


@contextmanager
def log_context(
    values: Mapping[str, object] | None = None, /, **extra: object
) -> Iterator[None]:
    """Bind fields for the duration of the block, restoring the previous set."""
    token = _LOG_CONTEXT.set(_LOG_CONTEXT.get())
    try:
        bind_context(**{**(values or {}), **extra})
        yield
    finally:
        _LOG_CONTEXT.reset(token)


def _render(values: Mapping[str, object]) -> dict[str, str]:
    rendered: dict[str, str] = {}
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            rendered[str(key)] = "; ".join(str(item) for item in value)
        else:
            rendered[str(key)] = str(value)
    return rendered
