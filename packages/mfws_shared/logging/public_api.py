"""Instrumentation decorator for public client operations.

``public_api_instrumented`` wraps one sync or coroutine method and dispatches
invocation/completion events to a set of concerns. Concern failures are
logged and never change the outcome of the wrapped call.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from functools import wraps
from time import perf_counter
from typing import Any, Callable, Mapping, Protocol, Sequence

from . import fields
from .context import log_context


@dataclass(frozen=True)
class InvocationContext:
    """Structured metadata describing one operation invocation."""

    component_id: str
    operation: str
    references: Mapping[str, str]


@dataclass(frozen=True)
class CompletionContext:
    """Structured metadata describing one completed operation invocation."""

    invocation: InvocationContext
    success: bool
    duration_ms: float
    errors: list[str]
    error_type: str | None = None


class PublicApiInstrumentationConcern(Protocol):
    """Hook contract for one instrumentation concern."""

    def on_invocation(self, context: InvocationContext) -> None:
        """Handle invocation-start event for one method call."""

    def on_completion(self, context: CompletionContext) -> None:
        """Handle completion event for one method call."""


class PublicApiLoggingConcern:
    """Emit one structured log line per invocation and per completion."""

    def __init__(self, *, logger: Any) -> None:
        self._logger = logger

    def on_invocation(self, context: InvocationContext) -> None:
        with log_context(_invocation_log_context(context)):
            self._logger.debug("Operation invocation")

    def on_completion(self, context: CompletionContext) -> None:
        payload = _invocation_log_context(context.invocation)
        payload.update(
            {
                fields.EVENT: fields.COMPLETION_EVENT,
                fields.SUCCESS: context.success,
                fields.DURATION_MS: context.duration_ms,
                fields.ERRORS: context.errors,
                fields.ERROR_TYPE: context.error_type,
            }
        )
        with log_context(payload):
            if context.success:
                self._logger.info("Operation completion")
            else:
                self._logger.warning("Operation completion")


def public_api_instrumented(
    *,
    component_id: str,
    operation: str | None = None,
    id_fields: tuple[str, ...] = (),
    concerns: Sequence[PublicApiInstrumentationConcern] | None = None,
    logger: Any | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate one public method with composable instrumentation concerns.

    ``id_fields`` names keyword arguments whose values are attached to every
    event as references (for example ``object_id``). Works for both plain and
    ``async def`` methods. A cancelled coroutine still reports a failed
    completion before ``asyncio.CancelledError`` propagates.
    """
    resolved_concerns: tuple[PublicApiInstrumentationConcern, ...] = tuple(
        concerns or ()
    )
    if logger is not None:
        resolved_concerns = (PublicApiLoggingConcern(logger=logger), *resolved_concerns)
    if len(resolved_concerns) == 0:
        raise ValueError("public_api_instrumented requires at least one concern")

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = operation or func.__name__

        def _start(args: tuple[Any, ...], kwargs: dict[str, Any]) -> InvocationContext:
            invocation = InvocationContext(
                component_id=component_id,
                operation=name,
                references=_references(func, id_fields, args, kwargs),
            )
            _dispatch(
                "invocation", concerns=resolved_concerns, context=invocation, logger=logger
            )
            return invocation

        def _finish(
            invocation: InvocationContext, started: float, exc: BaseException | None
        ) -> None:
            completion = CompletionContext(
                invocation=invocation,
                success=exc is None,
                duration_ms=round((perf_counter() - started) * 1000.0, 3),
                errors=[] if exc is None else [f"{type(exc).__name__}: {exc}"],
                error_type=None if exc is None else type(exc).__name__,
            )
            _dispatch(
                "completion", concerns=resolved_concerns, context=completion, logger=logger
            )

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                invocation = _start(args, kwargs)
                started = perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except BaseException as exc:
                    _finish(invocation, started, exc)
                    raise
                _finish(invocation, started, None)
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            invocation = _start(args, kwargs)
            started = perf_counter()
            try:
                result = func(*args, **kwargs)
            except BaseException as exc:
                _finish(invocation, started, exc)
                raise
            _finish(invocation, started, None)
            return result

        return wrapper

    return decorator


def _references(
    func: Callable[..., Any],
    id_fields: tuple[str, ...],
    args: tuple[Any, ...],
    kwargs: Mapping[str, Any],
) -> dict[str, str]:
    """Collect reference values for ``id_fields`` from bound call arguments."""
    if not id_fields:
        return {}
    try:
        bound = inspect.signature(func).bind_partial(*args, **kwargs)
    except TypeError:
        bound_arguments: Mapping[str, Any] = kwargs
    else:
        bound_arguments = bound.arguments
    return {
        name: str(bound_arguments[name])
        for name in id_fields
        if bound_arguments.get(name) not in (None, "")
    }


def _invocation_log_context(context: InvocationContext) -> dict[str, object]:
    return {
        fields.EVENT: fields.INVOCATION_EVENT,
        fields.COMPONENT_ID: context.component_id,
        fields.OPERATION: context.operation,
        **context.references,
    }


def _dispatch(
    stage: str,
    *,
    concerns: Sequence[PublicApiInstrumentationConcern],
    context: InvocationContext | CompletionContext,
    logger: Any | None,
) -> None:
    """Call ``on_<stage>`` on every concern; a failing hook only logs a warning."""
    invocation = context if isinstance(context, InvocationContext) else context.invocation
    for concern in concerns:
        try:
            getattr(concern, f"on_{stage}")(context)
        except Exception as exc:  # noqa: BLE001
            if logger is None:
                continue
            with log_context(
                {
                    fields.EVENT: fields.INSTRUMENTATION_FAILURE_EVENT,
                    fields.COMPONENT_ID: invocation.component_id,
                    fields.OPERATION: invocation.operation,
                    fields.STAGE: stage,
                    fields.CONCERN: type(concern).__name__,
                    fields.ERRORS: [f"{type(exc).__name__}: {exc}"],
                }
            ):
                logger.warning("Operation instrumentation concern failed")
