"""Blocking calling convention derived from ``ObjectOperationsClient``.

Each blocking method runs the matching coroutine on an event loop owned by
the adapter. Calls are serialized; the adapter must not be used from a thread
that is already running an event loop.
"""

from __future__ import annotations

import asyncio
import threading
from functools import wraps
from typing import Any, Callable, Coroutine

from packages.mfws_shared.logging import get_logger

from .objects import ObjectOperationsClient

_LOGGER = get_logger(__name__)

_CANCEL_POLL_SECONDS = 0.05


def _blocking(method: Callable[..., Coroutine[Any, Any, Any]]) -> Callable[..., Any]:
    """Expose one async client method as a blocking method of the adapter."""

    @wraps(method)
    def wrapper(self: BlockingObjectOperationsClient, *args: Any, **kwargs: Any) -> Any:
        return self._run(method, args, kwargs)

    return wrapper


class BlockingObjectOperationsClient:
    """Synchronous twin of ``ObjectOperationsClient``.

    ``cancel`` may be passed as a ``threading.Event``; setting it from any
    thread aborts the in-flight call with ``OperationCancelledError``.
    """

    def __init__(self, *, client: ObjectOperationsClient) -> None:
        self._client = client
        self._loop = asyncio.new_event_loop()
        self._lock = threading.Lock()
        self._closed = False

    create_new_object = _blocking(ObjectOperationsClient.create_new_object)
    set_checkout_status = _blocking(ObjectOperationsClient.set_checkout_status)
    get_checkout_status = _blocking(ObjectOperationsClient.get_checkout_status)
    check_out = _blocking(ObjectOperationsClient.check_out)
    check_in = _blocking(ObjectOperationsClient.check_in)
    get_deleted_status = _blocking(ObjectOperationsClient.get_deleted_status)
    get_history = _blocking(ObjectOperationsClient.get_history)
    add_to_favorites = _blocking(ObjectOperationsClient.add_to_favorites)
    remove_from_favorites = _blocking(ObjectOperationsClient.remove_from_favorites)

    def close(self) -> None:
        """Close the wrapped client's transport and the private event loop."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._loop.run_until_complete(self._client.aclose())
            finally:
                self._loop.close()

    def __enter__(self) -> BlockingObjectOperationsClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def _run(
        self,
        method: Callable[..., Coroutine[Any, Any, Any]],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise RuntimeError(
                f"{method.__name__} cannot block inside a running event loop; "
                "await ObjectOperationsClient instead"
            )

        with self._lock:
            if self._closed:
                raise RuntimeError("client is closed")
            return self._loop.run_until_complete(self._call(method, args, kwargs))

    async def _call(
        self,
        method: Callable[..., Coroutine[Any, Any, Any]],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        signal = kwargs.get("cancel")
        if not isinstance(signal, threading.Event):
            return await method(self._client, *args, **kwargs)

        event = asyncio.Event()
        if signal.is_set():
            event.set()
        relay = asyncio.ensure_future(_relay_cancel(signal, event))
        try:
            return await method(self._client, *args, **{**kwargs, "cancel": event})
        finally:
            relay.cancel()
            await asyncio.gather(relay, return_exceptions=True)


async def _relay_cancel(signal: threading.Event, event: asyncio.Event) -> None:
    """Mirror a thread-level cancel signal onto the loop's event."""
    while not signal.is_set():
        await asyncio.sleep(_CANCEL_POLL_SECONDS)
    _LOGGER.debug("Cancel signal received")
    event.set()
