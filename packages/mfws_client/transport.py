"""Shared HTTP transport for M-Files Web Service resources."""

from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Any, Awaitable, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from packages.mfws_shared.config import ClientSettings
from packages.mfws_shared.http import AsyncHttpClient, HttpError
from packages.mfws_shared.logging import get_logger, log_context
from packages.mfws_shared.logging import fields

from .errors import DecodingError, OperationCancelledError, map_http_error

_LOGGER = get_logger(__name__)

REST_ROOT = "/REST"
AUTHENTICATION_HEADER = "X-Authentication"
VAULT_HEADER = "X-Vault"

ResponseT = TypeVar("ResponseT")


class VaultTransport:
    """Issue verb-specific calls against ``/REST`` and decode typed payloads.

    Each call sends exactly one request. ``cancel`` is an optional
    ``asyncio.Event``; setting it before the response arrives aborts the
    in-flight request and raises ``OperationCancelledError``.
    """

    def __init__(
        self,
        *,
        http: AsyncHttpClient,
        authentication_token: str = "",
        vault_guid: str = "",
    ) -> None:
        self._http = http
        headers: dict[str, str] = {"Accept": "application/json"}
        if authentication_token.strip() != "":
            headers[AUTHENTICATION_HEADER] = authentication_token.strip()
        if vault_guid.strip() != "":
            headers[VAULT_HEADER] = vault_guid.strip()
        self._headers = headers

    @classmethod
    def from_settings(cls, settings: ClientSettings, **http_options: Any) -> VaultTransport:
        """Build a transport owning its own HTTP client from client settings."""
        http = AsyncHttpClient(
            base_url=settings.base_url,
            timeout_seconds=settings.timeout_seconds,
            follow_redirects=settings.follow_redirects,
            **http_options,
        )
        return cls(
            http=http,
            authentication_token=settings.authentication_token,
            vault_guid=settings.vault_guid,
        )

    async def aclose(self) -> None:
        """Close the owned HTTP client."""
        await self._http.aclose()

    async def __aenter__(self) -> VaultTransport:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def get(
        self,
        path: str,
        *,
        response_type: type[ResponseT] | Any,
        operation: str,
        cancel: asyncio.Event | None = None,
    ) -> ResponseT:
        """Send one GET to ``/REST/{path}``."""
        return await self.call(
            "GET", path, response_type=response_type, operation=operation, cancel=cancel
        )

    async def post(
        self,
        path: str,
        *,
        body: BaseModel | None,
        response_type: type[ResponseT] | Any,
        operation: str,
        cancel: asyncio.Event | None = None,
    ) -> ResponseT:
        """Send one POST to ``/REST/{path}``."""
        return await self.call(
            "POST",
            path,
            body=body,
            response_type=response_type,
            operation=operation,
            cancel=cancel,
        )

    async def put(
        self,
        path: str,
        *,
        body: BaseModel | None,
        response_type: type[ResponseT] | Any,
        operation: str,
        cancel: asyncio.Event | None = None,
    ) -> ResponseT:
        """Send one PUT to ``/REST/{path}``."""
        return await self.call(
            "PUT",
            path,
            body=body,
            response_type=response_type,
            operation=operation,
            cancel=cancel,
        )

    async def delete(
        self,
        path: str,
        *,
        response_type: type[ResponseT] | Any,
        operation: str,
        cancel: asyncio.Event | None = None,
    ) -> ResponseT:
        """Send one DELETE to ``/REST/{path}``."""
        return await self.call(
            "DELETE",
            path,
            response_type=response_type,
            operation=operation,
            cancel=cancel,
        )

    async def call(
        self,
        method: str,
        path: str,
        *,
        response_type: type[ResponseT] | Any,
        operation: str,
        body: BaseModel | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ResponseT:
        """Send one request to ``/REST/{path}`` and validate the JSON reply."""
        url = resource_url(path)
        payload = _serialize(body)
        if cancel is not None and cancel.is_set():
            raise _cancelled(operation)

        with log_context({fields.HTTP_METHOD: method, fields.HTTP_PATH: url}):
            _LOGGER.debug("Sending request")
        try:
            response = await _until_cancelled(
                self._http.request_json(method, url, json=payload, headers=self._headers),
                cancel=cancel,
            )
        except HttpError as exc:
            raise map_http_error(operation=operation, error=exc) from exc
        if response is None:
            with log_context({fields.OPERATION: operation, fields.HTTP_PATH: url}):
                _LOGGER.info("Request cancelled")
            raise _cancelled(operation)

        return decode(
            response.payload,
            response_type=response_type,
            operation=operation,
            raw=response.text,
        )


def resource_url(path: str) -> str:
    """Return the server-relative URL for one resource path under ``/REST``."""
    return f"{REST_ROOT}/{path.lstrip('/')}"


def decode(
    payload: Any, *, response_type: Any, operation: str, raw: str = ""
) -> Any:
    """Validate one decoded JSON payload against ``response_type``."""
    try:
        return _adapter(response_type).validate_python(payload)
    except ValidationError as exc:
        raise DecodingError(
            message=f"{operation} response did not match {_type_name(response_type)}: "
            f"{exc.error_count()} validation error(s)",
            operation=operation,
            response_body=raw,
        ) from exc


@lru_cache(maxsize=64)
def _adapter(response_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(response_type)


def _type_name(response_type: Any) -> str:
    return getattr(response_type, "__name__", str(response_type))


def _serialize(body: BaseModel | None) -> Any:
    if body is None:
        return None
    return body.model_dump(mode="json", by_alias=True, exclude_none=True)


def _cancelled(operation: str) -> OperationCancelledError:
    return OperationCancelledError(
        message=f"{operation} was cancelled", operation=operation
    )


async def _until_cancelled(
    awaitable: Awaitable[ResponseT],
    *,
    cancel: asyncio.Event | None,
) -> ResponseT | None:
    """Await ``awaitable``; ``None`` when ``cancel`` is set first."""
    if cancel is None:
        return await awaitable

    request = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait(
            {request, waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        request.cancel()
        raise
    finally:
        waiter.cancel()

    if request in done:
        return request.result()

    request.cancel()
    await asyncio.gather(request, return_exceptions=True)
    return None
