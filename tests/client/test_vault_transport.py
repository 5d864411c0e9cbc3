"""Unit tests for VaultTransport error mapping, decoding and cancellation."""

from __future__ import annotations

import asyncio
import time

import httpx
import pytest

from packages.mfws_client import (
    DecodingError,
    MFCheckOutStatus,
    ObjectOperationsClient,
    ObjectVersion,
    ObjID,
    OperationCancelledError,
    RequestFailedError,
    TransportError,
    VaultTransport,
)
from packages.mfws_client.errors import parse_server_error
from packages.mfws_client.transport import resource_url
from packages.mfws_shared.config import ClientSettings
from packages.mfws_shared.http import AsyncHttpClient, HttpStatusError
from packages.mfws_shared.logging import log_context


def _transport(handler, **kwargs) -> VaultTransport:
    http = AsyncHttpClient(
        base_url="https://vault.test", transport=httpx.MockTransport(handler)
    )
    return VaultTransport(http=http, **kwargs)


def _client(handler) -> ObjectOperationsClient:
    return ObjectOperationsClient(transport=_transport(handler))


def test_resource_url_prefixes_rest_root() -> None:
    """Resource paths are rooted under ``/REST`` exactly once."""
    assert resource_url("objects/0") == "/REST/objects/0"
    assert resource_url("/favorites") == "/REST/favorites"


def test_default_headers_carry_token_and_vault() -> None:
    """Configured token and vault GUID are sent on every request."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    async def _run() -> None:
        async with _transport(
            handler, authentication_token=" token-1 ", vault_guid="{VAULT}"
        ) as transport:
            await transport.get(
                "objects/0/1/history",
                response_type=list[ObjectVersion],
                operation="objects.get_history",
            )

    asyncio.run(_run())

    assert seen[0].headers["X-Authentication"] == "token-1"
    assert seen[0].headers["X-Vault"] == "{VAULT}"
    assert seen[0].headers["Accept"] == "application/json"


def test_blank_token_is_not_sent() -> None:
    """Empty credentials produce no authentication or vault header."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"Value": False})

    async def _run() -> None:
        async with _client(handler) as client:
            await client.get_deleted_status(ObjID(type=0, id=1))

    asyncio.run(_run())

    assert "X-Authentication" not in seen[0].headers
    assert "X-Vault" not in seen[0].headers


def test_from_settings_uses_client_settings() -> None:
    """A transport built from settings uses its base URL and token."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"Value": True})

    settings = ClientSettings(
        base_url="https://mfiles.example.test/",
        authentication_token="abc",
    )

    async def _run() -> bool | None:
        transport = VaultTransport.from_settings(
            settings, transport=httpx.MockTransport(handler)
        )
        async with ObjectOperationsClient(transport=transport) as client:
            return await client.get_deleted_status(ObjID(type=0, id=9))

    assert asyncio.run(_run()) is True
    assert str(seen[0].url) == "https://mfiles.example.test/REST/objects/0/9/deleted"
    assert seen[0].headers["X-Authentication"] == "abc"


def test_status_error_maps_server_message() -> None:
    """M-Files error bodies populate code, message and request details."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404,
            json={
                "Status": 404,
                "Message": "Not found.",
                "Exception": {"Name": "ObjectNotFoundException", "Message": "inner"},
            },
        )

    async def _run() -> None:
        async with _client(handler) as client:
            await client.get_history(ObjID(type=0, id=404))

    with pytest.raises(RequestFailedError) as exc_info:
        asyncio.run(_run())

    error = exc_info.value
    assert error.status_code == 404
    assert error.operation == "objects.get_history"
    assert error.method == "GET"
    assert error.url == "https://vault.test/REST/objects/0/404/history"
    assert error.error_code == "ObjectNotFoundException"
    assert error.server_message == "Not found."
    assert error.retryable is False
    assert str(error) == "objects.get_history failed with HTTP 404: Not found."


def test_status_error_falls_back_to_reason_phrase() -> None:
    """Non-JSON error bodies fall back to the HTTP reason phrase."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="<html>down</html>")

    async def _run() -> None:
        async with _client(handler) as client:
            await client.check_out(ObjID(type=0, id=1))

    with pytest.raises(RequestFailedError) as exc_info:
        asyncio.run(_run())

    assert exc_info.value.status_code == 503
    assert exc_info.value.server_message == ""
    assert exc_info.value.retryable is True
    assert str(exc_info.value).endswith("HTTP 503: Service Unavailable")


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ('{"Message": "Denied"}', ("", "Denied")),
        ('{"Exception": {"Name": "E", "Message": "inner"}}', ("E", "inner")),
        ('{"Message": "  ", "Exception": {"Message": "inner"}}', ("", "inner")),
        ("[1, 2]", ("", "")),
        ("not json", ("", "")),
        ("", ("", "")),
    ],
)
def test_parse_server_error(body: str, expected: tuple[str, str]) -> None:
    """Server error bodies yield the exception name and best message."""
    assert parse_server_error(body) == expected


def test_non_json_success_body_is_decoding_error() -> None:
    """A 2xx body that is not JSON is a ``DecodingError``."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>login</html>")

    async def _run() -> None:
        async with _client(handler) as client:
            await client.get_history(ObjID(type=0, id=1))

    with pytest.raises(DecodingError) as exc_info:
        asyncio.run(_run())

    assert exc_info.value.operation == "objects.get_history"
    assert exc_info.value.response_body == "<html>login</html>"


@pytest.mark.parametrize(
    "payload",
    [
        {"Title": "missing ObjVer"},
        [{"ObjVer": {"Type": 0, "ID": 1, "Version": 1}}],
        "text",
    ],
)
def test_shape_mismatch_is_decoding_error(payload: object) -> None:
    """JSON of the wrong shape is a ``DecodingError``, not a pydantic error."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    async def _run() -> None:
        async with _client(handler) as client:
            await client.check_in(ObjID(type=0, id=1))

    with pytest.raises(DecodingError) as exc_info:
        asyncio.run(_run())

    assert exc_info.value.operation == "objects.check_in"


def test_unknown_checkout_status_is_decoding_error() -> None:
    """A status value outside the enum is a ``DecodingError``."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"Value": 7})

    async def _run() -> MFCheckOutStatus | None:
        async with _client(handler) as client:
            return await client.get_checkout_status(ObjID(type=0, id=1))

    with pytest.raises(DecodingError):
        asyncio.run(_run())


def test_connect_failure_is_transport_error() -> None:
    """Connection failures become ``TransportError`` with the cause kept."""
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def _run() -> None:
        async with _client(handler) as client:
            await client.add_to_favorites(ObjID(type=0, id=1))

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(_run())

    assert exc_info.value.operation == "favorites.add"
    assert exc_info.value.method == "POST"
    assert exc_info.value.url == "https://vault.test/REST/favorites"
    assert isinstance(exc_info.value.cause, httpx.ConnectError)


def test_preset_cancel_sends_no_request() -> None:
    """An already-set cancel event fails without sending a request."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    async def _run() -> None:
        cancel = asyncio.Event()
        cancel.set()
        async with _client(handler) as client:
            await client.get_history(ObjID(type=0, id=1), cancel=cancel)

    with pytest.raises(OperationCancelledError) as exc_info:
        asyncio.run(_run())

    assert exc_info.value.operation == "objects.get_history"
    assert seen == []


def test_cancel_aborts_in_flight_request() -> None:
    """Setting the cancel event aborts a pending request promptly."""
    started = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        started.set()
        await asyncio.sleep(10)
        return httpx.Response(200, json=[])

    async def _run() -> float:
        cancel = asyncio.Event()
        async with _client(handler) as client:
            call = asyncio.ensure_future(
                client.get_history(ObjID(type=0, id=1), cancel=cancel)
            )
            await started.wait()
            began = time.monotonic()
            cancel.set()
            with pytest.raises(OperationCancelledError):
                await call
            return time.monotonic() - began

    assert asyncio.run(_run()) < 1.0


def test_cancel_after_completion_has_no_effect() -> None:
    """Setting the event after completion does not affect the result."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"Value": True})

    async def _run() -> bool | None:
        cancel = asyncio.Event()
        async with _client(handler) as client:
            result = await client.get_deleted_status(ObjID(type=0, id=1), cancel=cancel)
        cancel.set()
        return result

    assert asyncio.run(_run()) is True


@pytest.mark.parametrize(
    "error",
    [
        RequestFailedError(
            message="objects.get_history failed with HTTP 404: Not found.",
            operation="objects.get_history",
            status_code=404,
        ),
        TransportError(message="favorites.add transport failure", operation="favorites.add"),
        DecodingError(message="objects.check_in returned a non-JSON response"),
        OperationCancelledError(message="objects.check_out was cancelled"),
        HttpStatusError(message="HTTP 503", method="GET", url="/REST/x", status_code=503),
    ],
)
def test_errors_escape_log_context_unchanged(error: Exception) -> None:
    """Typed errors raised inside ``log_context`` reach the caller as-is."""
    with pytest.raises(type(error)) as exc_info:
        with log_context({"operation": "objects.get_history"}):
            raise error

    assert exc_info.value is error
    assert exc_info.value.__traceback__ is not None
