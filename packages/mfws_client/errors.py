"""Error taxonomy for object operation calls and HTTP error mapping."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Mapping

from packages.mfws_shared.http import (
    HttpError,
    HttpJsonDecodeError,
    HttpRequestError,
    HttpStatusError,
)


@dataclass(eq=False)
class MfwsError(Exception):
    """Base error type for all client failures."""

    message: str
    operation: str = ""

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class InvalidArgumentError(MfwsError, ValueError):
    """Local precondition violation; no request was issued."""

    argument: str = ""


@dataclass(eq=False)
class RequestFailedError(MfwsError):
    """Server answered with a non-success status code."""

    method: str = ""
    url: str = ""
    status_code: int = 0
    error_code: str = ""
    server_message: str = ""
    retryable: bool = False


@dataclass(eq=False)
class DecodingError(MfwsError):
    """Response body did not match the expected shape."""

    response_body: str = ""


@dataclass(eq=False)
class OperationCancelledError(MfwsError):
    """Operation aborted through the caller's cancellation signal."""


@dataclass(eq=False)
class TransportError(MfwsError):
    """Request never produced a response (connect, DNS, timeout)."""

    method: str = ""
    url: str = ""
    cause: Exception | None = None


def map_http_error(*, operation: str, error: HttpError) -> MfwsError:
    """Map one shared HTTP client error into the client error taxonomy."""
    if isinstance(error, HttpStatusError):
        error_code, server_message = parse_server_error(error.response_body)
        detail = server_message or error.reason or f"HTTP {error.status_code}"
        return RequestFailedError(
            message=f"{operation} failed with HTTP {error.status_code}: {detail}",
            operation=operation,
            method=error.method,
            url=error.url,
            status_code=error.status_code,
            error_code=error_code,
            server_message=server_message,
            retryable=error.retryable,
        )
    if isinstance(error, HttpJsonDecodeError):
        return DecodingError(
            message=f"{operation} returned a non-JSON response",
            operation=operation,
            response_body=error.response_body,
        )
    if isinstance(error, HttpRequestError):
        return TransportError(
            message=f"{operation} transport failure: {error.message}",
            operation=operation,
            method=error.method,
            url=error.url,
            cause=error.cause,
        )
    return MfwsError(message=f"{operation} failed: {error.message}", operation=operation)


def parse_server_error(body: str) -> tuple[str, str]:
    """Return ``(exception name, message)`` from an M-Files error body.

    The message comes from ``Message``, falling back to ``Exception.Message``.
    Either part is empty when the body does not carry it.
    """
    if body.strip() == "":
        return "", ""
    try:
        payload = json.loads(body)
    except ValueError:
        return "", ""
    if not isinstance(payload, Mapping):
        return "", ""

    exception = payload.get("Exception")
    exception_data = exception if isinstance(exception, Mapping) else {}
    name = _text(exception_data.get("Name"))
    message = _text(payload.get("Message")) or _text(exception_data.get("Message"))
    return name, message


def _text(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""
