"""Typed errors raised by the shared async HTTP client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


@dataclass(eq=False)
class HttpError(Exception):
    """Base error type for outbound HTTP call failures."""

    message: str
    method: str
    url: str
    retryable: bool = False

    def __str__(self) -> str:
        """Return the human-readable error message."""
        return self.message


@dataclass(eq=False)
class HttpRequestError(HttpError):
    """Request never produced a response (connect, DNS, timeout)."""

    cause: Exception | None = None


@dataclass(eq=False)
class HttpStatusError(HttpError):
    """Response arrived with a non-success status code."""

    status_code: int = 0
    reason: str = ""
    response_body: str = ""
    response_headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(eq=False)
class HttpJsonDecodeError(HttpError):
    """Successful response whose body is not valid JSON."""

    status_code: int = 0
    response_body: str = ""
    cause: Exception | None = None
