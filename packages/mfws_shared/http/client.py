"""Async JSON client wrapper over httpx."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from .errors import HttpJsonDecodeError, HttpRequestError, HttpStatusError

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})


@dataclass(frozen=True)
class JsonResponse:
    """Decoded JSON response; ``payload`` is ``None`` for an empty body."""

    status_code: int
    payload: Any
    text: str


def _response_text(response: httpx.Response) -> str:
    try:
        return response.text
    except Exception:  # noqa: BLE001
        return ""


def _status_error(response: httpx.Response) -> HttpStatusError:
    """Build a typed status error from one HTTP response."""
    request = response.request
    return HttpStatusError(
        message=f"HTTP {response.status_code} for {request.method} {request.url}",
        method=request.method,
        url=str(request.url),
        retryable=response.status_code in RETRYABLE_STATUS_CODES,
        status_code=response.status_code,
        reason=response.reason_phrase,
        response_body=_response_text(response),
        response_headers=dict(response.headers.items()),
    )


class AsyncHttpClient:
    """Thin asynchronous wrapper over ``httpx.AsyncClient``.

    Transport failures become ``HttpRequestError``, non-2xx responses become
    ``HttpStatusError`` and undecodable bodies become ``HttpJsonDecodeError``.
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout_seconds: float = 30.0,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers=dict(headers or {}),
            follow_redirects=follow_redirects,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying ``httpx`` client when this wrapper created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue one request and map transport/status failures to typed errors."""
        try:
            response = await self._client.request(method=method, url=url, **kwargs)
        except httpx.RequestError as exc:
            try:
                request: httpx.Request | None = exc.request
            except RuntimeError:
                request = None
            request_url = str(request.url) if request is not None else url
            request_method = request.method if request is not None else method.upper()
            raise HttpRequestError(
                message=f"HTTP request failed for {request_method} {request_url}: {exc}",
                method=request_method,
                url=request_url,
                retryable=True,
                cause=exc,
            ) from exc

        if response.is_error:
            raise _status_error(response)
        return response

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> JsonResponse:
        """Issue one request with an optional JSON body and decode the reply."""
        kwargs: dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if headers:
            kwargs["headers"] = dict(headers)
        response = await self.request(method, url, **kwargs)

        text = _response_text(response)
        if text.strip() == "":
            return JsonResponse(status_code=response.status_code, payload=None, text=text)
        try:
            payload = response.json()
        except ValueError as exc:
            raise HttpJsonDecodeError(
                message=f"Invalid JSON response for {response.request.method} {response.request.url}",
                method=response.request.method,
                url=str(response.request.url),
                status_code=response.status_code,
                response_body=text,
                cause=exc,
            ) from exc
        return JsonResponse(status_code=response.status_code, payload=payload, text=text)
