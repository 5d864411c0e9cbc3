"""Shared async HTTP client for M-Files Web Service packages."""

from .client import RETRYABLE_STATUS_CODES, AsyncHttpClient, JsonResponse
from .errors import HttpError, HttpJsonDecodeError, HttpRequestError, HttpStatusError

__all__ = [
    "AsyncHttpClient",
    "HttpError",
    "HttpJsonDecodeError",
    "HttpRequestError",
    "HttpStatusError",
    "JsonResponse",
    "RETRYABLE_STATUS_CODES",
]
