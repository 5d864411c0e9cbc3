"""Build configured clients from resolved settings."""

from __future__ import annotations

from typing import Any

from packages.mfws_shared.config import MfwsSettings, load_settings
from packages.mfws_shared.logging import configure_logging

from .blocking import BlockingObjectOperationsClient
from .objects import ObjectOperationsClient
from .transport import VaultTransport


def create_object_operations(
    settings: MfwsSettings | None = None, **http_options: Any
) -> ObjectOperationsClient:
    """Return an async client for ``settings.client``.

    ``http_options`` are forwarded to the HTTP client, e.g. an ``httpx``
    ``transport`` for tests.
    """
    resolved = load_settings() if settings is None else settings
    return ObjectOperationsClient(
        transport=VaultTransport.from_settings(resolved.client, **http_options)
    )


def create_blocking_object_operations(
    settings: MfwsSettings | None = None, **http_options: Any
) -> BlockingObjectOperationsClient:
    """Return a blocking client for ``settings.client``; see ``create_object_operations``."""
    return BlockingObjectOperationsClient(
        client=create_object_operations(settings, **http_options)
    )


def configure_client_logging(settings: MfwsSettings) -> None:
    """Apply ``settings.logging`` to the process-wide logging setup."""
    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
    )
