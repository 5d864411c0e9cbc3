"""Tests for building configured clients and applying logging settings."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterator

import httpx
import pytest

from packages.mfws_client import (
    ObjectOperationsClient,
    ObjID,
    configure_client_logging,
    create_object_operations,
)
from packages.mfws_shared.config import load_settings
from packages.mfws_shared.logging import clear_context, configure_logging, get_context
from packages.mfws_shared.logging.config import HANDLER_NAME, JsonFormatter, PlainFormatter


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    clear_context()


def test_create_object_operations_uses_settings(tmp_path: Path) -> None:
    """The async factory wires base URL and token from resolved settings."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json=[{"ObjVer": {"Type": 0, "ID": 7, "Version": 1}}]
        )

    settings = load_settings(
        environ={
            "MFWS_CLIENT__BASE_URL": "https://env.vault.test/",
            "MFWS_CLIENT__AUTHENTICATION_TOKEN": "env-token",
        },
        config_path=tmp_path / "missing.yaml",
    )

    async def _run() -> int:
        client = create_object_operations(
            settings, transport=httpx.MockTransport(handler)
        )
        assert isinstance(client, ObjectOperationsClient)
        async with client:
            history = await client.get_history(ObjID(type=0, id=7))
        return len(history)

    assert asyncio.run(_run()) == 1
    assert str(seen[0].url) == "https://env.vault.test/REST/objects/0/7/history"
    assert seen[0].headers["X-Authentication"] == "env-token"


@pytest.mark.usefixtures("restore_root_logging")
@pytest.mark.parametrize(
    ("json_output", "formatter_type"),
    [(True, JsonFormatter), (False, PlainFormatter)],
)
def test_configure_client_logging_applies_settings(
    tmp_path: Path, json_output: bool, formatter_type: type[logging.Formatter]
) -> None:
    """Logging settings choose the level, formatter and bound service fields."""
    settings = load_settings(
        cli_params={
            "logging": {
                "level": "DEBUG",
                "json_output": json_output,
                "service": "records-sync",
                "environment": "test",
            }
        },
        environ={},
        config_path=tmp_path / "missing.yaml",
    )

    configure_client_logging(settings)

    root = logging.getLogger()
    installed = [h for h in root.handlers if h.get_name() == HANDLER_NAME]
    assert root.level == logging.DEBUG
    assert len(installed) == 1
    assert isinstance(installed[0].formatter, formatter_type)
    assert get_context()["service"] == "records-sync"
    assert get_context()["environment"] == "test"


@pytest.mark.usefixtures("restore_root_logging")
def test_repeated_configuration_replaces_only_the_named_handler() -> None:
    """Reconfiguring swaps the client handler and keeps foreign handlers."""
    root = logging.getLogger()
    foreign = logging.NullHandler()
    root.addHandler(foreign)

    first = configure_logging(level="INFO")
    second = configure_logging(level="WARNING", json_output=False)

    assert first not in root.handlers
    assert second in root.handlers
    assert foreign in root.handlers
    assert [h for h in root.handlers if h.get_name() == HANDLER_NAME] == [second]
    assert root.level == logging.WARNING
