"""Settings loading for M-Files Web Service clients.

Sources are layered lowest precedence first:

1. model defaults
2. ``~/.config/mfws/mfws.yaml``
3. ``MFWS_*`` environment variables, ``__`` separating nested keys
   (``MFWS_CLIENT__VAULT_GUID`` -> ``client.vault_guid``)
4. explicit ``cli_params``

``environ`` and ``config_path`` replace the process environment and the
default file when given; nothing else reads process state.
"""

from __future__ import annotations

import copy
import json
import os
from functools import reduce
from pathlib import Path
from typing import Any, Mapping

import yaml

from .models import DEFAULT_CONFIG_PATH, MfwsSettings

ENV_PREFIX = "MFWS_"
ENV_NESTED_DELIMITER = "__"


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
) -> MfwsSettings:
    """Resolve one validated settings object from every configuration source."""
    return MfwsSettings.model_validate(
        load_config(cli_params=cli_params, environ=environ, config_path=config_path)
    )


def load_config(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    env_prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """Return the raw merged mapping; later layers win key by key."""
    layers = (
        read_yaml_file(DEFAULT_CONFIG_PATH if config_path is None else Path(config_path)),
        env_overrides(os.environ if environ is None else environ, prefix=env_prefix),
        cli_params or {},
    )
    return reduce(deep_merge, layers, {})


def read_yaml_file(path: Path) -> dict[str, Any]:
    """Return the mapping stored at ``path``; a missing or empty file is ``{}``."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}

    document = yaml.safe_load(text)
    if document is None:
        return {}
    if not isinstance(document, Mapping):
        raise ValueError(f"Config file must contain a top-level mapping: {path}")
    return deep_merge({}, document)


def env_overrides(
    environ: Mapping[str, str], *, prefix: str = ENV_PREFIX
) -> dict[str, Any]:
    """Nest ``<prefix>A__B=value`` variables as ``{"a": {"b": value}}``."""
    output: dict[str, Any] = {}
    for name, raw in environ.items():
        if not name.startswith(prefix):
            continue
        keys = [
            part.strip().lower()
            for part in name[len(prefix) :].split(ENV_NESTED_DELIMITER)
            if part.strip()
        ]
        if not keys:
            continue

        *parents, leaf = keys
        node = output
        for key in parents:
            child = node.get(key)
            if not isinstance(child, dict):
                child = node[key] = {}
            node = child
        node[leaf] = _parse_env_value(raw)
    return output


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` recursively updated by ``override``; inputs are not mutated."""
    merged = {str(key): _detached(value) for key, value in base.items()}
    for key, value in override.items():
        current = merged.get(str(key))
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[str(key)] = deep_merge(current, value)
        else:
            merged[str(key)] = _detached(value)
    return merged


def _detached(value: Any) -> Any:
    if isinstance(value, Mapping):
        return deep_merge({}, value)
    return copy.deepcopy(value)


def _parse_env_value(raw: str) -> Any:
    """Decode booleans, null and JSON containers; numbers stay strings."""
    value = raw.strip()
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("null", "none"):
        return None
    if value[:1] in ("{", "["):
        try:
            return json.loads(value)
        except ValueError:
            return raw
    return raw
