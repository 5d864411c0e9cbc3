"""Public API for shared configuration utilities."""

from .loader import load_config, load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    ClientSettings,
    LoggingSettings,
    MfwsSettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ClientSettings",
    "LoggingSettings",
    "MfwsSettings",
    "load_config",
    "load_settings",
]
