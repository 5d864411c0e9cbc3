"""Typed configuration models for M-Files Web Service clients."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "mfws" / "mfws.yaml"


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "mfws-client"
    environment: str = "dev"


class ClientSettings(BaseModel):
    """Connection settings for one M-Files Web Service endpoint."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = "http://localhost"
    timeout_seconds: float = Field(default=30.0, gt=0)
    authentication_token: str = ""
    vault_guid: str = ""
    follow_redirects: bool = False

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        stripped = value.strip().rstrip("/")
        if stripped == "":
            raise ValueError("base_url must not be empty")
        return stripped


class MfwsSettings(BaseSettings):
    """Root settings for one client process.

    Only explicitly passed values are read here. ``load_settings`` resolves
    the YAML file, ``MFWS_*`` environment and CLI layers and passes the merged
    mapping in, so that function is the single place precedence is decided.
    """

    model_config = SettingsConfigDict(extra="ignore")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    client: ClientSettings = Field(default_factory=ClientSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Keep init values only; env and file layers come from the loader."""
        return (init_settings,)
