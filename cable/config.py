# cable/config.py

"""
Config module.

Settings for the Cable server and client helpers, loaded from (highest first)
init kwargs, environment, dotenv file, TOML file and module defaults.
"""

import os
from pathlib import Path

from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from cable.constants import (
    CABLE_CHANNELS_INTERNAL_ACTIONS,
    CABLE_CHANNELS_PATH_MARKER,
    CABLE_CONFIG_ENV_FILE,
    CABLE_CONFIG_TOML_FILE,
    CABLE_DEV_MODE,
    CABLE_DIAGNOSTICS_HISTORY_SIZE,
    CABLE_ENV,
    CABLE_ERRORS_DEVELOPMENT_ENVS,
    CABLE_ERRORS_GENERIC_MESSAGE,
    CABLE_LOG_LEVEL,
    CABLE_SERVER_HOST,
    CABLE_SERVER_PATH,
    CABLE_SERVER_PORT,
)


def _get_env_file_path() -> Path:
    """Get the environment file path from the environment or the default path."""
    return Path(os.environ.get("CABLE_CONFIG_ENV_FILE", CABLE_CONFIG_ENV_FILE)).resolve()


def _get_toml_file_path() -> Path:
    """Get the TOML file path from the environment or the default path."""
    return Path(
        os.environ.get("CABLE_CONFIG_TOML_FILE", CABLE_CONFIG_TOML_FILE)
    ).resolve()


def _split_list(value: str | list[str]) -> list[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class CableServerConfigModel(BaseModel):
    """WebSocket server settings."""

    host: str = CABLE_SERVER_HOST
    port: int = CABLE_SERVER_PORT
    path: str = CABLE_SERVER_PATH

    @field_validator("path")
    @classmethod
    def _validate_path(cls, value: str) -> str:
        if not value.startswith("/"):
            return f"/{value}"
        return value


class CableErrorsConfigModel(BaseModel):
    """Error envelope settings."""

    generic_message: str = CABLE_ERRORS_GENERIC_MESSAGE
    development_envs: str | list[str] = CABLE_ERRORS_DEVELOPMENT_ENVS

    @field_validator("development_envs", mode="before")
    @classmethod
    def _validate_envs(cls, value: str | list[str]) -> list[str]:
        return [env.lower() for env in _split_list(value)]


class CableChannelsConfigModel(BaseModel):
    """Channel handling settings used when attributing failures to actions."""

    path_marker: str = CABLE_CHANNELS_PATH_MARKER
    internal_actions: str | list[str] = CABLE_CHANNELS_INTERNAL_ACTIONS

    @field_validator("internal_actions", mode="before")
    @classmethod
    def _validate_actions(cls, value: str | list[str]) -> list[str]:
        return _split_list(value)


class CableDiagnosticsConfigModel(BaseModel):
    """Client diagnostics settings."""

    history_size: int = CABLE_DIAGNOSTICS_HISTORY_SIZE


class CableConfig(BaseSettings):
    """Cable main configuration settings."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=_get_env_file_path(),
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        env_nested_delimiter="_",
        env_nested_max_split=1,
        env_prefix="cable_",
        extra="ignore",
        toml_file=_get_toml_file_path(),
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # INIT > ENV > DOTENV > TOML > DEFAULTS
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    env: str = CABLE_ENV
    dev_mode: bool = CABLE_DEV_MODE
    log_level: str = CABLE_LOG_LEVEL
    server: CableServerConfigModel = CableServerConfigModel()
    errors: CableErrorsConfigModel = CableErrorsConfigModel()
    channels: CableChannelsConfigModel = CableChannelsConfigModel()
    diagnostics: CableDiagnosticsConfigModel = CableDiagnosticsConfigModel()

    @field_validator("env")
    @classmethod
    def _normalize_env(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def is_development(self) -> bool:
        """True for development-like environments, where error details are not redacted."""
        return self.dev_mode or self.env in self.errors.development_envs


cable_config = CableConfig()
"""Process-wide configuration instance."""
