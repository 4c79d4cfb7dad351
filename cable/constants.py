# cable/constants.py

"""
Constants module.

This module contains a collection of constants that are used throughout the Cable package.
It's also a one to one mapping of env vars available to the application.
"""

from pathlib import Path

CABLE_BASE_DIR: Path = Path(__file__).resolve().parent.parent
CABLE_ENV: str = "production"
CABLE_DEV_MODE: bool = False
CABLE_LOG_LEVEL: str = "INFO"

# CONFIG
CABLE_CONFIG_DIR: Path = CABLE_BASE_DIR / "config"
CABLE_CONFIG_TOML_FILE: Path = CABLE_CONFIG_DIR / "cable.config.toml"
CABLE_CONFIG_ENV_FILE: Path = CABLE_CONFIG_DIR / "cable.config.env"

# SERVER
CABLE_SERVER_HOST: str = "localhost"
CABLE_SERVER_PORT: int = 8000
CABLE_SERVER_PATH: str = "/cable"

# ENVELOPES
CABLE_SYSTEM_ERROR_TYPE: str = "system-error"
CABLE_ERROR_REPORT_TYPE: str = "actioncable"
CABLE_UNKNOWN_ACTION: str = "unknown"
CABLE_HANDLER_PREFIX: str = "handle"

# ERRORS
CABLE_ERRORS_GENERIC_MESSAGE: str = "An error occurred"
CABLE_ERRORS_DEVELOPMENT_ENVS: list[str] = ["development", "dev", "local", "test"]

# CHANNELS
CABLE_CHANNELS_PATH_MARKER: str = "channels"
CABLE_CHANNELS_INTERNAL_ACTIONS: list[str] = [
    "rescue_from",
    "handle_channel_error",
    "transmit",
    "perform_action",
    "dispatch_action",
    "_run_action",
]

# DIAGNOSTICS
CABLE_DIAGNOSTICS_HISTORY_SIZE: int = 100
