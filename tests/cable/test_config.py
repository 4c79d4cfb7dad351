import os

import pytest

from cable.config import CableConfig
from cable.server import errors


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate CableConfig from CABLE_* variables and local config files."""
    for key in list(os.environ):
        if key.upper().startswith("CABLE_"):
            monkeypatch.delenv(key)
    monkeypatch.setitem(CableConfig.model_config, "env_file", tmp_path / "missing.env")
    monkeypatch.setitem(CableConfig.model_config, "toml_file", tmp_path / "missing.toml")
    return monkeypatch


def test_defaults(clean_env):
    config = CableConfig()

    assert config.env == "production"
    assert config.dev_mode is False
    assert config.log_level == "INFO"
    assert config.server.host == "localhost"
    assert config.server.port == 8000
    assert config.server.path == "/cable"
    assert config.errors.generic_message == "An error occurred"
    assert config.channels.path_marker == "channels"
    assert "handle_channel_error" in config.channels.internal_actions
    assert config.is_development is False


def test_env_overrides(clean_env):
    clean_env.setenv("CABLE_ENV", "Production")
    clean_env.setenv("CABLE_SERVER_PORT", "9090")
    clean_env.setenv("CABLE_SERVER_PATH", "ws")
    clean_env.setenv("CABLE_ERRORS_DEVELOPMENT_ENVS", "dev, qa")

    config = CableConfig()

    assert config.env == "production"
    assert config.server.port == 9090
    assert config.server.path == "/ws"
    assert config.errors.development_envs == ["dev", "qa"]
    assert config.is_development is False


def test_toml_file(clean_env, tmp_path):
    toml_file = tmp_path / "cable.config.toml"
    toml_file.write_text(
        'env = "staging"\n\n[server]\nport = 7000\n\n[channels]\npath_marker = "realtime"\n',
        encoding="utf-8",
    )
    clean_env.setitem(CableConfig.model_config, "toml_file", toml_file)

    config = CableConfig()

    assert config.env == "staging"
    assert config.server.port == 7000
    assert config.channels.path_marker == "realtime"


def test_env_wins_over_toml(clean_env, tmp_path):
    toml_file = tmp_path / "cable.config.toml"
    toml_file.write_text('env = "staging"\n', encoding="utf-8")
    clean_env.setitem(CableConfig.model_config, "toml_file", toml_file)
    clean_env.setenv("CABLE_ENV", "test")

    assert CableConfig().env == "test"


@pytest.mark.parametrize(
    "env, dev_mode, expected",
    [
        ("development", False, True),
        ("local", False, True),
        ("test", False, True),
        ("production", False, False),
        ("staging", False, False),
        ("something-else", False, False),
        ("production", True, True),
    ],
)
def test_is_development(clean_env, env, dev_mode, expected):
    assert CableConfig(env=env, dev_mode=dev_mode).is_development is expected


def test_unconfigured_environment_redacts_error_messages(clean_env):
    config = CableConfig()
    clean_env.setattr(errors, "cable_config", config)

    envelope = errors.build_error_envelope(ValueError("db password invalid"), "ChatChannel")

    assert envelope.message == "An error occurred"
