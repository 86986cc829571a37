from pathlib import Path

import pytest

from femo_client.config import config as config_module
from femo_client.config.config import Settings, get_env


def test_defaults_point_at_a_local_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("FEMO_API_BASE_URL", "FEMO_REFRESH_SINGLE_FLIGHT", "FEMO_MOCK_ACCESS_TOKEN"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.api_base_url == "http://localhost:3000"
    assert settings.FEMO_REQUEST_TIMEOUT == 30.0
    assert settings.FEMO_REFRESH_SINGLE_FLIGHT is True
    assert settings.FEMO_MOCK_ACCESS_TOKEN.get_secret_value() == "mock-access-token"


def test_environment_overrides_are_typed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FEMO_API_BASE_URL", "https://api.femo.space/")
    monkeypatch.setenv("FEMO_REFRESH_SINGLE_FLIGHT", "false")
    monkeypatch.setenv("FEMO_REQUEST_TIMEOUT", "2.5")

    settings = Settings(_env_file=None)

    assert settings.api_base_url == "https://api.femo.space"
    assert settings.FEMO_REFRESH_SINGLE_FLIGHT is False
    assert settings.FEMO_REQUEST_TIMEOUT == 2.5


def test_timeout_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Settings(_env_file=None, FEMO_REQUEST_TIMEOUT=0)


def test_log_path_uses_configured_directory(tmp_path: Path) -> None:
    settings = Settings(_env_file=None, FEMO_LOG_DIR=tmp_path / "logs")

    assert settings.log_path == tmp_path / "logs" / "femo_client.log"
    assert (tmp_path / "logs").is_dir()


def test_get_env_prefers_runtime_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FEMO_REFRESH_SINGLE_FLIGHT", "no")
    monkeypatch.setenv("FEMO_REQUEST_TIMEOUT", "7")

    assert get_env("FEMO_REFRESH_SINGLE_FLIGHT") is False
    assert get_env("FEMO_REQUEST_TIMEOUT") == 7.0
    assert get_env("FEMO_REQUEST_TIMEOUT", parser=int) == 7


def test_get_env_falls_back_to_settings_then_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FEMO_MOCK_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("FEMO_UNKNOWN_OPTION", raising=False)

    assert get_env("FEMO_MOCK_ACCESS_TOKEN") == config_module.settings.FEMO_MOCK_ACCESS_TOKEN.get_secret_value()
    assert get_env("FEMO_UNKNOWN_OPTION", default="fallback") == "fallback"
