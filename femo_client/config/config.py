"""
Centralised config for the Femo client.

Settings are loaded from environment variables (and an optional ``.env``
file) and exposed through a singleton ``settings`` object. Every field has a
default so the client can talk to a local backend without any setup.
"""

import os
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE = Path(__file__).resolve()


def _discover_project_root(config_file: Path) -> tuple[Path, Path]:
    """Return a project root and env file path without assuming ``.env`` exists.

    Walks the parents looking for a ``.env`` file and falls back to the
    repository root (detected via common project markers) when it is missing.
    """

    parents = list(config_file.parents)

    for parent in parents:
        env_file = parent / ".env"
        if env_file.exists():
            return parent, env_file

    for marker in ("pyproject.toml", ".git"):
        for parent in parents:
            if (parent / marker).exists():
                return parent, parent / ".env"

    fallback_root = parents[1] if len(parents) > 1 else parents[0]
    return fallback_root, fallback_root / ".env"


PROJECT_ROOT, ENV_FILE_PATH = _discover_project_root(CONFIG_FILE)


T = TypeVar("T")


class Settings(BaseSettings):
    """
    Centralised and validated client settings.
    """
    model_config = SettingsConfigDict(
        env_file=ENV_FILE_PATH, env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # --- BACKEND ---
    FEMO_API_BASE_URL: str = "http://localhost:3000"
    FEMO_REQUEST_TIMEOUT: float = Field(30.0, gt=0)

    # --- SESSION ---
    FEMO_SESSION_STORE_PATH: Path = Path.home() / ".config" / "femo_client" / "session.json"
    FEMO_MOCK_ACCESS_TOKEN: SecretStr = SecretStr("mock-access-token")
    FEMO_REFRESH_SINGLE_FLIGHT: bool = True

    # --- LOGGING ---
    FEMO_LOG_LEVEL: str = "INFO"
    FEMO_LOG_TO_CONSOLE: bool = True
    FEMO_LOG_DIR: Optional[Path] = None

    @property
    def api_base_url(self) -> str:
        """Base URL without a trailing slash."""
        return self.FEMO_API_BASE_URL.rstrip("/")

    @property
    def log_path(self) -> Path:
        """
        Path for the client log file.

        Uses ``FEMO_LOG_DIR`` when configured, otherwise a directory in the
        user's home. Never raises.
        """
        try:
            if self.FEMO_LOG_DIR is not None:
                log_dir = Path(self.FEMO_LOG_DIR)
                log_dir.mkdir(parents=True, exist_ok=True)
                if os.access(log_dir, os.W_OK):
                    return log_dir / "femo_client.log"
                raise PermissionError(f"No access to {log_dir}")
        except Exception as e:
            print(f"[femo-client] Falling back to home log directory due to: {e}")
        fallback_dir = Path.home() / "femo_logs"
        try:
            fallback_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            pass
        return fallback_dir / "femo_client.log"


# Create a single, importable instance of the settings for the entire application.
settings = Settings()


def _coerce_secret(value: Any) -> Any:
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    return value


def _to_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _coerce_type(raw: str, template: Any) -> Any:
    if isinstance(template, bool):
        return _to_bool(raw)
    if isinstance(template, int) and not isinstance(template, bool):
        return int(raw)
    if isinstance(template, float):
        return float(raw)
    if isinstance(template, Path):
        return Path(raw)
    return raw


def get_env(
    name: str,
    default: T | None = None,
    *,
    parser: Callable[[str], T] | None = None,
) -> T | Any | None:
    """Return a configuration value resolving environment overrides consistently.

    The resolution order is:

    1. Explicit environment variable overrides at runtime.
    2. Typed values provided by the Pydantic ``settings`` object.
    3. The supplied ``default`` value.

    When an override is read directly from :mod:`os.environ`, ``parser`` (or the
    inferred type from ``settings``) is used to coerce the string into the
    expected type.
    """

    if name in os.environ:
        raw_value = os.environ[name]
        if parser is not None:
            return parser(raw_value)
        if hasattr(settings, name):
            template = _coerce_secret(getattr(settings, name))
            try:
                return _coerce_type(raw_value, template)
            except (TypeError, ValueError):
                return template
        return raw_value

    if hasattr(settings, name):
        return _coerce_secret(getattr(settings, name))

    return default
