"""Client configuration.

- `AppSettings` reads `QUESTRADE_*` variables (pydantic-settings) for the
  CLI and the adapters.
- The per-user `.env` doubles as the place where the CLI stores the rotated
  refresh token after every exchange. The library itself never writes it.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from questrade.core.domain.environment import Environment

ENV_PREFIX = "QUESTRADE_"
APP_DIR_NAME = "questrade"


def get_user_config_dir() -> Path:
    """Per-user configuration directory.

    Windows: `%APPDATA%/questrade`; macOS: `~/Library/Application Support/questrade`;
    elsewhere `$XDG_CONFIG_HOME/questrade`, falling back to `~/.config/questrade`.
    """

    home = Path.home()
    if sys.platform.startswith("win"):
        root = Path(os.environ.get("APPDATA") or home)
    elif sys.platform == "darwin":
        root = home / "Library" / "Application Support"
    else:
        root = Path(os.environ.get("XDG_CONFIG_HOME") or home / ".config")
    return root / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def read_env_file(path: Path) -> dict[str, str]:
    """Parse `KEY=value` lines; comments, blanks and `export ` prefixes are tolerated."""

    entries: dict[str, str] = {}
    if not path.exists():
        return entries
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line.startswith("export "):
            line = line[len("export "):]
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key or key.startswith("#"):
            continue
        entries[key] = value.strip().strip("'\"")
    return entries


def write_user_env_vars(values: dict[str, str | None], *, env_path: Path | None = None) -> Path:
    """Set variables in the user `.env`, keeping every other key.

    `None` values leave the key untouched. The file is replaced atomically
    and, on POSIX, readable by the owner only (it holds a live refresh token).
    """

    target = env_path or get_user_env_file()
    target.parent.mkdir(parents=True, exist_ok=True)

    merged = read_env_file(target)
    merged.update((key, value) for key, value in values.items() if value is not None)

    body = "# questrade user config (.env)\n" + "".join(f"{key}={value}\n" for key, value in merged.items())
    staging = target.with_name(target.name + ".tmp")
    staging.write_text(body, encoding="utf-8")
    if not sys.platform.startswith("win"):
        staging.chmod(0o600)
    staging.replace(target)
    return target


class AppSettings(BaseSettings):
    """Central configuration of the client and CLI."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        case_sensitive=False,
        # Project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    consumer_key: str | None = Field(
        default=None,
        description="Consumer key (public client id) of the registered Questrade app.",
    )
    refresh_token: SecretStr | None = Field(
        default=None,
        description="Refresh token for the next exchange (rotates on every refresh).",
    )
    environment: Environment = Field(
        default=Environment.PRODUCTION,
        description="Authorization server environment (practice/production).",
    )

    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Total timeout per request (seconds).",
    )
    connect_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Connection establishment timeout (seconds).",
    )
    user_agent: str = Field(
        default="questrade-client/0.1",
        min_length=1,
        description="User-Agent sent with every request.",
    )
    token_refresh_leeway_seconds: float = Field(
        default=60.0,
        ge=0,
        description="TokenKeeper refreshes once the access token is this close to expiry.",
    )

    @field_validator("environment", mode="before")
    @classmethod
    def _normalize_environment(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value
