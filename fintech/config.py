"""Configuration management for the database connection provider."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

DEFAULT_DATABASE_URL = "jdbc:oracle:thin:@oracle.fiap.com.br:1521:orcl"
DEFAULT_DATABASE_USER = "RM560802"

ENV_CONFIG_PATH = "FINTECH_DB_CONFIG"
ENV_URL = "FINTECH_DB_URL"
ENV_USER = "FINTECH_DB_USER"
ENV_PASSWORD = "FINTECH_DB_PASSWORD"


@dataclass(frozen=True)
class DatabaseConfig:
    """Endpoint and account used to open database sessions."""

    url: str
    user: str
    password: str = field(repr=False)

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "DatabaseConfig":
        """Create a :class:`DatabaseConfig` from raw dictionary data."""
        required_fields = {"url", "user", "password"}
        missing = {key for key in required_fields if data.get(key) in (None, "")}
        if missing:
            raise ValueError(f"Missing required database configuration fields: {', '.join(sorted(missing))}")

        return DatabaseConfig(
            url=str(data["url"]).strip(),
            user=str(data["user"]).strip(),
            password=str(data["password"]),
        )

    def masked(self) -> Dict[str, str]:
        return {"url": self.url, "user": self.user, "password": "********"}


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "database.yaml").resolve(strict=False)
    return candidate


def _read_database_section(config_path: Path) -> Dict[str, object]:
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")

    section = raw.get("database") or {}
    if not isinstance(section, dict):
        raise ValueError("The 'database' key must map to url, user and password settings")
    return dict(section)


def load_database_config(config_path: Path) -> DatabaseConfig:
    """Load the database settings from a YAML file."""
    section = _read_database_section(config_path)
    section.setdefault("url", DEFAULT_DATABASE_URL)
    section.setdefault("user", DEFAULT_DATABASE_USER)
    return DatabaseConfig.from_dict(section)


def load_config_from_env(
    environ: Optional[Mapping[str, str]] = None,
    *,
    config_path: Optional[Path] = None,
) -> DatabaseConfig:
    """Build the configuration from an optional YAML file and environment overrides.

    The YAML file named by ``FINTECH_DB_CONFIG`` (or ``config/database.yaml``
    when present) is read first; ``FINTECH_DB_URL``, ``FINTECH_DB_USER`` and
    ``FINTECH_DB_PASSWORD`` then take precedence over its values.
    """
    env = os.environ if environ is None else environ

    path = config_path or resolve_config_path(env.get(ENV_CONFIG_PATH))
    if config_path is not None or env.get(ENV_CONFIG_PATH):
        if not path.exists():
            raise ValueError(f"Configuration file not found: {path}")
    settings: Dict[str, object] = _read_database_section(path) if path.exists() else {}

    for key, variable in (("url", ENV_URL), ("user", ENV_USER), ("password", ENV_PASSWORD)):
        value = env.get(variable)
        if value:
            settings[key] = value

    settings.setdefault("url", DEFAULT_DATABASE_URL)
    settings.setdefault("user", DEFAULT_DATABASE_USER)
    if not settings.get("password"):
        raise ValueError(
            f"No database password configured. Set {ENV_PASSWORD} or add it to the configuration file."
        )
    return DatabaseConfig.from_dict(settings)


__all__ = [
    "DEFAULT_DATABASE_URL",
    "DEFAULT_DATABASE_USER",
    "DatabaseConfig",
    "load_config_from_env",
    "load_database_config",
    "resolve_config_path",
]
