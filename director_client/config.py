"""Client configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable

import yaml

logger = logging.getLogger(__name__)

# Config file search paths (in order of precedence, last wins)
CONFIG_SEARCH_PATHS = [
    Path.home() / ".director" / "client.yaml",  # User-level defaults
    Path(".director.yaml"),  # Project-level overrides
]


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == "true"


def _read_yaml(path: str | Path) -> dict[str, Any]:
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


# Coercions for values read from YAML or other untyped sources
_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "api_version": str,
    "timeout": float,
    "task_poll_interval": float,
    "task_timeout": float,
    "task_poll_retries": int,
    "retry_max_attempts": int,
    "retry_backoff_factor": float,
    "retry_status_codes": tuple,
}


@dataclass
class ClientConfig:
    """
    Configuration for the director client.

    Precedence (lowest to highest):
    1. Defaults
    2. Environment variables (DIRECTOR_*)
    3. ~/.director/client.yaml, then .director.yaml (via load())
    4. Constructor arguments
    """
    # API endpoint, e.g. https://vcd.example.com/api
    endpoint: str = field(
        default_factory=lambda: os.environ.get("DIRECTOR_ENDPOINT", "https://localhost/api")
    )

    # Path segment that turns a user locator into its admin counterpart
    admin_segment: str = "admin"

    # Privilege view: "user" or "admin". Fixed for the lifetime of a client.
    scope: str = field(
        default_factory=lambda: os.environ.get("DIRECTOR_SCOPE", "user")
    )

    api_version: str = field(
        default_factory=lambda: os.environ.get("DIRECTOR_API_VERSION", "5.1")
    )

    # Request timeout (seconds)
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("DIRECTOR_TIMEOUT", "30"))
    )
    verify_ssl: bool = field(
        default_factory=lambda: _env_bool("DIRECTOR_VERIFY_SSL", "true")
    )

    # Task waiting
    task_poll_interval: float = field(
        default_factory=lambda: float(os.environ.get("DIRECTOR_TASK_POLL_INTERVAL", "1"))
    )
    task_timeout: float = field(
        default_factory=lambda: float(os.environ.get("DIRECTOR_TASK_TIMEOUT", "300"))
    )
    task_poll_retries: int = field(
        default_factory=lambda: int(os.environ.get("DIRECTOR_TASK_POLL_RETRIES", "3"))
    )

    # Authentication method: "session", "bearer", or None
    auth_method: str | None = field(
        default_factory=lambda: os.environ.get("DIRECTOR_AUTH_METHOD")
    )
    session_token: str | None = None  # Direct token (not from env for security)
    session_token_env: str = field(
        default_factory=lambda: os.environ.get("DIRECTOR_SESSION_TOKEN_ENV", "DIRECTOR_SESSION_TOKEN")
    )
    session_token_file: str | None = field(
        default_factory=lambda: os.environ.get("DIRECTOR_SESSION_TOKEN_FILE")
    )
    bearer_token: str | None = None

    # Retry configuration for transient read failures
    retry_max_attempts: int = field(
        default_factory=lambda: int(os.environ.get("DIRECTOR_RETRY_MAX_ATTEMPTS", "3"))
    )
    retry_backoff_factor: float = field(
        default_factory=lambda: float(os.environ.get("DIRECTOR_RETRY_BACKOFF_FACTOR", "0.5"))
    )
    retry_status_codes: tuple[int, ...] = field(
        default_factory=lambda: (502, 503, 504)
    )

    @property
    def user_prefix(self) -> str:
        """Base locator prefix of the user view."""
        return self.endpoint.rstrip("/") + "/"

    @property
    def admin_prefix(self) -> str:
        """Base locator prefix of the admin view."""
        return f"{self.user_prefix}{self.admin_segment.strip('/')}/"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientConfig:
        """
        Create config from a mapping such as a parsed YAML file.

        Keys left out fall back to environment variables and defaults.
        Unknown keys are ignored with a warning.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for name, value in data.items():
            if name not in known:
                logger.warning(f"Ignoring unknown config key: {name}")
                continue
            convert = _CONVERTERS.get(name)
            kwargs[name] = convert(value) if convert is not None and value is not None else value
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: str | Path) -> ClientConfig:
        """Load config from YAML file."""
        return cls.from_dict(_read_yaml(path))

    @classmethod
    def load(cls, config_file: str | Path | None = None) -> ClientConfig:
        """
        Load config with auto-discovery.

        Search order (last wins):
        1. ~/.director/client.yaml
        2. .director.yaml
        3. Explicit config_file argument
        4. Environment variables fill in whatever the files leave unset
        """
        merged: dict[str, Any] = {}

        paths = [p for p in CONFIG_SEARCH_PATHS if p.exists()]
        if config_file:
            paths.append(Path(config_file))
        for path in paths:
            logger.debug(f"Reading client config from {path}")
            merged.update(_read_yaml(path))

        return cls.from_dict(merged)
