"""Connection settings for a Store."""

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError

DEFAULT_TIMEOUT_MS = 5000

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("", "0", "false", "no", "off")


def _parse_flag(value: Any, name: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE_VALUES + _FALSE_VALUES:
        return value.strip().lower() in _TRUE_VALUES
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class StoreConfig:
    """
    Settings accepted by ``Store.connect``.

    Attributes:
        host: MongoDB connection URI
        user: Optional user name to authenticate with
        password: Password for ``user``
        database: Database name, used when the URI does not name one
        strict_auth: Raise instead of logging when authentication fails
        timeout_ms: Server selection timeout handed to the driver
    """

    host: str
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    strict_auth: bool = False
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    @classmethod
    def from_settings(cls, settings: Any) -> "StoreConfig":
        """Validate a settings mapping, e.g. ``{"host": "mongodb://db:27017/app"}``."""
        if isinstance(settings, StoreConfig):
            return settings
        if not settings or not isinstance(settings, Mapping):
            raise ConfigurationError(
                "Settings must be a mapping such as {'host': 'mongodb://my.mongo.host:27017/db'}"
            )

        host = settings.get("host")
        if not host or not isinstance(host, str):
            raise ConfigurationError("Host is required")

        timeout_ms = settings.get("timeout_ms", DEFAULT_TIMEOUT_MS)
        if not isinstance(timeout_ms, int) or isinstance(timeout_ms, bool) or timeout_ms <= 0:
            raise ConfigurationError(f"timeout_ms must be a positive integer, got {timeout_ms!r}")

        return cls(
            host=host,
            user=settings.get("user") or None,
            password=settings.get("password"),
            database=settings.get("database") or None,
            strict_auth=_parse_flag(settings.get("strict_auth", False), "strict_auth"),
            timeout_ms=timeout_ms,
        )

    @classmethod
    def from_env(cls, prefix: str = "MONGODB_") -> "StoreConfig":
        """Build settings from the environment, loading a ``.env`` file from the working directory first."""
        load_dotenv(find_dotenv(usecwd=True))

        host = os.environ.get(f"{prefix}URI")
        if not host:
            raise ConfigurationError(f"{prefix}URI environment variable is not set")

        settings = {
            "host": host,
            "user": os.environ.get(f"{prefix}USER"),
            "password": os.environ.get(f"{prefix}PASSWORD"),
            "database": os.environ.get(f"{prefix}DATABASE"),
            "strict_auth": os.environ.get(f"{prefix}STRICT_AUTH", ""),
        }
        timeout = os.environ.get(f"{prefix}TIMEOUT_MS")
        if timeout:
            try:
                settings["timeout_ms"] = int(timeout)
            except ValueError:
                raise ConfigurationError(f"{prefix}TIMEOUT_MS must be an integer, got {timeout!r}") from None
        return cls.from_settings(settings)

    def __repr__(self) -> str:
        return f"StoreConfig(host='{self.host}', user={self.user!r}, database={self.database!r})"
