"""Runtime settings for the extension bridge, loaded from environment variables."""

import os
import re
from dataclasses import dataclass
from typing import Optional

DEFAULT_EXTENSION_NAME = "pgmoneta_ext"
DEFAULT_MANIFEST_TABLE = "backup_manifest"
DEFAULT_MAX_QUERY_LENGTH = 8192
DEFAULT_MAX_MANIFEST_LINE_BYTES = 1024

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_TRUTHY = ("true", "1", "yes", "on")
_FALSEY = ("false", "0", "no", "off", "")


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    return value


def _env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{name}' must be an integer, got '{value}'.")


def _env_float(name: str, default: Optional[float] = None) -> Optional[float]:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable '{name}' must be a float, got '{value}'.")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSEY:
        return False
    raise ValueError(f"Environment variable '{name}' must be a boolean, got '{value}'.")


def validate_identifier(value: str, field_name: str) -> str:
    """Return ``value`` if it is a plain SQL identifier, else raise ValueError."""
    if not isinstance(value, str) or not _IDENTIFIER_RE.match(value):
        raise ValueError(f"Invalid {field_name}: '{value}'. Expected a plain SQL identifier.")
    return value


@dataclass(frozen=True)
class BridgeSettings:
    """Settings shared by the query catalog and the manifest loader."""

    extension_name: str = DEFAULT_EXTENSION_NAME
    manifest_table: str = DEFAULT_MANIFEST_TABLE
    max_query_length: int = DEFAULT_MAX_QUERY_LENGTH
    max_manifest_line_bytes: int = DEFAULT_MAX_MANIFEST_LINE_BYTES
    query_timeout_seconds: Optional[float] = None
    escape_paths: bool = False
    drop_if_exists: bool = False

    def __post_init__(self) -> None:
        """Reject identifiers and limits that would produce unsafe SQL."""
        validate_identifier(self.extension_name, "extension name")
        validate_identifier(self.manifest_table, "manifest table")
        if self.max_query_length <= 0:
            raise ValueError("max_query_length must be positive.")
        if self.max_manifest_line_bytes <= 0:
            raise ValueError("max_manifest_line_bytes must be positive.")

    @classmethod
    def from_env(cls) -> "BridgeSettings":
        """Load bridge settings from EXT_BRIDGE_* environment variables."""
        timeout = _env_float("EXT_BRIDGE_QUERY_TIMEOUT_SECS")
        if timeout is not None and timeout <= 0:
            timeout = None

        return cls(
            extension_name=_env_str("EXT_BRIDGE_EXTENSION_NAME", DEFAULT_EXTENSION_NAME),
            manifest_table=_env_str("EXT_BRIDGE_MANIFEST_TABLE", DEFAULT_MANIFEST_TABLE),
            max_query_length=_env_int("EXT_BRIDGE_MAX_QUERY_LENGTH", DEFAULT_MAX_QUERY_LENGTH),
            max_manifest_line_bytes=_env_int(
                "EXT_BRIDGE_MAX_MANIFEST_LINE_BYTES", DEFAULT_MAX_MANIFEST_LINE_BYTES
            ),
            query_timeout_seconds=timeout,
            escape_paths=_env_bool("EXT_BRIDGE_ESCAPE_PATHS"),
            drop_if_exists=_env_bool("EXT_BRIDGE_DROP_IF_EXISTS"),
        )


@dataclass(frozen=True)
class ConnectionSettings:
    """Connection parameters used when the bridge opens its own channel."""

    host: str
    port: int
    db_name: str
    user: str
    password: Optional[str]
    sslmode: str = "require"

    @classmethod
    def from_env(cls) -> "ConnectionSettings":
        """Load connection parameters from DB_* environment variables."""
        host = _env_str("DB_HOST")
        db_name = _env_str("DB_NAME")
        user = _env_str("DB_USER")

        missing = [
            name
            for name, value in {"DB_HOST": host, "DB_NAME": db_name, "DB_USER": user}.items()
            if not value
        ]
        if missing:
            missing_list = ", ".join(missing)
            raise ValueError(
                f"Extension bridge connection missing required config: {missing_list}. "
                "Set DB_HOST, DB_NAME, and DB_USER."
            )

        return cls(
            host=host,
            port=_env_int("DB_PORT", 5432),
            db_name=db_name,
            user=user,
            password=_env_str("DB_PASS"),
            sslmode=_env_str("DB_SSLMODE", "require"),
        )


def resolve_settings(settings: Optional[BridgeSettings]) -> BridgeSettings:
    """Return explicit settings or load them from the environment."""
    if settings is not None:
        return settings
    return BridgeSettings.from_env()
