"""Optional TOML configuration file (``STUDIOCAT_CONFIG``)."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, TypeAlias, cast

from .env import optional_env_var
from .errors import ConfigurationFileError

if TYPE_CHECKING:
    from collections.abc import Mapping

    ConfigSection: TypeAlias = Mapping[str, object]

CONFIG_PATH_ENV = "STUDIOCAT_CONFIG"


def get_config_path() -> Path | None:
    value = optional_env_var(CONFIG_PATH_ENV)
    return Path(value).expanduser() if value else None


def load_config_file(path: Path | None = None) -> dict[str, object]:
    """Parse the configuration file, returning an empty document when none is set."""

    resolved = path or get_config_path()
    if resolved is None:
        return {}
    try:
        with resolved.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationFileError(f"Configuration file not found: {resolved}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationFileError(f"Invalid TOML in {resolved}: {exc}") from exc


def section(document: Mapping[str, object], name: str) -> ConfigSection:
    """Return the table ``name`` of ``document`` (empty if absent)."""

    value = document.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationFileError(f"Configuration section [{name}] must be a table")
    return cast("dict[str, object]", value)


def read_float(table: ConfigSection, key: str, default: float) -> float:
    value = table.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ConfigurationFileError(f"Configuration value {key!r} must be a number")
    return float(value)


def read_int(table: ConfigSection, key: str, default: int) -> int:
    value = table.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationFileError(f"Configuration value {key!r} must be an integer")
    return value


def read_bool(table: ConfigSection, key: str, default: bool) -> bool:  # noqa: FBT001
    value = table.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationFileError(f"Configuration value {key!r} must be a boolean")
    return value


def read_str(table: ConfigSection, key: str, default: str) -> str:
    value = table.get(key, default)
    if not isinstance(value, str):
        raise ConfigurationFileError(f"Configuration value {key!r} must be a string")
    return value
