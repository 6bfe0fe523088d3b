"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""


class ConfigurationFileError(ConfigurationError):
    """Raised when the TOML configuration file cannot be read or has a bad shape."""
