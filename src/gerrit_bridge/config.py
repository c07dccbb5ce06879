"""Configuration management for Gerrit Bridge.

This module defines the configuration schema using Pydantic settings,
supporting TOML files, environment variables, and programmatic overrides.

Configuration loading priority (highest to lowest):
1. Programmatic overrides (passed to BridgeConfig constructor)
2. Environment variables (GERRIT_BRIDGE_* prefix)
3. TOML configuration file
4. Default values defined in this module

Example TOML configuration:
    [gerrit]
    scheme = "https"
    host = "review.example.org"
    port = 443
    username = "sonar"
    password = "secret"
    auth_scheme = "basic"

Example environment variable override:
    GERRIT_BRIDGE_GERRIT__HOST="review.example.org"
    GERRIT_BRIDGE_LOGGING__LEVEL=DEBUG
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomli
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, EnvSettingsSource, SettingsConfigDict


class GerritConfig(BaseSettings):
    """Gerrit server connection configuration.

    Attributes:
        scheme: URL scheme (http or https)
        host: Gerrit server host name
        port: Gerrit server port
        username: HTTP user name
        password: HTTP password
        base_path: Optional path prefix when Gerrit is not served at the root
        auth_scheme: HTTP authentication scheme (basic or digest)
        timeout_seconds: Request timeout in seconds
    """

    model_config = SettingsConfigDict(
        env_prefix="GERRIT_BRIDGE_GERRIT__",
        extra="forbid",
    )

    scheme: str = Field(default="http")
    host: str = Field(default="localhost", min_length=1)
    port: int = Field(default=8080, ge=1, le=65535)
    username: str = Field(default="")
    password: str = Field(default="")
    base_path: str | None = Field(default=None)
    auth_scheme: str = Field(default="digest")
    timeout_seconds: int = Field(default=30, ge=1, le=300)

    @field_validator("scheme")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        """Validate URL scheme is recognized."""
        valid_schemes = {"http", "https"}
        v_lower = v.lower()
        if v_lower not in valid_schemes:
            raise ValueError(f"Invalid scheme: {v}. Must be one of {valid_schemes}")
        return v_lower

    @field_validator("auth_scheme")
    @classmethod
    def validate_auth_scheme(cls, v: str) -> str:
        """Validate authentication scheme is recognized."""
        valid_schemes = {"basic", "digest"}
        v_lower = v.lower()
        if v_lower not in valid_schemes:
            raise ValueError(
                f"Invalid auth scheme: {v}. Must be one of {valid_schemes}"
            )
        return v_lower

    @field_validator("base_path")
    @classmethod
    def normalize_base_path(cls, v: str | None) -> str | None:
        """Normalize base path to a leading slash and no trailing slash."""
        if v is None:
            return None
        stripped = v.strip().strip("/")
        if not stripped:
            return None
        return f"/{stripped}"

    @property
    def base_url(self) -> str:
        """Server root URL including the optional base path."""
        return f"{self.scheme}://{self.host}:{self.port}{self.base_path or ''}"


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json or console)
        file: Optional log file path (None for stdout only)
        rotation_size_mb: Log file rotation size in megabytes
        retention_count: Number of rotated log files to keep
    """

    model_config = SettingsConfigDict(
        env_prefix="GERRIT_BRIDGE_LOGGING__",
        extra="forbid",
    )

    level: str = Field(default="INFO")
    format: str = Field(default="console")
    file: Path | None = Field(default=None)
    rotation_size_mb: int = Field(default=50, ge=1, le=1000)
    retention_count: int = Field(default=10, ge=1, le=100)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is recognized."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format is recognized."""
        valid_formats = {"json", "console"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return v_lower


class BridgeConfig(BaseSettings):
    """Root configuration for Gerrit Bridge.

    Environment variable format for nested config:
        GERRIT_BRIDGE_<SECTION>__<KEY>=value

    Example:
        GERRIT_BRIDGE_GERRIT__PORT=8443
        GERRIT_BRIDGE_LOGGING__FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="GERRIT_BRIDGE_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    gerrit: GerritConfig = Field(default_factory=GerritConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` applied recursively on top."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Path | None = None) -> BridgeConfig:
    """Load configuration from TOML file with environment variable overrides.

    Configuration search order (first found is used):
    1. config_path if explicitly provided
    2. ./gerrit-bridge.toml (current directory)
    3. ~/.config/gerrit-bridge/config.toml (user config directory)

    Args:
        config_path: Explicit path to TOML config file. If None, searches
                    default locations.

    Returns:
        BridgeConfig: Fully resolved configuration instance.

    Raises:
        FileNotFoundError: If config_path is explicitly provided but doesn't exist.
        ValueError: If TOML file contains invalid configuration.
    """
    toml_data: dict[str, Any] = {}

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        selected_path = config_path
    else:
        search_paths = [
            Path.cwd() / "gerrit-bridge.toml",
            Path.home() / ".config" / "gerrit-bridge" / "config.toml",
        ]
        selected_path = None
        for path in search_paths:
            if path.exists():
                selected_path = path
                break

    if selected_path is not None:
        with open(selected_path, "rb") as f:
            toml_data = tomli.load(f)

    # Init kwargs outrank env in pydantic-settings, so env values are merged in first
    try:
        env_data = EnvSettingsSource(BridgeConfig)()
        return BridgeConfig(**_deep_merge(toml_data, env_data))
    except Exception as e:
        if selected_path:
            raise ValueError(
                f"Invalid configuration in {selected_path}: {e}"
            ) from e
        else:
            raise ValueError(f"Invalid configuration: {e}") from e
