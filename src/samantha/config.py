"""Configuration management for Samantha."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from loguru import logger
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from samantha.backend.base import BackendProviderConfig
from samantha.errors import ConfigurationError
from samantha.frontend.base import FrontendProviderConfig

Environment = Literal["DEV", "PROD"]


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="SAMANTHA_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Environment = Field(default="DEV", description="DEV logs everything, PROD logs warnings as JSON")
    log_level: str | None = Field(default=None, description="Override of the environment log level")
    frontend_config_file: Path = Field(default=Path("frontend/config.yaml"))
    backend_config_file: Path = Field(default=Path("backend/config.yaml"))
    channel_capacity: int = Field(default=1, ge=1, description="Capsules waiting for the back-end")

    @field_validator("environment", mode="before")
    @classmethod
    def _normalize_environment(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value


def _read_yaml(path: Path) -> Any:
    logger.info("config.parse filename={}", path)
    try:
        with open(path, encoding="utf-8") as file:
            return yaml.safe_load(file)
    except OSError as exc:
        raise ConfigurationError(f"cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"cannot unmarshal config file {path}: {exc}") from exc


def _as_list(data: Any, path: Path) -> list[Any]:
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return data
    raise ConfigurationError(f"config file {path} must hold a mapping or a list of mappings")


def load_frontend_config(path: Path) -> list[FrontendProviderConfig]:
    """Load the front-end provider list from a YAML file."""

    entries = _as_list(_read_yaml(path), path)
    try:
        return [FrontendProviderConfig.model_validate(entry) for entry in entries]
    except ValidationError as exc:
        raise ConfigurationError(f"invalid frontend config {path}: {exc}") from exc


def load_backend_config(path: Path) -> list[BackendProviderConfig]:
    """Load the back-end provider configuration from a YAML file.

    The file holds either a single mapping or a list of mappings, one of which
    is activated.
    """
    entries = _as_list(_read_yaml(path), path)
    try:
        return [BackendProviderConfig.model_validate(entry) for entry in entries]
    except ValidationError as exc:
        raise ConfigurationError(f"invalid backend config {path}: {exc}") from exc
