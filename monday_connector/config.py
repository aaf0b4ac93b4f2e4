"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from monday_connector.utils.platform import get_config_dir

DEFAULT_API_URL = "https://api.monday.com/v2"
DEFAULT_WEBHOOK_PATH = "/monday-event"


class ApiConfig(BaseModel):
    token: str = ""
    url: str = DEFAULT_API_URL
    version: str = "2023-10"
    timeout: float = 30.0


class WebhooksConfig(BaseModel):
    # Public URL Monday calls back, without the path
    base_url: str = ""
    path: str = DEFAULT_WEBHOOK_PATH
    bind: str = "0.0.0.0"
    port: int = 8420


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MONDAY_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    api: ApiConfig = Field(default_factory=ApiConfig)
    webhooks: WebhooksConfig = Field(default_factory=WebhooksConfig)
    log_level: str = "INFO"
    log_json: bool = False


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    # Determine config file path
    if config_path is None:
        config_path = os.environ.get("MONDAY_CONFIG")
    if config_path is None:
        default = get_config_dir() / "config.yaml"
        if default.exists():
            config_path = default

    # Load YAML if found
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    if overrides:
        yaml_data = _deep_merge(yaml_data, overrides)

    # Build settings: YAML values are init kwargs, so they win over env vars
    return Settings(**yaml_data)
