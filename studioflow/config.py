from __future__ import annotations

import os
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from .constants import (
    CONFIG_ENV_VAR,
    DATABASE_URL_ENV_VARS,
    DEFAULT_CONFIG_FILE,
    DEFAULT_GENERATION_RETRIES,
    DEFAULT_SAVE_TIMEOUT,
)


class PersistenceConfig(BaseModel):
    """Settings for saving progression state."""

    save_timeout: float = Field(default=DEFAULT_SAVE_TIMEOUT, gt=0)


class CampaignConfig(BaseModel):
    """Settings for batch generation runs."""

    retry_attempts: int = Field(default=DEFAULT_GENERATION_RETRIES, ge=0)
    retry_base_delay: float = Field(default=1.5, ge=0)
    retry_jitter: float = Field(default=0.5, ge=0)


class StudioflowConfig(BaseModel):
    """Top-level configuration model."""

    database_url: Optional[str] = None
    persistence: PersistenceConfig = PersistenceConfig()
    campaigns: CampaignConfig = CampaignConfig()


def database_url_from_env() -> Optional[str]:
    for name in DATABASE_URL_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    return None


def load_config(path: Optional[str] = None) -> StudioflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to STUDIOFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE)
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = StudioflowConfig(**data)
    else:
        config = StudioflowConfig()

    env_db_url = database_url_from_env()
    if env_db_url:
        config.database_url = env_db_url
    return config
