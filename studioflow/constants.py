"""Shared constants for studioflow."""

DEFAULT_CONFIG_FILE = "config.yaml"
CONFIG_ENV_VAR = "STUDIOFLOW_CONFIG"
DATABASE_URL_ENV_VARS = ("STUDIOFLOW_DATABASE_URL", "DATABASE_URL")

DEFAULT_SAVE_TIMEOUT = 10.0
DEFAULT_GENERATION_RETRIES = 1

# Storage record kinds
PROGRESSION_KIND = "progression"
CAMPAIGN_KIND = "campaign"
