"""
Environment configuration module.

Settings that are not part of the config file are read from the environment
(optionally populated from a .env file).
"""

import math
import os
from typing import Callable, Union

from dotenv import load_dotenv

from ghapp_secret_sync.exception.exceptions import ConfigError

# Load environment variables from .env file
load_dotenv()

DEFAULT_CONFIG_PATH = "/etc/gh_get_token.conf"

GH_TOKEN_SYNC_CONFIG = os.getenv("GH_TOKEN_SYNC_CONFIG", DEFAULT_CONFIG_PATH)

# GitHub Configuration
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
GITHUB_API_VERSION = os.getenv("GITHUB_API_VERSION", "2022-11-28")
GITHUB_APP_PRIVATE_KEY_CONTENT = os.getenv("GITHUB_APP_PRIVATE_KEY_CONTENT")

# Run limits, parsed on demand by the getters below
DEFAULT_DEADLINE_SECONDS = 300.0
DEFAULT_MAX_WORKERS = 4
DEFAULT_HTTP_TIMEOUT = 30.0

# Kubernetes
KUBECONFIG_CONTEXT = os.getenv("KUBECONFIG_CONTEXT")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Constants
DEFAULT_REGISTRY_HOST = "ghcr.io"
CLOCK_SKEW_SECONDS = 10
MAX_ASSERTION_LIFETIME_SECONDS = 300


def parse_positive(name: str, raw: str, cast: Callable[[str], Union[int, float]]) -> Union[int, float]:
    """
    Parse ``raw`` as a positive number.

    Raises:
        ConfigError: If the value is not a number or not greater than zero
    """
    try:
        value = cast(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
    if not math.isfinite(value) or value <= 0:
        raise ConfigError(f"{name} must be greater than zero, got {raw!r}")
    return value


def _positive_env(name: str, default: Union[int, float], cast: Callable[[str], Union[int, float]]):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return parse_positive(name, raw.strip(), cast)


def get_deadline_seconds() -> float:
    return _positive_env("GH_TOKEN_SYNC_DEADLINE_SECONDS", DEFAULT_DEADLINE_SECONDS, float)


def get_max_workers() -> int:
    return _positive_env("GH_TOKEN_SYNC_MAX_WORKERS", DEFAULT_MAX_WORKERS, int)


def get_http_timeout() -> float:
    return _positive_env("GH_TOKEN_SYNC_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT, float)
