"""Application configuration helpers."""

from __future__ import annotations

from dupmerge.common.logging import configure_logging

from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .merge import MergeRunConfig, get_merge_run_config
from .notion import NOTION_API_VERSION, NotionConfig, get_notion_config
from .storage import OutputConfig, get_output_config

__all__ = [
    "NOTION_API_VERSION",
    "ConfigurationError",
    "MergeRunConfig",
    "MissingConfigurationError",
    "NotionConfig",
    "OutputConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "get_merge_run_config",
    "get_notion_config",
    "get_output_config",
    "require_env_vars",
]
