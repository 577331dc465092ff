"""Notion configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

NOTION_BASE_URL = "https://api.notion.com/v1/"
NOTION_API_VERSION = "2022-06-28"
NOTION_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class NotionConfig:
    token: str
    database_id: str
    resilience: ResilienceConfig


def get_notion_config(*, resilience: ResilienceConfig | None = None) -> NotionConfig:
    values = require_env_vars(("NOTION_TOKEN", "NOTION_DATABASE_ID"))
    token = values["NOTION_TOKEN"]
    return NotionConfig(
        token=token,
        database_id=values["NOTION_DATABASE_ID"],
        resilience=resilience
        or ResilienceConfig(
            name="notion",
            base_url=NOTION_BASE_URL,
            timeout_seconds=NOTION_TIMEOUT_SECONDS,
            retry=RetryPolicy(),
            ratelimit=RateLimit(max_calls=3, per_seconds=1.0),
            default_headers={
                "Authorization": f"Bearer {token}",
                "Notion-Version": NOTION_API_VERSION,
                "Content-Type": "application/json",
            },
        ),
    )
