"""Retry and rate-limit settings for document store HTTP clients.

Store writes are not idempotent in general, but the two calls the merge
issues are: a partial update with the same properties and an archive of an
already archived page both leave the page in the same state. Retrying
``PATCH`` is therefore safe here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

# 409 is Notion's conflict_error for concurrent edits of the same page
RETRYABLE_STATUS_CODES = frozenset({409, 429, 500, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    total: int = 3
    backoff_factor: float = 1.0
    max_backoff_wait: float = 60.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = field(
        default_factory=lambda: frozenset({"GET", "POST", "PATCH"})
    )
    status_forcelist: frozenset[int] = RETRYABLE_STATUS_CODES
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )
    backoff_jitter: float = 1.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    """Everything needed to build one resilient client for one API."""

    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    default_headers: Mapping[str, str] | None = None
