"""Merge run defaults."""

from __future__ import annotations

from dataclasses import dataclass

from dupmerge.domain.merge.execute import DEFAULT_DISPATCH_DELAY_SECONDS
from dupmerge.domain.merge.sample import DEFAULT_MAX_GROUPS

from .env import optional_env_float, optional_env_int
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class MergeRunConfig:
    test_mode: bool = False
    max_groups: int = DEFAULT_MAX_GROUPS
    dispatch_delay_seconds: float = DEFAULT_DISPATCH_DELAY_SECONDS
    plan_only: bool = False

    def __post_init__(self) -> None:
        if self.max_groups < 1:
            raise ConfigurationError("max_groups must be at least 1")
        if self.dispatch_delay_seconds < 0:
            raise ConfigurationError("dispatch delay must be non-negative")


def get_merge_run_config() -> MergeRunConfig:
    return MergeRunConfig(
        max_groups=optional_env_int("DUPMERGE_MAX_TEST_GROUPS", DEFAULT_MAX_GROUPS),
        dispatch_delay_seconds=optional_env_float(
            "DUPMERGE_DISPATCH_DELAY", DEFAULT_DISPATCH_DELAY_SECONDS
        ),
    )
