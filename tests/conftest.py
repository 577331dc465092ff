from __future__ import annotations

import pytest

from dupmerge.domain.merge.policy import MergePolicy  # noqa: TC001
from tests.support.policy import SIMPLE_POLICY


@pytest.fixture
def policy() -> MergePolicy:
    return SIMPLE_POLICY


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "NOTION_TOKEN",
        "NOTION_DATABASE_ID",
        "DUPMERGE_OUTPUT_DIR",
        "DUPMERGE_MAX_TEST_GROUPS",
        "DUPMERGE_DISPATCH_DELAY",
    ):
        monkeypatch.delenv(name, raising=False)
