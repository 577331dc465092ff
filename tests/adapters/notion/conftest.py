from __future__ import annotations

from collections.abc import Callable, Iterator  # noqa: TC003

import pytest

from dupmerge.adapters.http_resilience import ResilienceConfig
from dupmerge.adapters.notion import NotionClient, schema
from dupmerge.config.notion import NOTION_BASE_URL, NotionConfig
from tests.support.notion import Handler, make_client_factory  # noqa: TC001


@pytest.fixture(autouse=True)
def _reset_unsupported_type_warnings() -> Iterator[None]:
    schema.logged_unsupported_types.clear()
    yield
    schema.logged_unsupported_types.clear()


@pytest.fixture
def notion_config() -> NotionConfig:
    return NotionConfig(
        token="secret",
        database_id="db",
        resilience=ResilienceConfig(name="notion-test", base_url=NOTION_BASE_URL),
    )


@pytest.fixture
def make_notion_client(notion_config: NotionConfig) -> Callable[[Handler], NotionClient]:
    def build(handler: Handler) -> NotionClient:
        return NotionClient(config=notion_config, client_factory=make_client_factory(handler))

    return build
