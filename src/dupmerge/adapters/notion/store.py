"""Notion database exposed through the document store port."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from dupmerge.config.notion import get_notion_config
from dupmerge.domain.ports.store import StoreMutationError, StoreReadError

from .client import NotionAPIError, NotionClient
from .translator import document_from_page

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dupmerge.domain.records import StoreDocument

log = getLogger(__name__)


def _default_client() -> NotionClient:
    return NotionClient(config=get_notion_config())


@dataclass(slots=True)
class NotionDocumentStore:
    """Collections are Notion database ids; documents are pages."""

    client: NotionClient = field(default_factory=_default_client)

    def query_all(
        self,
        collection: str,
        *,
        filter: Mapping[str, object] | None = None,  # noqa: A002
    ) -> list[StoreDocument]:
        try:
            pages = self.client.query_database(collection, filter=filter)
        except (NotionAPIError, httpx.HTTPError) as exc:
            raise StoreReadError(f"Could not query Notion database {collection}: {exc}") from exc

        documents = [
            document_from_page(page, relation_overrides=overrides)
            for page, overrides in pages
            if not (page.archived or page.in_trash)
        ]
        log.info("Read %s pages from Notion database %s", len(documents), collection)
        return documents

    def update_partial(self, document_id: str, properties: Mapping[str, object]) -> None:
        try:
            self.client.update_page(document_id, properties)
        except NotionAPIError as exc:
            raise StoreMutationError(str(exc), status_code=exc.status_code) from exc
        except httpx.HTTPError as exc:
            raise StoreMutationError(f"{type(exc).__name__}: {exc}") from exc

    def archive(self, document_id: str) -> None:
        try:
            self.client.archive_page(document_id)
        except NotionAPIError as exc:
            raise StoreMutationError(str(exc), status_code=exc.status_code) from exc
        except httpx.HTTPError as exc:
            raise StoreMutationError(f"{type(exc).__name__}: {exc}") from exc
