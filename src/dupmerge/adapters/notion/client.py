"""HTTP client for the Notion API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from dupmerge.adapters.http_resilience import ResilientClient

from .schema import NotionErrorResponse, NotionPage, NotionPageList, PropertyItemList
from .translator import truncated_relations

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    import httpx

    from dupmerge.config.http_resilience import ResilienceConfig
    from dupmerge.config.notion import NotionConfig

log = getLogger(__name__)

QUERY_PAGE_SIZE = 100


class NotionAPIError(RuntimeError):
    """Raised when the Notion API rejects a request."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class NotionClient:
    """Low-level client for database queries and page updates."""

    def __init__(
        self,
        *,
        config: NotionConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def query_database(
        self,
        database_id: str,
        *,
        filter: Mapping[str, object] | None = None,  # noqa: A002
    ) -> list[tuple[NotionPage, dict[str, list[str]]]]:
        """Return every page of the database with its complete relation lists.

        Each page comes with a mapping of relation property names to the full
        id lists for relations the query payload truncated.
        """

        return asyncio.run(self._query_database_async(database_id, filter=filter))

    def update_page(self, page_id: str, properties: Mapping[str, object]) -> NotionPage:
        return asyncio.run(self._patch_page_async(page_id, {"properties": dict(properties)}))

    def archive_page(self, page_id: str) -> NotionPage:
        return asyncio.run(self._patch_page_async(page_id, {"archived": True}))

    async def _query_database_async(
        self,
        database_id: str,
        *,
        filter: Mapping[str, object] | None,  # noqa: A002
    ) -> list[tuple[NotionPage, dict[str, list[str]]]]:
        pages: list[tuple[NotionPage, dict[str, list[str]]]] = []
        cursor: str | None = None
        async with self._client_factory(self._resilience) as client:
            while True:
                body: dict[str, object] = {"page_size": QUERY_PAGE_SIZE}
                if cursor is not None:
                    body["start_cursor"] = cursor
                if filter:
                    body["filter"] = dict(filter)
                response = await client.post(f"databases/{database_id}/query", json=body)
                batch = _parse(NotionPageList, response)

                for page in batch.results:
                    overrides: dict[str, list[str]] = {}
                    for name, property_id in truncated_relations(page).items():
                        overrides[name] = await self._relation_ids(
                            client, page_id=page.id, property_id=property_id
                        )
                    pages.append((page, overrides))

                log.debug("Fetched %s pages from %s", len(pages), database_id)
                if not batch.has_more or batch.next_cursor is None:
                    break
                cursor = batch.next_cursor
        return pages

    async def _relation_ids(
        self,
        client: ResilientClient,
        *,
        page_id: str,
        property_id: str,
    ) -> list[str]:
        ids: list[str] = []
        cursor: str | None = None
        while True:
            params: dict[str, str] = {"page_size": str(QUERY_PAGE_SIZE)}
            if cursor is not None:
                params["start_cursor"] = cursor
            response = await client.get(f"pages/{page_id}/properties/{property_id}", params=params)
            items = _parse(PropertyItemList, response)
            ids.extend(item.relation.id for item in items.results if item.relation is not None)
            if not items.has_more or items.next_cursor is None:
                return ids
            cursor = items.next_cursor

    async def _patch_page_async(self, page_id: str, body: dict[str, object]) -> NotionPage:
        async with self._client_factory(self._resilience) as client:
            response = await client.patch(f"pages/{page_id}", json=body)
            return _parse(NotionPage, response)


def _parse[TModel: (NotionPage, NotionPageList, PropertyItemList)](
    model: type[TModel],
    response: httpx.Response,
) -> TModel:
    if response.is_error:
        raise _api_error(response)
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise NotionAPIError(
            f"Unexpected Notion response payload: {exc}",
            status_code=response.status_code,
        ) from exc


def _api_error(response: httpx.Response) -> NotionAPIError:
    try:
        error = NotionErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        return NotionAPIError(
            f"HTTP {response.status_code} from Notion",
            status_code=response.status_code,
        )
    return NotionAPIError(
        f"{error.code}: {error.message}",
        status_code=error.status,
        code=error.code,
    )
