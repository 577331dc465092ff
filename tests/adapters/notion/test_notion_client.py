from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import pytest

from dupmerge.adapters.notion import NotionAPIError
from tests.support.notion import page_payload

if TYPE_CHECKING:
    from collections.abc import Callable

    from dupmerge.adapters.notion import NotionClient

    from tests.support.notion import Handler


def test_query_database_follows_cursor(
    make_notion_client: Callable[[Handler], NotionClient],
) -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/v1/databases/db/query"
        body = json.loads(request.content)
        bodies.append(body)
        if "start_cursor" not in body:
            return httpx.Response(
                200,
                json={
                    "results": [page_payload("p1", email="a@x.com")],
                    "has_more": True,
                    "next_cursor": "c2",
                },
            )
        return httpx.Response(
            200,
            json={"results": [page_payload("p2", email="b@x.com")], "has_more": False},
        )

    pages = make_notion_client(handler).query_database("db")

    assert [page.id for page, _ in pages] == ["p1", "p2"]
    assert bodies[0] == {"page_size": 100}
    assert bodies[1] == {"page_size": 100, "start_cursor": "c2"}


def test_truncated_relation_is_fetched_in_full(
    make_notion_client: Callable[[Handler], NotionClient],
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            payload = page_payload("p1", email="a@x.com", papers=["r1"], papers_has_more=True)
            return httpx.Response(200, json={"results": [payload], "has_more": False})
        assert request.url.path == "/v1/pages/p1/properties/pp"
        if request.url.params.get("start_cursor") is None:
            return httpx.Response(
                200,
                json={
                    "results": [
                        {"type": "relation", "relation": {"id": "r1"}},
                        {"type": "relation", "relation": {"id": "r2"}},
                    ],
                    "has_more": True,
                    "next_cursor": "n",
                },
            )
        return httpx.Response(
            200,
            json={"results": [{"type": "relation", "relation": {"id": "r3"}}]},
        )

    ((page, overrides),) = make_notion_client(handler).query_database("db")

    assert page.id == "p1"
    assert overrides == {"Papers": ["r1", "r2", "r3"]}


def test_update_and_archive_send_patch(
    make_notion_client: Callable[[Handler], NotionClient],
) -> None:
    seen: list[tuple[str, str, dict[str, object]]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"id": "p1", "properties": {}})

    client = make_notion_client(handler)
    client.update_page("p1", {"Phone": {"phone_number": "555"}})
    client.archive_page("p1")

    assert seen == [
        ("PATCH", "/v1/pages/p1", {"properties": {"Phone": {"phone_number": "555"}}}),
        ("PATCH", "/v1/pages/p1", {"archived": True}),
    ]


def test_error_response_raises_api_error(
    make_notion_client: Callable[[Handler], NotionClient],
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={
                "object": "error",
                "status": 400,
                "code": "validation_error",
                "message": "Phone is not a property",
            },
        )

    with pytest.raises(NotionAPIError) as excinfo:
        make_notion_client(handler).update_page("p1", {})

    assert excinfo.value.status_code == 400
    assert excinfo.value.code == "validation_error"
    assert "Phone is not a property" in str(excinfo.value)


def test_unparseable_error_body_keeps_status(
    make_notion_client: Callable[[Handler], NotionClient],
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not json")

    with pytest.raises(NotionAPIError, match="HTTP 404") as excinfo:
        make_notion_client(handler).archive_page("missing")

    assert excinfo.value.status_code == 404
