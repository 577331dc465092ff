"""Translate Notion pages into flat store documents.

Each property is exposed as ``property_<snake_case name>`` with a plain value,
so a page reads the same way as Notion's simplified database output.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from dupmerge.domain.records import StoreDocument

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from .schema import NotionPage, PropertyValue, RichTextItem

PROPERTY_KEY_PREFIX = "property_"

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def simplify_property_key(name: str) -> str:
    """``"WebDB: Book endorsements"`` -> ``"property_web_db_book_endorsements"``."""

    spaced = _CAMEL_BOUNDARY.sub(r"\1_\2", name.strip())
    snake = _NON_ALNUM.sub("_", spaced.lower()).strip("_")
    return f"{PROPERTY_KEY_PREFIX}{snake}"


def simplify_property(value: PropertyValue) -> object:  # noqa: PLR0911
    match value.type:
        case "title":
            return _plain_text(value.title)
        case "rich_text":
            return _plain_text(value.rich_text)
        case "email":
            return value.email
        case "phone_number":
            return value.phone_number
        case "url":
            return value.url
        case "number":
            return value.number
        case "checkbox":
            return value.checkbox
        case "select":
            return value.select.name if value.select else None
        case "status":
            return value.status.name if value.status else None
        case "multi_select":
            return [option.name for option in value.multi_select or ()]
        case "relation":
            return [ref.id for ref in value.relation or ()]
        case "date":
            return value.date.start if value.date else None
        case "created_time":
            return value.created_time
        case "last_edited_time":
            return value.last_edited_time
        case _:
            value.note_unsupported()
            return None


def document_from_page(
    page: NotionPage,
    *,
    relation_overrides: Mapping[str, Sequence[str]] | None = None,
) -> StoreDocument:
    """Build a store document from ``page``.

    ``relation_overrides`` maps property names to complete relation id lists
    for relations Notion truncated in the page payload.
    """

    overrides = relation_overrides or {}
    properties: dict[str, object] = {}
    for name, value in page.properties.items():
        if name in overrides:
            properties[simplify_property_key(name)] = list(overrides[name])
            continue
        properties[simplify_property_key(name)] = simplify_property(value)
    return StoreDocument(
        id=page.id,
        url=page.url,
        created_time=page.created_time,
        properties=properties,
    )


def truncated_relations(page: NotionPage) -> dict[str, str]:
    """Return ``{property name: property id}`` for relations with more items than shown."""

    return {
        name: value.id
        for name, value in page.properties.items()
        if value.type == "relation" and value.has_more and value.id
    }


def _plain_text(items: list[RichTextItem] | None) -> str | None:
    if not items:
        return None
    return "".join(item.plain_text for item in items)
