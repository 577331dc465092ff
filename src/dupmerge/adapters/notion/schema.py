"""Notion API response schemas for database pages."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

# warn once per process for each property type the translator drops
logged_unsupported_types: set[str] = set()

type NotionId = str
type NotionTimestamp = str  # ISO-8601, e.g. 2024-01-07T12:00:00.000Z


class NotionBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class RichTextItem(NotionBaseModel):
    plain_text: str = ""
    type: str | None = None


class SelectOption(NotionBaseModel):
    name: str
    id: str | None = None
    color: str | None = None


class RelationRef(NotionBaseModel):
    id: NotionId


class DateValue(NotionBaseModel):
    start: str | None = None
    end: str | None = None


class PropertyValue(NotionBaseModel):
    """One entry of ``page.properties``; only the field named by ``type`` is set."""

    id: str | None = None
    type: str
    title: list[RichTextItem] | None = None
    rich_text: list[RichTextItem] | None = None
    email: str | None = None
    phone_number: str | None = None
    url: str | None = None
    number: float | None = None
    checkbox: bool | None = None
    select: SelectOption | None = None
    status: SelectOption | None = None
    multi_select: list[SelectOption] | None = None
    relation: list[RelationRef] | None = None
    has_more: bool = False
    date: DateValue | None = None
    created_time: NotionTimestamp | None = None
    last_edited_time: NotionTimestamp | None = None

    def note_unsupported(self) -> None:
        if self.type in logged_unsupported_types:
            return
        logged_unsupported_types.add(self.type)
        log.warning("Notion property type %s is not simplified; value dropped", self.type)


class NotionPage(NotionBaseModel):
    object: str = "page"
    id: NotionId
    url: str | None = None
    created_time: NotionTimestamp | None = None
    last_edited_time: NotionTimestamp | None = None
    archived: bool = False
    in_trash: bool = False
    properties: dict[str, PropertyValue] = Field(default_factory=dict["str", "PropertyValue"])


class NotionPageList(NotionBaseModel):
    object: str = "list"
    results: list[NotionPage] = Field(default_factory=list["NotionPage"])
    next_cursor: str | None = None
    has_more: bool = False


class PropertyItem(NotionBaseModel):
    object: str = "property_item"
    type: str
    relation: RelationRef | None = None


class PropertyItemList(NotionBaseModel):
    object: str = "list"
    results: list[PropertyItem] = Field(default_factory=list["PropertyItem"])
    next_cursor: str | None = None
    has_more: bool = False


class NotionErrorResponse(NotionBaseModel):
    object: str = "error"
    status: int
    code: str
    message: str
