"""Formatters producing Notion property payloads for page updates."""

from __future__ import annotations

from collections.abc import Callable

from dupmerge.domain.records import relation_ids, set_members

type Formatter = Callable[[object], dict[str, object]]


def rich_text(value: object) -> dict[str, object]:
    return {"rich_text": [{"text": {"content": str(value)}}]}


def phone_number(value: object) -> dict[str, object]:
    return {"phone_number": str(value)}


def select(value: object) -> dict[str, object]:
    return {"select": {"name": str(value)}}


def multi_select(value: object) -> dict[str, object]:
    return {"multi_select": [{"name": name} for name in set_members(value)]}


def relation(value: object) -> dict[str, object]:
    return {"relation": [{"id": ref} for ref in relation_ids(value)]}
