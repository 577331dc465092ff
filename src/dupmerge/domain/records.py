"""Record types shared by the merge pipeline.

Two shapes exist:
- ``StoreDocument``: what a document store returns (flat, keyed by read path)
- ``Record``: a parsed document with an identity key and a trusted timestamp
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

log = getLogger(__name__)


class AttributeKind(StrEnum):
    """How an attribute participates in a merge."""

    SCALAR = "scalar"
    SET = "set"
    RELATION = "relation"


@dataclass(slots=True, frozen=True, kw_only=True)
class StoreDocument:
    """Raw document as returned by a store query."""

    id: str | None
    properties: Mapping[str, object] = field(default_factory=dict["str", "object"])
    created_time: object = None
    url: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class Record:
    """Parsed store document.

    ``position`` is the index in the original query result and breaks ties when
    timestamps are equal or missing.
    """

    id: str
    identity_key: str | None
    created_at: datetime | None
    attributes: Mapping[str, object]
    position: int = 0
    url: str | None = None

    def value(self, path: str) -> object:
        return self.attributes.get(path)


def has_value(value: object) -> bool:
    """Return whether ``value`` carries information (not null/blank/empty)."""

    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, frozenset, Mapping)):
        return len(value) > 0
    return True


def values_equivalent(left: object, right: object) -> bool:
    """Compare two attribute values, treating every empty form as equal."""

    left_present = has_value(left)
    right_present = has_value(right)
    if not left_present or not right_present:
        return left_present == right_present
    return left == right


def normalize_identity_key(value: object) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip().lower()
    return normalized or None


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning ``None`` when it is unusable."""

    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        normalized = value.strip()
        if not normalized:
            return None
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def relation_ids(value: object) -> list[str]:
    """Normalise a relation value into a list of referenced ids.

    Stores return either plain id strings or mappings with an ``id`` key.
    """

    if not isinstance(value, (list, tuple)):
        return []
    ids: list[str] = []
    for item in value:
        if isinstance(item, str):
            ref = item.strip()
        elif isinstance(item, Mapping):
            raw = item.get("id")  # type: ignore[reportUnknownMemberType]
            ref = str(raw).strip() if raw else ""
        else:
            ref = ""
        if ref:
            ids.append(ref)
    return ids


def set_members(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(item) for item in value if has_value(item)]  # type: ignore[reportUnknownVariableType]
    return [str(value)] if has_value(value) else []


def build_records(
    documents: Iterable[StoreDocument],
    *,
    identity_paths: Sequence[str],
) -> list[Record]:
    """Convert store documents into records, skipping unusable documents.

    Documents without an ``id`` are dropped. Records with an unparseable
    timestamp are kept with ``created_at=None``.
    """

    records: list[Record] = []
    for position, document in enumerate(documents):
        if not document.id:
            log.warning("Skipping document at position %s: missing id", position)
            continue
        created_at = parse_timestamp(document.created_time)
        if created_at is None:
            log.warning(
                "Document %s has unusable created_time %r; ordering falls back to position",
                document.id,
                document.created_time,
            )
        records.append(
            Record(
                id=document.id,
                identity_key=_first_identity_value(document.properties, identity_paths),
                created_at=created_at,
                attributes=dict(document.properties),
                position=position,
                url=document.url,
            )
        )
    return records


def _first_identity_value(properties: Mapping[str, object], paths: Sequence[str]) -> str | None:
    for path in paths:
        value = properties.get(path)
        if has_value(value):
            return str(value)
    return None
