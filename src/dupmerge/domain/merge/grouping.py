"""Duplicate grouping and destination selection.

Responsibilities of this stage:
- drop records without a usable identity key
- group the rest by normalised identity key
- pick the oldest record of each group as destination

The stage is a pure function of its input: running it twice on the same
records yields the same groups and the same destinations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING

from dupmerge.domain.records import normalize_identity_key

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dupmerge.domain.records import Record

log = getLogger(__name__)


@dataclass(slots=True, frozen=True, kw_only=True)
class DuplicateGroup:
    """Records sharing one identity key, split into destination and sources."""

    group_id: str
    identity_key: str
    destination: Record
    sources: tuple[Record, ...]

    def __post_init__(self) -> None:
        if not self.sources:
            raise ValueError(f"Duplicate group {self.group_id} needs at least one source")
        if any(source.id == self.destination.id for source in self.sources):
            raise ValueError(f"Destination {self.destination.id} is listed as a source")

    @property
    def records(self) -> tuple[Record, ...]:
        """All records, destination first, then sources in age order."""

        return (self.destination, *self.sources)


@dataclass(slots=True, frozen=True, kw_only=True)
class GroupingResult:
    groups: tuple[DuplicateGroup, ...] = ()
    records_scanned: int = 0
    skipped_ids: tuple[str, ...] = field(default_factory=tuple["str", ...])

    @property
    def records_skipped(self) -> int:
        return len(self.skipped_ids)


def creation_order_key(record: Record) -> tuple[int, datetime, int]:
    """Sort key: timestamped records oldest first, then untimestamped, by position."""

    if record.created_at is None:
        return (1, datetime.min, record.position)
    return (0, record.created_at, record.position)


def group_duplicates(records: Iterable[Record]) -> GroupingResult:
    """Partition ``records`` into duplicate groups keyed by identity."""

    by_key: dict[str, list[Record]] = {}
    skipped: list[str] = []
    scanned = 0
    for record in records:
        scanned += 1
        key = normalize_identity_key(record.identity_key)
        if key is None:
            log.warning("Skipping record %s: missing identity key", record.id)
            skipped.append(record.id)
            continue
        by_key.setdefault(key, []).append(record)

    groups: list[DuplicateGroup] = []
    for key, members in by_key.items():
        if len(members) < 2:
            continue
        ordered = sorted(members, key=creation_order_key)
        groups.append(
            DuplicateGroup(
                group_id=key,
                identity_key=key,
                destination=ordered[0],
                sources=tuple(ordered[1:]),
            )
        )

    log.info(
        "Grouped %s records: %s duplicate groups, %s skipped",
        scanned,
        len(groups),
        len(skipped),
    )
    return GroupingResult(
        groups=tuple(groups),
        records_scanned=scanned,
        skipped_ids=tuple(skipped),
    )
