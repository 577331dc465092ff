"""Mutation planning for merged duplicate groups.

The plan is the contract between merging and execution. Intents are frozen
and carry everything the executor and reporter need, so neither stage has to
look back at groups or merge results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from dupmerge.domain.records import AttributeKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from dupmerge.domain.records import Record

    from .grouping import DuplicateGroup
    from .policy import MergePolicy
    from .resolve import MergeResult


class MutationKind(StrEnum):
    UPDATE_DESTINATION = "update_destination"
    ARCHIVE_SOURCE = "archive_source"


ALL_MUTATION_KINDS: tuple[MutationKind, ...] = tuple(MutationKind)


@dataclass(slots=True, frozen=True, kw_only=True)
class MutationMeta:
    """Context attached to every intent for reporting."""

    identity_key: str
    destination_id: str
    destination_url: str | None = None
    record_url: str | None = None
    fields_merged: tuple[str, ...] = ()
    relations_changed: tuple[str, ...] = ()
    source_count: int = 0
    test_summary: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class SourceSnapshot:
    """Denormalised copy of a source record, kept for backup export."""

    id: str
    url: str | None
    identity_key: str
    created_at: datetime | None
    values: Mapping[str, object] = field(default_factory=dict["str", "object"])


@dataclass(slots=True, frozen=True, kw_only=True)
class UpdateDestination:
    group_id: str
    page_id: str
    properties: Mapping[str, object]
    meta: MutationMeta
    kind: MutationKind = MutationKind.UPDATE_DESTINATION


@dataclass(slots=True, frozen=True, kw_only=True)
class ArchiveSource:
    group_id: str
    page_id: str
    meta: MutationMeta
    snapshot: SourceSnapshot
    kind: MutationKind = MutationKind.ARCHIVE_SOURCE


type MutationIntent = UpdateDestination | ArchiveSource
type MutationKey = tuple[str, str]


def mutation_key(mutation: MutationIntent) -> MutationKey:
    """Join key between an intent and its execution result."""

    return (mutation.group_id, mutation.page_id)


@dataclass(slots=True, frozen=True)
class MutationPlan:
    """Ordered intents for one run."""

    mutations: tuple[MutationIntent, ...] = ()

    def __len__(self) -> int:
        return len(self.mutations)

    def __bool__(self) -> bool:
        return bool(self.mutations)

    @property
    def updates(self) -> tuple[UpdateDestination, ...]:
        return tuple(m for m in self.mutations if isinstance(m, UpdateDestination))

    @property
    def archives(self) -> tuple[ArchiveSource, ...]:
        return tuple(m for m in self.mutations if isinstance(m, ArchiveSource))

    @property
    def group_ids(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(m.group_id for m in self.mutations))

    def kinds(self) -> frozenset[MutationKind]:
        return frozenset(m.kind for m in self.mutations)


def plan_mutations(
    groups: Iterable[DuplicateGroup],
    results: Iterable[MergeResult],
    *,
    policy: MergePolicy,
) -> MutationPlan:
    """Emit one update per changed group and one archive per source."""

    results_by_group = {result.group_id: result for result in results}
    mutations: list[MutationIntent] = []
    for group in groups:
        result = results_by_group.get(group.group_id)
        if result is None:
            raise KeyError(f"No merge result for group {group.group_id}")
        mutations.extend(_group_mutations(group, result, policy=policy))
    return MutationPlan(tuple(mutations))


def _group_mutations(
    group: DuplicateGroup,
    result: MergeResult,
    *,
    policy: MergePolicy,
) -> list[MutationIntent]:
    relation_names = {field_policy.name for field_policy in policy.of_kind(AttributeKind.RELATION)}
    fields_merged = tuple(name for name in result.changed_attributes if name not in relation_names)
    relations_changed = tuple(
        policy.field_named(name).write_path
        for name in result.changed_attributes
        if name in relation_names
    )

    mutations: list[MutationIntent] = []
    if result.has_changes:
        properties = {
            policy.field_named(name).write_path: policy.field_named(name).format(
                result.merged_attributes[name]
            )
            for name in result.changed_attributes
        }
        mutations.append(
            UpdateDestination(
                group_id=group.group_id,
                page_id=group.destination.id,
                properties=properties,
                meta=MutationMeta(
                    identity_key=group.identity_key,
                    destination_id=group.destination.id,
                    destination_url=group.destination.url,
                    record_url=group.destination.url,
                    fields_merged=fields_merged,
                    relations_changed=relations_changed,
                    source_count=len(group.sources),
                ),
            )
        )

    for source in group.sources:
        mutations.append(
            ArchiveSource(
                group_id=group.group_id,
                page_id=source.id,
                meta=MutationMeta(
                    identity_key=group.identity_key,
                    destination_id=group.destination.id,
                    destination_url=group.destination.url,
                    record_url=source.url,
                    source_count=len(group.sources),
                ),
                snapshot=snapshot_record(source, identity_key=group.identity_key, policy=policy),
            )
        )
    return mutations


def snapshot_record(record: Record, *, identity_key: str, policy: MergePolicy) -> SourceSnapshot:
    return SourceSnapshot(
        id=record.id,
        url=record.url,
        identity_key=identity_key,
        created_at=record.created_at,
        values={field_policy.name: field_policy.read(record) for field_policy in policy.fields},
    )
