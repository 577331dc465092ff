"""Field-by-field merge of a duplicate group.

Conflict rules per attribute kind:
- scalar: the most recently created record with a value wins; a lone value wins
  regardless of age; no value at all means the field is left out (or set to
  the policy default when one is declared)
- set: union of all members, first-seen order
- relation: union of referenced ids, first-seen order

Set and relation fields count as changed when the union holds more members
than the destination had. This cardinality check stands in for a true set
difference; since the union always contains the destination's members the two
agree.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dupmerge.domain.records import (
    AttributeKind,
    has_value,
    relation_ids,
    set_members,
    values_equivalent,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dupmerge.domain.records import Record

    from .grouping import DuplicateGroup
    from .policy import FieldPolicy, MergePolicy

type ValueReader = Callable[[Record], object]
type MemberReader = Callable[[object], list[str]]


@dataclass(slots=True, frozen=True, kw_only=True)
class MergeResult:
    """Merged attribute values for one group.

    ``merged_attributes`` maps field names to final values. ``changed_attributes``
    lists the field names whose value differs from the destination's original,
    in policy order.
    """

    group_id: str
    merged_attributes: dict[str, object] = field(default_factory=dict["str", "object"])
    changed_attributes: tuple[str, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.changed_attributes)


def merge_group(group: DuplicateGroup, *, policy: MergePolicy) -> MergeResult:
    merged: dict[str, object] = {}
    changed: list[str] = []
    for field_policy in policy.fields:
        if field_policy.kind is AttributeKind.SCALAR:
            outcome = _merge_scalar(group, field_policy)
        elif field_policy.kind is AttributeKind.SET:
            outcome = _merge_collection(group, field_policy, members=set_members)
        else:
            outcome = _merge_collection(group, field_policy, members=relation_ids)
        if outcome is None:
            continue
        value, is_changed = outcome
        merged[field_policy.name] = value
        if is_changed:
            changed.append(field_policy.name)
    return MergeResult(
        group_id=group.group_id,
        merged_attributes=merged,
        changed_attributes=tuple(changed),
    )


def merge_groups(groups: Iterable[DuplicateGroup], *, policy: MergePolicy) -> list[MergeResult]:
    return [merge_group(group, policy=policy) for group in groups]


def newest_with_value(records: Iterable[Record], read: ValueReader) -> Record | None:
    """Return the most recently created record holding a value.

    Records without a timestamp lose against any timestamped record; among
    equals the earlier one in ``records`` wins.
    """

    best: Record | None = None
    for record in records:
        if not has_value(read(record)):
            continue
        if best is None:
            best = record
            continue
        if record.created_at is None:
            continue
        if best.created_at is None or record.created_at > best.created_at:
            best = record
    return best


def _reader(group: DuplicateGroup, field_policy: FieldPolicy) -> ValueReader:
    def read(record: Record) -> object:
        return field_policy.read(record, destination=record is group.destination)

    return read


def _merge_scalar(group: DuplicateGroup, field_policy: FieldPolicy) -> tuple[object, bool] | None:
    read = _reader(group, field_policy)
    original = read(group.destination)
    winner = newest_with_value(group.records, read)
    if winner is not None:
        value = read(winner)
    elif has_value(field_policy.default):
        value = field_policy.default
    else:
        return None
    return value, not values_equivalent(value, original)


def _merge_collection(
    group: DuplicateGroup,
    field_policy: FieldPolicy,
    *,
    members: MemberReader,
) -> tuple[object, bool] | None:
    read = _reader(group, field_policy)
    union: list[str] = []
    seen: set[str] = set()
    for record in group.records:
        for member in members(read(record)):
            if member in seen:
                continue
            seen.add(member)
            union.append(member)
    if not union:
        return None
    original = set(members(read(group.destination)))
    return union, len(union) > len(original)
