"""Field policy tables for duplicate merging.

The policy is the only place attribute names appear. Every other merge stage
looks fields up through it, so switching to a different collection only means
declaring a different table.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dupmerge.domain.records import AttributeKind

if TYPE_CHECKING:
    from dupmerge.domain.records import Record

type WriteFormatter = Callable[[object], object]


class PolicyError(ValueError):
    """Raised when a policy table is inconsistent."""


def _passthrough(value: object) -> object:
    return value


@dataclass(slots=True, frozen=True, kw_only=True)
class FieldPolicy:
    """Merge rule for one attribute.

    ``read_path`` is the snapshot key for any record; ``destination_read_path``
    overrides it when reading the destination's pre-merge value. ``write_path``
    is the property name sent in a partial update.
    """

    name: str
    kind: AttributeKind
    read_path: str
    write_path: str
    formatter: WriteFormatter = _passthrough
    destination_read_path: str | None = None
    default: object = None

    def read(self, record: Record, *, destination: bool = False) -> object:
        path = self.read_path
        if destination and self.destination_read_path is not None:
            path = self.destination_read_path
        return record.value(path)

    def format(self, value: object) -> object:
        return self.formatter(value)


@dataclass(slots=True, frozen=True, kw_only=True)
class MergePolicy:
    """Complete policy for one collection."""

    identity_paths: tuple[str, ...]
    fields: tuple[FieldPolicy, ...] = field(default_factory=tuple["FieldPolicy", ...])

    def __post_init__(self) -> None:
        if not self.identity_paths:
            raise PolicyError("Merge policy needs at least one identity path")
        _require_unique("field name", [policy.name for policy in self.fields])
        _require_unique("write path", [policy.write_path for policy in self.fields])
        identity = set(self.identity_paths)
        for policy in self.fields:
            paths = {policy.read_path, policy.destination_read_path} & identity
            if paths:
                raise PolicyError(
                    f"Field {policy.name} reads identity path {sorted(paths)[0]}; "
                    "identity keys are never merged"
                )

    def field_named(self, name: str) -> FieldPolicy:
        for policy in self.fields:
            if policy.name == name:
                return policy
        raise KeyError(name)

    def of_kind(self, kind: AttributeKind) -> tuple[FieldPolicy, ...]:
        return tuple(policy for policy in self.fields if policy.kind is kind)


def _require_unique(label: str, values: list[str]) -> None:
    seen: set[str] = set()
    duplicates: list[str] = []
    for value in values:
        if value in seen:
            duplicates.append(value)
        seen.add(value)
    if duplicates:
        raise PolicyError(f"Duplicate {label} in merge policy: {', '.join(sorted(duplicates))}")
