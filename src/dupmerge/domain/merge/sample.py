"""Test-mode sampling of a mutation plan.

Picks the fewest groups whose mutations together cover every mutation kind, so
an operator can try the whole pipeline against a live store while touching
only a handful of records.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from .plan import ALL_MUTATION_KINDS, MutationPlan

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .plan import MutationIntent, MutationKind

DEFAULT_MAX_GROUPS = 3


@dataclass(slots=True, frozen=True, kw_only=True)
class SampleResult:
    plan: MutationPlan
    selected_groups: tuple[str, ...]
    total_groups: int
    uncovered_kinds: tuple[MutationKind, ...]
    summary: str


def sample_plan(
    plan: MutationPlan,
    *,
    max_groups: int = DEFAULT_MAX_GROUPS,
    kinds: Sequence[MutationKind] = ALL_MUTATION_KINDS,
) -> SampleResult:
    """Greedily select groups until every kind is covered or ``max_groups`` is hit."""

    if max_groups < 1:
        raise ValueError("max_groups must be at least 1")

    kinds_by_group: dict[str, set[MutationKind]] = {}
    for mutation in plan.mutations:
        kinds_by_group.setdefault(mutation.group_id, set()).add(mutation.kind)

    # sorted() is stable, so groups with equal coverage keep plan order
    ranked = sorted(kinds_by_group.items(), key=lambda item: len(item[1]), reverse=True)

    universe = set(kinds)
    covered: set[MutationKind] = set()
    selected: list[str] = []
    for group_id, group_kinds in ranked:
        if universe <= covered or len(selected) >= max_groups:
            break
        if group_kinds - covered:
            selected.append(group_id)
            covered.update(group_kinds)

    chosen = set(selected)
    kept = [mutation for mutation in plan.mutations if mutation.group_id in chosen]
    uncovered = tuple(kind for kind in kinds if kind not in covered)
    summary = coverage_summary(
        selected=len(selected),
        total_groups=len(kinds_by_group),
        kept=len(kept),
        total_mutations=len(plan),
        uncovered=uncovered,
    )
    return SampleResult(
        plan=MutationPlan(tuple(_tagged(mutation, summary) for mutation in kept)),
        selected_groups=tuple(selected),
        total_groups=len(kinds_by_group),
        uncovered_kinds=uncovered,
        summary=summary,
    )


def coverage_summary(
    *,
    selected: int,
    total_groups: int,
    kept: int,
    total_mutations: int,
    uncovered: Sequence[MutationKind],
) -> str:
    text = f"TEST MODE: {selected}/{total_groups} groups, {kept}/{total_mutations} mutations"
    if uncovered:
        return f"{text}; kinds not covered: {', '.join(uncovered)}"
    return f"{text}; all kinds covered"


def _tagged(mutation: MutationIntent, summary: str) -> MutationIntent:
    return replace(mutation, meta=replace(mutation.meta, test_summary=summary))
