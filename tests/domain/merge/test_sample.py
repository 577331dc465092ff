from __future__ import annotations

import pytest

from dupmerge.domain.merge.plan import (
    ArchiveSource,
    MutationKind,
    MutationMeta,
    MutationPlan,
    SourceSnapshot,
    UpdateDestination,
)
from dupmerge.domain.merge.sample import coverage_summary, sample_plan


def _update(group_id: str) -> UpdateDestination:
    return UpdateDestination(
        group_id=group_id,
        page_id=f"{group_id}-dest",
        properties={"Phone": "555"},
        meta=MutationMeta(identity_key=group_id, destination_id=f"{group_id}-dest"),
    )


def _archive(group_id: str, index: int = 0) -> ArchiveSource:
    page_id = f"{group_id}-src-{index}"
    return ArchiveSource(
        group_id=group_id,
        page_id=page_id,
        meta=MutationMeta(identity_key=group_id, destination_id=f"{group_id}-dest"),
        snapshot=SourceSnapshot(id=page_id, url=None, identity_key=group_id, created_at=None),
    )


def test_single_full_group_covers_all_kinds() -> None:
    plan = MutationPlan(
        (
            _archive("g1"),
            _update("g2"),
            _archive("g2"),
            _update("g3"),
            _archive("g3"),
        )
    )

    result = sample_plan(plan, max_groups=3)

    assert result.selected_groups == ("g2",)
    assert result.uncovered_kinds == ()
    assert [m.page_id for m in result.plan.mutations] == ["g2-dest", "g2-src-0"]
    assert result.summary == "TEST MODE: 1/3 groups, 2/5 mutations; all kinds covered"
    assert all(m.meta.test_summary == result.summary for m in result.plan.mutations)


def test_partial_groups_combine_to_cover_kinds() -> None:
    plan = MutationPlan((_archive("g1"), _archive("g2"), _archive("g3", 1)))

    result = sample_plan(plan, max_groups=2)

    assert result.selected_groups == ("g1",)
    assert result.uncovered_kinds == (MutationKind.UPDATE_DESTINATION,)
    assert result.summary.endswith("kinds not covered: update_destination")


def test_max_groups_bounds_selection() -> None:
    plan = MutationPlan((_archive("g1"), _update("g2")))

    result = sample_plan(plan, max_groups=1)

    assert result.selected_groups == ("g1",)
    assert result.uncovered_kinds == (MutationKind.UPDATE_DESTINATION,)


def test_greedy_picks_second_group_for_missing_kind() -> None:
    plan = MutationPlan((_archive("g1"), _update("g2")))

    result = sample_plan(plan, max_groups=3)

    assert result.selected_groups == ("g1", "g2")
    assert result.uncovered_kinds == ()
    assert len(result.plan) == 2


def test_sampling_keeps_plan_order_and_whole_groups() -> None:
    plan = MutationPlan((_update("g1"), _archive("g1", 0), _archive("g1", 1), _update("g2")))

    result = sample_plan(plan)

    assert [m.page_id for m in result.plan.mutations] == ["g1-dest", "g1-src-0", "g1-src-1"]


def test_empty_plan_samples_to_empty() -> None:
    result = sample_plan(MutationPlan())

    assert not result.plan
    assert result.selected_groups == ()
    assert result.total_groups == 0


def test_max_groups_must_be_positive() -> None:
    with pytest.raises(ValueError, match="max_groups"):
        sample_plan(MutationPlan(), max_groups=0)


def test_coverage_summary_lists_uncovered_kinds() -> None:
    text = coverage_summary(
        selected=1,
        total_groups=4,
        kept=1,
        total_mutations=9,
        uncovered=(MutationKind.UPDATE_DESTINATION, MutationKind.ARCHIVE_SOURCE),
    )

    assert text == (
        "TEST MODE: 1/4 groups, 1/9 mutations; "
        "kinds not covered: update_destination, archive_source"
    )
