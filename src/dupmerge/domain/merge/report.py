"""Merge report and backup payload.

The reporter joins intents and execution results on ``(group_id, page_id)``,
so results may arrive in any order. Intents without a result are reported as
errors instead of being dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from .execute import ExecutionStatus
from .plan import ArchiveSource, UpdateDestination, mutation_key

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .execute import ExecutionResult
    from .plan import MutationIntent, MutationKind, MutationPlan, SourceSnapshot

NOTHING_TO_DO_MESSAGE = "No duplicates found - nothing to merge."
SUCCESS_MESSAGE = "All merges completed successfully."


class ReportOutcome(StrEnum):
    NOTHING_TO_DO = "nothing_to_do"
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    FAILED = "failed"
    PLANNED = "planned"


class GroupStatus(StrEnum):
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"


@dataclass(slots=True, frozen=True, kw_only=True)
class MutationFailure:
    kind: MutationKind
    page_id: str
    error: str
    status_code: int | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class ArchivedSource:
    page_id: str
    url: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class GroupReport:
    group_id: str
    identity_key: str
    destination_id: str | None = None
    destination_url: str | None = None
    fields_merged: tuple[str, ...] = ()
    relations_changed: tuple[str, ...] = ()
    sources_archived: tuple[ArchivedSource, ...] = ()
    errors: tuple[MutationFailure, ...] = ()

    @property
    def status(self) -> GroupStatus:
        return GroupStatus.SUCCESS if not self.errors else GroupStatus.PARTIAL_FAILURE


@dataclass(slots=True, frozen=True, kw_only=True)
class MergeReport:
    """Structured outcome of one merge run."""

    outcome: ReportOutcome
    message: str
    duplicate_groups: int = 0
    records_archived: int = 0
    errors: int = 0
    records_scanned: int = 0
    records_skipped: int = 0
    test_summary: str | None = None
    groups: tuple[GroupReport, ...] = field(default_factory=tuple["GroupReport", ...])

    def to_dict(self) -> dict[str, object]:
        return {
            "outcome": self.outcome.value,
            "message": self.message,
            "duplicate_groups": self.duplicate_groups,
            "records_archived": self.records_archived,
            "errors": self.errors,
            "records_scanned": self.records_scanned,
            "records_skipped": self.records_skipped,
            "test_summary": self.test_summary,
            "groups": [_group_dict(group) for group in self.groups],
        }


def build_report(
    plan: MutationPlan,
    results: Iterable[ExecutionResult],
    *,
    records_scanned: int = 0,
    records_skipped: int = 0,
) -> MergeReport:
    """Summarise an executed plan per group."""

    if not plan:
        return nothing_to_do_report(
            records_scanned=records_scanned, records_skipped=records_skipped
        )

    results_by_key = {(result.group_id, result.page_id): result for result in results}
    builders: dict[str, _GroupReportBuilder] = {}
    for mutation in plan.mutations:
        builder = builders.get(mutation.group_id)
        if builder is None:
            builder = _GroupReportBuilder(
                group_id=mutation.group_id, identity_key=mutation.meta.identity_key
            )
            builders[mutation.group_id] = builder
        builder.add(mutation, results_by_key.get(mutation_key(mutation)))

    groups = tuple(builder.build() for builder in builders.values())
    error_count = sum(len(group.errors) for group in groups)
    archived = sum(len(group.sources_archived) for group in groups)
    return MergeReport(
        outcome=ReportOutcome.SUCCESS if error_count == 0 else ReportOutcome.PARTIAL_FAILURE,
        message=(
            SUCCESS_MESSAGE
            if error_count == 0
            else f"{error_count} error(s) encountered - check group details."
        ),
        duplicate_groups=len(groups),
        records_archived=archived,
        errors=error_count,
        records_scanned=records_scanned,
        records_skipped=records_skipped,
        test_summary=_test_summary(plan),
        groups=groups,
    )


def planned_report(
    plan: MutationPlan,
    *,
    records_scanned: int = 0,
    records_skipped: int = 0,
) -> MergeReport:
    """Describe a plan that was not executed."""

    if not plan:
        return nothing_to_do_report(
            records_scanned=records_scanned, records_skipped=records_skipped
        )
    builders: dict[str, _GroupReportBuilder] = {}
    for mutation in plan.mutations:
        builder = builders.setdefault(
            mutation.group_id,
            _GroupReportBuilder(group_id=mutation.group_id, identity_key=mutation.meta.identity_key),
        )
        builder.describe(mutation)
    groups = tuple(builder.build() for builder in builders.values())
    return MergeReport(
        outcome=ReportOutcome.PLANNED,
        message=(
            f"Planned {len(plan.updates)} update(s) and {len(plan.archives)} archive(s) "
            f"across {len(groups)} group(s); nothing executed."
        ),
        duplicate_groups=len(groups),
        records_scanned=records_scanned,
        records_skipped=records_skipped,
        test_summary=_test_summary(plan),
        groups=groups,
    )


def nothing_to_do_report(*, records_scanned: int = 0, records_skipped: int = 0) -> MergeReport:
    return MergeReport(
        outcome=ReportOutcome.NOTHING_TO_DO,
        message=NOTHING_TO_DO_MESSAGE,
        records_scanned=records_scanned,
        records_skipped=records_skipped,
    )


def failed_report(error: BaseException | str) -> MergeReport:
    return MergeReport(
        outcome=ReportOutcome.FAILED,
        message=f"Could not read the document store: {error}",
        errors=1,
    )


def backup_payload(plan: MutationPlan) -> tuple[SourceSnapshot, ...]:
    """Snapshots of every record the plan will archive."""

    return tuple(archive.snapshot for archive in plan.archives)


def _test_summary(plan: MutationPlan) -> str | None:
    for mutation in plan.mutations:
        if mutation.meta.test_summary:
            return mutation.meta.test_summary
    return None


@dataclass(slots=True)
class _GroupReportBuilder:
    group_id: str
    identity_key: str
    destination_id: str | None = None
    destination_url: str | None = None
    fields_merged: tuple[str, ...] = ()
    relations_changed: tuple[str, ...] = ()
    sources_archived: list[ArchivedSource] = field(default_factory=list["ArchivedSource"])
    errors: list[MutationFailure] = field(default_factory=list["MutationFailure"])

    def describe(self, mutation: MutationIntent) -> None:
        self.destination_id = mutation.meta.destination_id
        self.destination_url = mutation.meta.destination_url
        if isinstance(mutation, UpdateDestination):
            self.fields_merged = mutation.meta.fields_merged
            self.relations_changed = mutation.meta.relations_changed

    def add(self, mutation: MutationIntent, result: ExecutionResult | None) -> None:
        self.describe(mutation)
        if result is None:
            self.errors.append(
                MutationFailure(kind=mutation.kind, page_id=mutation.page_id, error="no result")
            )
            return
        if not result.ok:
            self.errors.append(
                MutationFailure(
                    kind=mutation.kind,
                    page_id=mutation.page_id,
                    error=result.error or _default_error(result),
                    status_code=result.status_code,
                )
            )
            return
        if isinstance(mutation, ArchiveSource):
            self.sources_archived.append(
                ArchivedSource(page_id=mutation.page_id, url=mutation.meta.record_url)
            )

    def build(self) -> GroupReport:
        return GroupReport(
            group_id=self.group_id,
            identity_key=self.identity_key,
            destination_id=self.destination_id,
            destination_url=self.destination_url,
            fields_merged=self.fields_merged,
            relations_changed=self.relations_changed,
            sources_archived=tuple(self.sources_archived),
            errors=tuple(self.errors),
        )


def _default_error(result: ExecutionResult) -> str:
    if result.status is ExecutionStatus.CANCELLED:
        return "cancelled"
    if result.status_code is not None:
        return f"HTTP {result.status_code}"
    return "failed"


def _group_dict(group: GroupReport) -> dict[str, object]:
    return {
        "group_id": group.group_id,
        "identity_key": group.identity_key,
        "destination_id": group.destination_id,
        "destination_url": group.destination_url,
        "fields_merged": list(group.fields_merged),
        "relations_changed": list(group.relations_changed),
        "sources_archived": [
            {"page_id": source.page_id, "url": source.url} for source in group.sources_archived
        ],
        "status": group.status.value,
        "errors": [
            {
                "kind": error.kind.value,
                "page_id": error.page_id,
                "error": error.error,
                "status_code": error.status_code,
            }
            for error in group.errors
        ],
    }
