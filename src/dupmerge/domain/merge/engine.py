"""Orchestrator for duplicate merging.

Flow: store snapshot -> records -> groups -> merge results -> mutation plan ->
(optional sample) -> backup -> execution -> report.

Only the initial read is fatal. Everything after it degrades per record or
per mutation and ends up in the report.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from dupmerge.domain.ports.store import StoreError
from dupmerge.domain.records import build_records

from .execute import DEFAULT_DISPATCH_DELAY_SECONDS, execute_mutations
from .grouping import GroupingResult, group_duplicates
from .plan import MutationPlan, plan_mutations
from .report import (
    backup_payload,
    build_report,
    failed_report,
    nothing_to_do_report,
    planned_report,
)
from .resolve import merge_groups
from .sample import DEFAULT_MAX_GROUPS, sample_plan

if TYPE_CHECKING:
    import threading
    from collections.abc import Sequence

    from dupmerge.domain.ports.sinks import BackupSink, ReportSink
    from dupmerge.domain.ports.store import DocumentStore
    from dupmerge.domain.records import Record, StoreDocument

    from .execute import ExecutionResult
    from .policy import MergePolicy
    from .report import MergeReport
    from .sample import SampleResult

log = getLogger(__name__)


@dataclass(slots=True, frozen=True, kw_only=True)
class SampleOptions:
    max_groups: int = DEFAULT_MAX_GROUPS


@dataclass(slots=True, frozen=True, kw_only=True)
class MergeRun:
    """Everything a merge run produced."""

    report: MergeReport
    plan: MutationPlan = field(default_factory=MutationPlan)
    results: tuple[ExecutionResult, ...] = ()
    sample: SampleResult | None = None


def build_plan(
    records: Sequence[Record],
    *,
    policy: MergePolicy,
) -> tuple[GroupingResult, MutationPlan]:
    """Run grouping, merging and planning without touching any store."""

    grouping = group_duplicates(records)
    results = merge_groups(grouping.groups, policy=policy)
    plan = plan_mutations(grouping.groups, results, policy=policy)
    return grouping, plan


@dataclass(slots=True)
class MergeEngine:
    """Run a full merge against one collection of a document store."""

    store: DocumentStore
    policy: MergePolicy
    backup_sink: BackupSink | None = None
    report_sink: ReportSink | None = None
    delay_seconds: float = DEFAULT_DISPATCH_DELAY_SECONDS
    sleep: Callable[[float], None] = time.sleep

    def run(
        self,
        collection: str,
        *,
        sample: SampleOptions | None = None,
        plan_only: bool = False,
        cancel_event: threading.Event | None = None,
    ) -> MergeRun:
        try:
            documents = self.store.query_all(collection)
        except StoreError as exc:
            log.exception("Could not read collection %s", collection)
            return self._finish(MergeRun(report=failed_report(exc)))

        return self._finish(
            self._merge(
                documents,
                sample=sample,
                plan_only=plan_only,
                cancel_event=cancel_event,
            )
        )

    def _merge(
        self,
        documents: Sequence[StoreDocument],
        *,
        sample: SampleOptions | None,
        plan_only: bool,
        cancel_event: threading.Event | None,
    ) -> MergeRun:
        records = build_records(documents, identity_paths=self.policy.identity_paths)
        grouping, plan = build_plan(records, policy=self.policy)
        scanned = len(documents)
        skipped = scanned - len(records) + grouping.records_skipped

        if not plan:
            log.info("No duplicates found in %s records", scanned)
            return MergeRun(
                report=nothing_to_do_report(records_scanned=scanned, records_skipped=skipped)
            )

        sample_result: SampleResult | None = None
        if sample is not None:
            sample_result = sample_plan(plan, max_groups=sample.max_groups)
            plan = sample_result.plan
            log.info(sample_result.summary)

        log.info(
            "Planned %s update(s) and %s archive(s) across %s group(s)",
            len(plan.updates),
            len(plan.archives),
            len(plan.group_ids),
        )

        if plan_only:
            report = planned_report(plan, records_scanned=scanned, records_skipped=skipped)
            return MergeRun(report=report, plan=plan, sample=sample_result)

        if self.backup_sink is not None:
            self.backup_sink(backup_payload(plan))

        results = execute_mutations(
            plan.mutations,
            store=self.store,
            delay_seconds=self.delay_seconds,
            cancel_event=cancel_event,
            sleep=self.sleep,
        )
        report = build_report(
            plan,
            results,
            records_scanned=scanned,
            records_skipped=skipped,
        )
        return MergeRun(report=report, plan=plan, results=tuple(results), sample=sample_result)

    def _finish(self, run: MergeRun) -> MergeRun:
        log.info("Merge finished (%s): %s", run.report.outcome, run.report.message)
        if self.report_sink is not None:
            self.report_sink(run.report)
        return run
