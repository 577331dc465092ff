from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import pytest

from dupmerge.domain.merge.engine import MergeEngine, SampleOptions, build_plan
from dupmerge.domain.merge.plan import MutationKind
from dupmerge.domain.merge.report import NOTHING_TO_DO_MESSAGE, ReportOutcome
from dupmerge.domain.records import build_records
from tests.support.policy import SIMPLE_POLICY
from tests.support.store import InMemoryDocumentStore, document

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dupmerge.domain.merge.plan import SourceSnapshot
    from dupmerge.domain.merge.report import MergeReport


def _engine(store: InMemoryDocumentStore, **kwargs: object) -> MergeEngine:
    return MergeEngine(
        store=store,
        policy=SIMPLE_POLICY,
        delay_seconds=0,
        sleep=lambda _: None,
        **kwargs,  # type: ignore[arg-type]
    )


def _pair_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore.with_documents(
        [
            document("A", created="2020-01-01T00:00:00Z", email="x@y.com", tags=["a"]),
            document(
                "B", created="2021-01-01T00:00:00Z", email="x@y.com", tags=["b"], phone="555"
            ),
        ]
    )


def test_merges_pair_into_oldest_record() -> None:
    store = _pair_store()

    run = _engine(store).run("contacts")

    assert store.updates == [("A", {"Phone": "555", "Tags": ["a", "b"]})]
    assert store.archived == ["B"]
    report = run.report
    assert report.outcome is ReportOutcome.SUCCESS
    assert report.duplicate_groups == 1
    assert report.records_archived == 1
    assert report.records_scanned == 2
    assert report.groups[0].destination_id == "A"


def test_identity_key_casing_is_normalised() -> None:
    store = InMemoryDocumentStore.with_documents(
        [
            document("A", created="2020-01-01T00:00:00Z", email="A@X.com"),
            document("B", created="2021-01-01T00:00:00Z", email="a@x.com "),
        ]
    )

    run = _engine(store).run("contacts")

    assert run.report.groups[0].group_id == "a@x.com"
    assert store.archived == ["B"]


def test_empty_store_has_nothing_to_do() -> None:
    store = InMemoryDocumentStore()

    run = _engine(store).run("contacts")

    assert run.report.outcome is ReportOutcome.NOTHING_TO_DO
    assert run.report.message == NOTHING_TO_DO_MESSAGE
    assert not run.plan
    assert store.calls == []


def test_second_run_is_a_no_op() -> None:
    store = _pair_store()
    engine = _engine(store)
    engine.run("contacts")
    calls_after_first = list(store.calls)

    rerun = engine.run("contacts")

    assert rerun.report.outcome is ReportOutcome.NOTHING_TO_DO
    assert store.calls == calls_after_first


def test_records_without_identity_are_counted_as_skipped() -> None:
    store = InMemoryDocumentStore.with_documents(
        [
            document("A", created="2020-01-01T00:00:00Z", email="x@y.com"),
            document("B", created="2021-01-01T00:00:00Z", email="x@y.com"),
            document("C", created="2021-01-01T00:00:00Z"),
        ]
    )

    run = _engine(store).run("contacts")

    assert run.report.records_scanned == 3
    assert run.report.records_skipped == 1


def test_read_failure_produces_failed_report() -> None:
    store = InMemoryDocumentStore(fail_read=True)
    reports: list[MergeReport] = []

    run = _engine(store, report_sink=reports.append).run("contacts")

    assert run.report.outcome is ReportOutcome.FAILED
    assert run.report.errors == 1
    assert reports == [run.report]
    assert store.calls == []


def test_backup_is_written_before_any_mutation() -> None:
    store = _pair_store()
    seen_calls: list[int] = []
    backed_up: list[str] = []

    def backup(snapshots: Sequence[SourceSnapshot]) -> None:
        seen_calls.append(len(store.calls))
        backed_up.extend(snapshot.id for snapshot in snapshots)

    _engine(store, backup_sink=backup).run("contacts")

    assert seen_calls == [0]
    assert backed_up == ["B"]


def test_backup_failure_aborts_before_mutations() -> None:
    store = _pair_store()

    def backup(snapshots: Sequence[SourceSnapshot]) -> None:
        raise OSError("disk full")

    with pytest.raises(OSError, match="disk full"):
        _engine(store, backup_sink=backup).run("contacts")
    assert store.calls == []


def test_failed_mutation_does_not_stop_others() -> None:
    store = InMemoryDocumentStore.with_documents(
        [
            document("A", created="2020-01-01T00:00:00Z", email="a@y.com", phone="1"),
            document("B", created="2021-01-01T00:00:00Z", email="a@y.com", phone="2"),
            document("C", created="2020-01-01T00:00:00Z", email="c@y.com"),
            document("D", created="2021-01-01T00:00:00Z", email="c@y.com"),
        ]
    )
    store.failing_ids["B"] = 500

    run = _engine(store).run("contacts")

    assert run.report.outcome is ReportOutcome.PARTIAL_FAILURE
    assert run.report.errors == 1
    assert store.archived == ["D"]
    assert [u[0] for u in store.updates] == ["A"]
    statuses = {group.group_id: group.status.value for group in run.report.groups}
    assert statuses == {"a@y.com": "partial_failure", "c@y.com": "success"}


def test_cancellation_reports_remaining_mutations() -> None:
    store = _pair_store()
    cancel = threading.Event()
    store.on_call = lambda _page_id: cancel.set()

    run = _engine(store).run("contacts", cancel_event=cancel)

    assert store.calls == [("update", "A")]
    assert run.report.outcome is ReportOutcome.PARTIAL_FAILURE
    assert [e.error for e in run.report.groups[0].errors] == ["cancelled"]


def test_test_mode_samples_one_full_group() -> None:
    store = InMemoryDocumentStore.with_documents(
        [
            document("A", created="2020-01-01T00:00:00Z", email="a@y.com", phone="1"),
            document("B", created="2021-01-01T00:00:00Z", email="a@y.com", phone="2"),
            document("C", created="2020-01-01T00:00:00Z", email="c@y.com", tags=["x"]),
            document("D", created="2021-01-01T00:00:00Z", email="c@y.com", tags=["y"]),
        ]
    )

    run = _engine(store).run("contacts", sample=SampleOptions(max_groups=3))

    assert run.sample is not None
    assert run.sample.selected_groups == ("a@y.com",)
    assert run.report.test_summary == "TEST MODE: 1/2 groups, 2/4 mutations; all kinds covered"
    assert store.calls == [("update", "A"), ("archive", "B")]


def test_plan_only_executes_nothing() -> None:
    store = _pair_store()
    backups: list[int] = []

    run = _engine(store, backup_sink=lambda s: backups.append(len(s))).run(
        "contacts", plan_only=True
    )

    assert run.report.outcome is ReportOutcome.PLANNED
    assert run.plan.kinds() == frozenset(MutationKind)
    assert store.calls == []
    assert backups == []


def test_build_plan_is_deterministic() -> None:
    records = build_records(
        _pair_store().query_all("contacts"), identity_paths=SIMPLE_POLICY.identity_paths
    )

    assert build_plan(records, policy=SIMPLE_POLICY) == build_plan(records, policy=SIMPLE_POLICY)


def test_unexpected_archive_error_still_delivers_report() -> None:
    store = _pair_store()
    reports: list[MergeReport] = []

    def explode(page_id: str) -> None:
        if page_id == "B":
            raise RuntimeError("boom")

    store.on_call = explode

    run = _engine(store, report_sink=reports.append).run("contacts")

    assert store.updates == [("A", {"Phone": "555", "Tags": ["a", "b"]})]
    assert run.report.outcome is ReportOutcome.PARTIAL_FAILURE
    assert run.report.errors == 1
    assert reports == [run.report]
    (failure,) = run.report.groups[0].errors
    assert failure.page_id == "B"
    assert failure.error == "RuntimeError: boom"
