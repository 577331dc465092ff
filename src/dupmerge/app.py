"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from dupmerge.adapters.files import CsvBackupSink, JsonReportSink
from dupmerge.adapters.notion import CONTACT_POLICY, NotionClient, NotionDocumentStore
from dupmerge.config import get_merge_run_config, get_notion_config, get_output_config
from dupmerge.domain.merge import MergeEngine, SampleOptions

if TYPE_CHECKING:
    import threading
    from pathlib import Path

    from dupmerge.config import MergeRunConfig
    from dupmerge.domain.merge import MergePolicy, MergeReport
    from dupmerge.domain.ports import BackupSink, DocumentStore, ReportSink


log = getLogger(__name__)


def merge_duplicate_contacts(
    *,
    run_config: MergeRunConfig | None = None,
    collection: str | None = None,
    store: DocumentStore | None = None,
    policy: MergePolicy | None = None,
    backup_sink: BackupSink | None = None,
    report_sink: ReportSink | None = None,
    output_dir: Path | None = None,
    cancel_event: threading.Event | None = None,
) -> MergeReport:
    """Merge duplicate contacts in the configured Notion database."""

    effective_run = run_config or get_merge_run_config()
    if store is None or collection is None:
        notion_config = get_notion_config()
        store = store or NotionDocumentStore(client=NotionClient(config=notion_config))
        collection = collection or notion_config.database_id

    if backup_sink is None or report_sink is None:
        directory = output_dir or get_output_config().ensure_output_dir()
        backup_sink = backup_sink or CsvBackupSink(directory=directory)
        report_sink = report_sink or JsonReportSink(directory=directory)

    log.info(
        "Starting contact merge: collection=%s, test_mode=%s, max_groups=%s, plan_only=%s",
        collection,
        effective_run.test_mode,
        effective_run.max_groups,
        effective_run.plan_only,
    )

    engine = MergeEngine(
        store=store,
        policy=policy or CONTACT_POLICY,
        backup_sink=backup_sink,
        report_sink=report_sink,
        delay_seconds=effective_run.dispatch_delay_seconds,
    )
    run = engine.run(
        collection,
        sample=SampleOptions(max_groups=effective_run.max_groups)
        if effective_run.test_mode
        else None,
        plan_only=effective_run.plan_only,
        cancel_event=cancel_event,
    )

    report = run.report
    log.info(
        "Finished contact merge: groups=%s, archived=%s, errors=%s",
        report.duplicate_groups,
        report.records_archived,
        report.errors,
    )
    return report
