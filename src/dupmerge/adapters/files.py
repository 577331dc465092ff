"""File-based backup and report sinks."""

from __future__ import annotations

import csv
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from dupmerge.domain.records import has_value

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from dupmerge.domain.merge.plan import SourceSnapshot
    from dupmerge.domain.merge.report import MergeReport

log = getLogger(__name__)

BACKUP_BASE_COLUMNS = ("id", "url", "identity_key", "created_at")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _timestamped(directory: Path, prefix: str, suffix: str, now: datetime) -> Path:
    return directory / f"{prefix}-{now.strftime('%Y-%m-%d-%H%M%S')}.{suffix}"


def _csv_cell(value: object) -> str:
    if not has_value(value):
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)  # type: ignore[reportUnknownVariableType]
    return str(value)


@dataclass(slots=True)
class CsvBackupSink:
    """Write archived record snapshots to a timestamped CSV file."""

    directory: Path
    now_provider: Callable[[], datetime] = field(default=_utcnow)
    written: list[Path] = field(default_factory=list["Path"])

    def __call__(self, snapshots: Sequence[SourceSnapshot]) -> None:
        if not snapshots:
            log.info("No records to back up")
            return
        value_columns = list(dict.fromkeys(name for s in snapshots for name in s.values))
        self.directory.mkdir(parents=True, exist_ok=True)
        path = _timestamped(self.directory, "deleted-records", "csv", self.now_provider())
        with path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            writer.writerow([*BACKUP_BASE_COLUMNS, *value_columns])
            for snapshot in snapshots:
                writer.writerow(
                    [
                        snapshot.id,
                        snapshot.url or "",
                        snapshot.identity_key,
                        snapshot.created_at.isoformat() if snapshot.created_at else "",
                        *(_csv_cell(snapshot.values.get(name)) for name in value_columns),
                    ]
                )
        self.written.append(path)
        log.info("Backed up %s records to %s", len(snapshots), path)


@dataclass(slots=True)
class JsonReportSink:
    """Write the merge report to a timestamped JSON file."""

    directory: Path
    now_provider: Callable[[], datetime] = field(default=_utcnow)
    written: list[Path] = field(default_factory=list["Path"])

    def __call__(self, report: MergeReport) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = _timestamped(self.directory, "merge-report", "json", self.now_provider())
        with path.open("w", encoding="utf-8") as handle:
            json.dump(report.to_dict(), handle, indent=2)
            handle.write("\n")
        self.written.append(path)
        log.info("Wrote merge report to %s", path)
