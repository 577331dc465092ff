"""Ports for durable merge outputs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dupmerge.domain.merge.plan import SourceSnapshot
    from dupmerge.domain.merge.report import MergeReport


@runtime_checkable
class BackupSink(Protocol):
    """Accepts snapshots of records that are about to be archived."""

    def __call__(self, snapshots: Sequence[SourceSnapshot]) -> None: ...


@runtime_checkable
class ReportSink(Protocol):
    """Accepts the final merge report."""

    def __call__(self, report: MergeReport) -> None: ...
