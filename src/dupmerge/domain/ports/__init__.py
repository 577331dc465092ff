"""Ports for the document store and the merge output sinks."""

from __future__ import annotations

from .sinks import BackupSink, ReportSink
from .store import DocumentStore, StoreError, StoreMutationError, StoreReadError

__all__ = [
    "BackupSink",
    "DocumentStore",
    "ReportSink",
    "StoreError",
    "StoreMutationError",
    "StoreReadError",
]
