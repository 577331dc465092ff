"""Mutation execution against a document store.

Every intent is dispatched on its own: a rejected call is recorded and the
next intent still runs. Dispatch is sequential with a fixed pause between
calls to stay under store rate limits.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from dupmerge.domain.ports.store import StoreError, StoreMutationError

from .plan import ArchiveSource, MutationKind, UpdateDestination

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable, Iterable

    from dupmerge.domain.ports.store import DocumentStore

    from .plan import MutationIntent

log = getLogger(__name__)

DEFAULT_DISPATCH_DELAY_SECONDS = 0.334


class ExecutionStatus(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True, frozen=True, kw_only=True)
class ExecutionResult:
    group_id: str
    page_id: str
    kind: MutationKind
    status: ExecutionStatus
    status_code: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is ExecutionStatus.SUCCEEDED


def execute_mutations(
    mutations: Iterable[MutationIntent],
    *,
    store: DocumentStore,
    delay_seconds: float = DEFAULT_DISPATCH_DELAY_SECONDS,
    cancel_event: threading.Event | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[ExecutionResult]:
    """Apply ``mutations`` one by one and return a result for each of them.

    Once ``cancel_event`` is set no further call is dispatched; the remaining
    intents are reported as cancelled rather than dropped.
    """

    results: list[ExecutionResult] = []
    dispatched = 0
    for mutation in mutations:
        if dispatched and delay_seconds > 0 and not _cancelled(cancel_event):
            sleep(delay_seconds)
        # checked after the pause so a cancel arriving while waiting still wins
        if _cancelled(cancel_event):
            results.append(_result(mutation, ExecutionStatus.CANCELLED, error="cancelled"))
            continue
        dispatched += 1
        results.append(_dispatch(mutation, store=store))

    failed = sum(1 for result in results if result.status is ExecutionStatus.FAILED)
    cancelled = sum(1 for result in results if result.status is ExecutionStatus.CANCELLED)
    log.info(
        "Executed %s mutations: %s failed, %s cancelled",
        dispatched,
        failed,
        cancelled,
    )
    return results


def _dispatch(mutation: MutationIntent, *, store: DocumentStore) -> ExecutionResult:
    try:
        if isinstance(mutation, UpdateDestination):
            store.update_partial(mutation.page_id, mutation.properties)
        elif isinstance(mutation, ArchiveSource):
            store.archive(mutation.page_id)
    except StoreError as exc:
        status_code = exc.status_code if isinstance(exc, StoreMutationError) else None
        log.warning(
            "%s failed for %s (group %s): %s",
            mutation.kind,
            mutation.page_id,
            mutation.group_id,
            exc,
        )
        return _result(
            mutation,
            ExecutionStatus.FAILED,
            status_code=status_code,
            error=str(exc) or type(exc).__name__,
        )
    except Exception as exc:
        log.exception(
            "%s raised unexpectedly for %s (group %s)",
            mutation.kind,
            mutation.page_id,
            mutation.group_id,
        )
        return _result(
            mutation,
            ExecutionStatus.FAILED,
            error=f"{type(exc).__name__}: {exc}",
        )
    log.debug("%s succeeded for %s", mutation.kind, mutation.page_id)
    return _result(mutation, ExecutionStatus.SUCCEEDED)


def _cancelled(cancel_event: threading.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def _result(
    mutation: MutationIntent,
    status: ExecutionStatus,
    *,
    status_code: int | None = None,
    error: str | None = None,
) -> ExecutionResult:
    return ExecutionResult(
        group_id=mutation.group_id,
        page_id=mutation.page_id,
        kind=mutation.kind,
        status=status,
        status_code=status_code,
        error=error,
    )
