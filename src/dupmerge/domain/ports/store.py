"""Port for the external document store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from dupmerge.domain.records import StoreDocument


class StoreError(RuntimeError):
    """Base class for failures reported by a document store."""


class StoreReadError(StoreError):
    """Raised when the store snapshot cannot be read at all."""


class StoreMutationError(StoreError):
    """Raised when the store rejects an update or archive call."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class DocumentStore(Protocol):
    """Paginated read, partial update and logical delete.

    ``update_partial`` leaves every property not named in ``properties``
    untouched. ``archive`` must keep relation edges of other documents intact.
    """

    def query_all(
        self,
        collection: str,
        *,
        filter: Mapping[str, object] | None = None,  # noqa: A002
    ) -> Sequence[StoreDocument]: ...

    def update_partial(self, document_id: str, properties: Mapping[str, object]) -> None: ...

    def archive(self, document_id: str) -> None: ...
