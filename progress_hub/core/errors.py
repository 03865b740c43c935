# progress_hub/core/errors.py
from __future__ import annotations


class StoreError(RuntimeError):
    """
    Base class for every failure surfaced by the store or its adapters.

    Callers can catch this single type to handle any data-layer problem,
    or one of the subclasses below to react to a specific condition.
    """

    code = "STORE_ERROR"


class PersistenceError(StoreError):
    """
    The backend read or write failed (network trouble, I/O error, unexpected
    response). The operation was aborted and in-memory state is unchanged.
    Retrying later is reasonable.
    """

    code = "PERSISTENCE_ERROR"


class QuotaExceededError(PersistenceError):
    """
    The backend signalled a plan or storage limit.

    The store switches to quota-exceeded mode when it sees this error and
    rejects further writes locally until the condition is cleared.
    """

    code = "QUOTA_EXCEEDED"


class NotFoundError(StoreError):
    """
    An operation referenced an id that is absent from the current collection.
    """

    code = "NOT_FOUND"


class ValidationError(StoreError):
    """
    Input was rejected before any mutation was attempted: malformed import
    documents, out-of-range completion rates, inverted periods and so on.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []
