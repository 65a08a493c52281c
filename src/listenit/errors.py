"""Exceptions for programming errors.

Listener errors are never raised from here: notify_listeners() hands them
to the notifier's on_error callback or logs them.
"""

from __future__ import annotations


class ListenItError(RuntimeError):
    """Base class for misuse of a notifier."""


class DisposedError(ListenItError):
    """A disposed notifier was asked to notify, take a listener, or change value."""

    def __init__(self, notifier: object, operation: str) -> None:
        super().__init__(f"{operation} called on disposed {type(notifier).__name__}")
        self.notifier = notifier
        self.operation = operation


class TransactionError(ListenItError):
    """Nested transaction, or end_transaction() with none open."""
