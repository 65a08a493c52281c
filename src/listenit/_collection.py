"""Shared notification policy of ListNotifier, MapNotifier and SetNotifier.

Every mutating method changes the backing store, then reports whether the
contents really changed through _mutated(). _notify() turns that into a
notification according to the NotifierMode:

    NORMAL  notify only if something changed
    ALWAYS  notify on every mutating call (default)
    MANUAL  never; the owner calls notify_listeners()

Between start_transaction() and end_transaction() nothing is notified;
the change flags of all calls are OR-ed and evaluated once at the end.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence, Set
from contextlib import contextmanager
from typing import Any, Callable, Generic, TypeVar

from listenit.errors import TransactionError
from listenit.notifier import ErrorHandler, NotifierMode, ValueListenable

T = TypeVar("T")
C = TypeVar("C")

Equality = Callable[[Any, Any], bool]


class CollectionNotifier(ValueListenable[C]):
    """Base for the observable collections. Has no upstream."""

    def __init__(
        self,
        *,
        notification_mode: NotifierMode = NotifierMode.ALWAYS,
        custom_equality: Equality | None = None,
        on_error: ErrorHandler | None = None,
    ) -> None:
        super().__init__(on_error=on_error)
        self._notification_mode = notification_mode
        self.custom_equality = custom_equality
        self._in_transaction = False
        self._has_changed = False

    @property
    def notification_mode(self) -> NotifierMode:
        return self._notification_mode

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    # --- Transactions ---

    def start_transaction(self) -> None:
        """Suppress notifications until end_transaction(). Does not nest."""
        if self._in_transaction:
            raise TransactionError(
                f"Only one transaction at a time in {type(self).__name__}"
            )
        self._in_transaction = True

    def end_transaction(self) -> None:
        """Close the transaction and notify once for everything it changed."""
        if not self._in_transaction:
            raise TransactionError(f"No active transaction in {type(self).__name__}")
        self._in_transaction = False
        self._notify(end_of_transaction=True)

    @contextmanager
    def transaction(self):
        """Context manager around start_transaction()/end_transaction().

        Usage:
            with items.transaction():
                items.append(2)
                items.append(3)
            # listeners were called once, here
        """
        self.start_transaction()
        try:
            yield self
        finally:
            self.end_transaction()

    # --- Notification policy ---

    def _equal(self, a: Any, b: Any) -> bool:
        if self.custom_equality is not None:
            return self.custom_equality(a, b)
        return a == b

    def _mutated(self, changed: bool) -> None:
        self._has_changed = self._has_changed or changed
        self._notify()

    def _notify(self, *, end_of_transaction: bool = False) -> None:
        if self._in_transaction and not end_of_transaction:
            return
        self._check_not_disposed("notify")
        changed, self._has_changed = self._has_changed, False
        mode = self._notification_mode
        if mode is NotifierMode.ALWAYS or (mode is NotifierMode.NORMAL and changed):
            self.notify_listeners()


class ListView(Sequence, Generic[T]):
    """Read-only live view of a list. Has no mutating methods."""

    __slots__ = ("_items",)

    def __init__(self, items: list[T]) -> None:
        self._items = items

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ListView):
            other = other._items
        return self._items == other

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ListView({self._items!r})"


class SetView(Set, Generic[T]):
    """Read-only live view of a set. Has no mutating methods."""

    __slots__ = ("_items",)

    def __init__(self, items: set[T]) -> None:
        self._items = items

    @classmethod
    def _from_iterable(cls, it):
        return set(it)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SetView):
            other = other._items
        if isinstance(other, Set):
            return self._items == set(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"SetView({self._items!r})"
