"""SetNotifier — a set that notifies its listeners when it is mutated.

What counts as a change (relevant in NORMAL mode):

- add, remove, discard, pop: membership changed
- remove_all, retain_all, remove_where, retain_where and the in-place
  operators -=, &=, ^=: at least one element went (or, for ^=, came)
- clear: the set was not empty
- add_all, update, |=: always, even for empty input

union(), intersection() and difference() return plain sets and never
notify. Element equality is the elements' own hash/eq; there is no
custom_equality for sets.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, MutableSet
from typing import Callable, TypeVar

from listenit._collection import CollectionNotifier, SetView
from listenit.notifier import ErrorHandler, NotifierMode

T = TypeVar("T")


class SetNotifier(CollectionNotifier[SetView[T]], MutableSet[T]):
    """A set that behaves like a ValueNotifier whenever its data changes.

    Usage:
        tags = SetNotifier({"a"}, notification_mode=NotifierMode.NORMAL)
        tags.listen(lambda value, _: print(sorted(value)))
        tags.add("a")   # already there, no notification
        tags.add("b")   # prints ['a', 'b']
    """

    def __init__(
        self,
        data: Iterable[T] | None = None,
        *,
        notification_mode: NotifierMode = NotifierMode.ALWAYS,
        on_error: ErrorHandler | None = None,
    ) -> None:
        super().__init__(notification_mode=notification_mode, on_error=on_error)
        self._items: set[T] = set(data) if data is not None else set()
        self._view = SetView(self._items)

    @property
    def value(self) -> SetView[T]:
        return self._view

    @classmethod
    def _from_iterable(cls, it: Iterable[T]) -> set[T]:
        return set(it)

    # --- Read operations ---

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def union(self, *others: Iterable[T]) -> set[T]:
        return self._items.union(*others)

    def intersection(self, *others: Iterable[object]) -> set[T]:
        return self._items.intersection(*others)

    def difference(self, *others: Iterable[object]) -> set[T]:
        return self._items.difference(*others)

    # --- Single element writes ---

    def add(self, item: T) -> bool:
        """Add item. Returns False if it was already present."""
        before = len(self._items)
        self._items.add(item)
        added = len(self._items) != before
        self._mutated(added)
        return added

    def remove(self, item: T) -> bool:
        """Remove item. Returns False if it was absent."""
        present = item in self._items
        self._items.discard(item)
        self._mutated(present)
        return present

    def discard(self, item: T) -> None:
        self.remove(item)

    def pop(self) -> T:
        item = self._items.pop()
        self._mutated(True)
        return item

    # --- Bulk writes ---

    def add_all(self, items: Iterable[T]) -> None:
        self._items.update(items)
        self._mutated(True)

    def update(self, *others: Iterable[T]) -> None:
        self._items.update(*others)
        self._mutated(True)

    def remove_all(self, items: Iterable[object]) -> None:
        self._shrink(self._items.difference_update, items)

    def difference_update(self, *others: Iterable[object]) -> None:
        self._shrink(self._items.difference_update, *others)

    def retain_all(self, items: Iterable[object]) -> None:
        self._shrink(self._items.intersection_update, items)

    def intersection_update(self, *others: Iterable[object]) -> None:
        self._shrink(self._items.intersection_update, *others)

    def remove_where(self, test: Callable[[T], bool]) -> None:
        doomed = [item for item in self._items if test(item)]
        self._shrink(self._items.difference_update, doomed)

    def retain_where(self, test: Callable[[T], bool]) -> None:
        self.remove_where(lambda item: not test(item))

    def clear(self) -> None:
        changed = bool(self._items)
        self._items.clear()
        self._mutated(changed)

    def __ior__(self, other: Iterable[T]) -> SetNotifier[T]:
        self.update(other)
        return self

    def __iand__(self, other: Iterable[object]) -> SetNotifier[T]:
        self.intersection_update(other)
        return self

    def __isub__(self, other: Iterable[object]) -> SetNotifier[T]:
        self.difference_update(other)
        return self

    def __ixor__(self, other: Iterable[T]) -> SetNotifier[T]:
        before = set(self._items)
        self._items.symmetric_difference_update(other)
        self._mutated(self._items != before)
        return self

    def _shrink(self, operation: Callable[..., None], *args: Iterable[object]) -> None:
        before = len(self._items)
        operation(*args)
        self._mutated(len(self._items) != before)

    def __repr__(self) -> str:
        return f"SetNotifier({self._items!r})"
