"""ListNotifier — a list that notifies its listeners when it is mutated.

What counts as a change (relevant in NORMAL mode):

- item assignment, fill_range, replace_range and slice assignment: a
  stored element differs from the one it replaces (custom_equality if set)
- append, insert, pop, remove_range: the length changed
- remove(value): the value was found
- remove_where, retain_where, slice deletion: at least one element went
- clear: the list was not empty
- extend, insert_all, set_all, set_range, sort, shuffle, reverse: always,
  even when the input is empty or the order is unchanged
- swap: the two elements differ
"""

from __future__ import annotations

import random as _random
from collections.abc import Iterable, Iterator, MutableSequence
from typing import Any, Callable, TypeVar

from listenit._collection import CollectionNotifier, Equality, ListView
from listenit.notifier import ErrorHandler, NotifierMode

T = TypeVar("T")


class ListNotifier(CollectionNotifier[ListView[T]], MutableSequence[T]):
    """A list that behaves like a ValueNotifier whenever its data changes.

    .value is a read-only view of the live contents; mutate through the
    ListNotifier itself. The initial data is copied.

    Usage:
        items = ListNotifier([1, 2, 3], notification_mode=NotifierMode.NORMAL)
        items.listen(lambda value, _: print(list(value)))
        items[0] = 1      # equal value, no notification
        items.append(4)   # prints [1, 2, 3, 4]
    """

    def __init__(
        self,
        data: Iterable[T] | None = None,
        *,
        notification_mode: NotifierMode = NotifierMode.ALWAYS,
        custom_equality: Equality | None = None,
        on_error: ErrorHandler | None = None,
    ) -> None:
        super().__init__(
            notification_mode=notification_mode,
            custom_equality=custom_equality,
            on_error=on_error,
        )
        self._items: list[T] = list(data) if data is not None else []
        self._view = ListView(self._items)

    @property
    def value(self) -> ListView[T]:
        return self._view

    # --- Read operations ---

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __bool__(self) -> bool:
        return bool(self._items)

    # --- Single element writes ---

    def __setitem__(self, index, value) -> None:
        if isinstance(index, slice):
            old = self._items[index]
            new = list(value)
            self._items[index] = new
            self._mutated(not self._all_equal(old, new))
            return
        changed = not self._equal(self._items[index], value)
        self._items[index] = value
        self._mutated(changed)

    def __delitem__(self, index) -> None:
        before = len(self._items)
        del self._items[index]
        self._mutated(len(self._items) != before)

    def append(self, value: T) -> None:
        self._items.append(value)
        self._mutated(True)

    def insert(self, index: int, value: T) -> None:
        self._items.insert(index, value)
        self._mutated(True)

    def remove(self, value: T) -> bool:
        """Remove the first occurrence of value. Returns False if absent."""
        try:
            self._items.remove(value)
        except ValueError:
            self._mutated(False)
            return False
        self._mutated(True)
        return True

    def pop(self, index: int = -1) -> T:
        value = self._items.pop(index)
        self._mutated(True)
        return value

    def swap(self, index1: int, index2: int) -> None:
        first, second = self._items[index1], self._items[index2]
        if self._equal(first, second):
            self._mutated(False)
            return
        self._items[index1], self._items[index2] = second, first
        self._mutated(True)

    # --- Bulk writes ---

    def extend(self, values: Iterable[T]) -> None:
        self._items.extend(values)
        self._mutated(True)

    def __iadd__(self, values: Iterable[T]) -> ListNotifier[T]:
        self.extend(values)
        return self

    def insert_all(self, index: int, values: Iterable[T]) -> None:
        self._items[index:index] = list(values)
        self._mutated(True)

    def set_all(self, index: int, values: Iterable[T]) -> None:
        """Overwrite elements starting at index. The list does not grow."""
        new = list(values)
        if index < 0 or index + len(new) > len(self._items):
            raise IndexError("set_all range out of bounds")
        self._items[index:index + len(new)] = new
        self._mutated(True)

    def set_range(
        self, start: int, end: int, values: Iterable[T], skip_count: int = 0
    ) -> None:
        """Overwrite [start, end) with values, skipping skip_count of them."""
        self._check_range(start, end)
        new = list(values)[skip_count:skip_count + end - start]
        if len(new) < end - start:
            raise ValueError("Too few elements for set_range")
        self._items[start:end] = new
        self._mutated(True)

    def fill_range(self, start: int, end: int, fill_value: T) -> None:
        self._check_range(start, end)
        changed = True
        if self._notification_mode is NotifierMode.NORMAL:
            changed = any(
                not self._equal(item, fill_value) for item in self._items[start:end]
            )
        self._items[start:end] = [fill_value] * (end - start)
        self._mutated(changed)

    def replace_range(self, start: int, end: int, values: Iterable[T]) -> None:
        self._check_range(start, end)
        new = list(values)
        changed = True
        if self._notification_mode is NotifierMode.NORMAL:
            changed = not self._all_equal(self._items[start:end], new)
        self._items[start:end] = new
        self._mutated(changed)

    def remove_range(self, start: int, end: int) -> None:
        self._check_range(start, end)
        del self._items[start:end]
        self._mutated(end > start)

    def remove_where(self, test: Callable[[T], bool]) -> None:
        kept = [item for item in self._items if not test(item)]
        changed = len(kept) != len(self._items)
        self._items[:] = kept
        self._mutated(changed)

    def retain_where(self, test: Callable[[T], bool]) -> None:
        self.remove_where(lambda item: not test(item))

    def clear(self) -> None:
        changed = bool(self._items)
        self._items.clear()
        self._mutated(changed)

    def sort(self, *, key: Callable[[T], Any] | None = None, reverse: bool = False) -> None:
        self._items.sort(key=key, reverse=reverse)
        self._mutated(True)

    def reverse(self) -> None:
        self._items.reverse()
        self._mutated(True)

    def shuffle(self, rng: _random.Random | None = None) -> None:
        (rng or _random).shuffle(self._items)
        self._mutated(True)

    # --- Helpers ---

    def _all_equal(self, old: list[T], new: list[T]) -> bool:
        return len(old) == len(new) and all(
            self._equal(a, b) for a, b in zip(old, new)
        )

    def _check_range(self, start: int, end: int) -> None:
        if not 0 <= start <= end <= len(self._items):
            raise IndexError(
                f"Range [{start}, {end}) out of bounds for length {len(self._items)}"
            )

    def __repr__(self) -> str:
        return f"ListNotifier({self._items!r})"
