"""MapNotifier — a dict that notifies its listeners when it is mutated.

What counts as a change (relevant in NORMAL mode):

- item assignment, update_value, update_all: a stored value differs from
  the one it replaces (custom_equality if set); a new key always counts
- put_if_absent, setdefault: the key was missing
- remove, pop, popitem, del: the key was present
- remove_where: at least one entry went
- clear: the map was not empty
- add_all, add_entries, update: always, even for empty input
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from types import MappingProxyType
from typing import Any, Callable, TypeVar

from listenit._collection import CollectionNotifier, Equality
from listenit.notifier import ErrorHandler, NotifierMode

K = TypeVar("K")
V = TypeVar("V")

_MISSING = object()


class MapNotifier(CollectionNotifier[Mapping[K, V]], MutableMapping[K, V]):
    """A dict that behaves like a ValueNotifier whenever its data changes.

    .value is a read-only MappingProxyType over the live contents. The
    initial data is copied.

    Usage:
        settings = MapNotifier({"theme": "dark"})
        settings.listen(lambda value, _: print(dict(value)))
        settings["theme"] = "light"   # prints {'theme': 'light'}
    """

    def __init__(
        self,
        data: Mapping[K, V] | Iterable[tuple[K, V]] | None = None,
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
        self._data: dict[K, V] = dict(data) if data is not None else {}
        self._view = MappingProxyType(self._data)

    @property
    def value(self) -> Mapping[K, V]:
        return self._view

    # --- Read operations ---

    def __getitem__(self, key: K) -> V:
        return self._data[key]

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __bool__(self) -> bool:
        return bool(self._data)

    # --- Single entry writes ---

    def __setitem__(self, key: K, value: V) -> None:
        old = self._data.get(key, _MISSING)
        self._data[key] = value
        self._mutated(old is _MISSING or not self._equal(old, value))

    def __delitem__(self, key: K) -> None:
        del self._data[key]
        self._mutated(True)

    def remove(self, key: K) -> V | None:
        """Remove key and return its value, or None if it was absent."""
        present = key in self._data
        value = self._data.pop(key, None)
        self._mutated(present)
        return value

    def pop(self, key: K, default: Any = _MISSING) -> V:
        if key in self._data:
            value = self._data.pop(key)
            self._mutated(True)
            return value
        if default is _MISSING:
            raise KeyError(key)
        self._mutated(False)
        return default

    def popitem(self) -> tuple[K, V]:
        item = self._data.popitem()
        self._mutated(True)
        return item

    def put_if_absent(self, key: K, if_absent: Callable[[], V]) -> V:
        """Return the value for key, storing if_absent() first if it is missing.

        Only stores and notifies for a missing key; in ALWAYS mode an
        existing key still notifies because the call was made.
        """
        if key in self._data:
            if self._notification_mode is NotifierMode.ALWAYS:
                self._mutated(False)
            return self._data[key]
        value = if_absent()
        self._data[key] = value
        self._mutated(True)
        return value

    def setdefault(self, key: K, default: V = None) -> V:
        return self.put_if_absent(key, lambda: default)

    def update_value(
        self,
        key: K,
        update: Callable[[V], V],
        if_absent: Callable[[], V] | None = None,
    ) -> V:
        """Replace the value for key with update(old) and return it.

        A missing key is filled with if_absent(); without if_absent a
        missing key raises KeyError.
        """
        if key in self._data:
            old = self._data[key]
            new = update(old)
            self._data[key] = new
            self._mutated(not self._equal(new, old))
            return new
        if if_absent is None:
            raise KeyError(key)
        new = if_absent()
        self._data[key] = new
        self._mutated(True)
        return new

    # --- Bulk writes ---

    def add_all(self, other: Mapping[K, V]) -> None:
        self._data.update(other)
        self._mutated(True)

    def add_entries(self, entries: Iterable[tuple[K, V]]) -> None:
        self._data.update(entries)
        self._mutated(True)

    def update(self, other: Any = (), /, **kwargs: V) -> None:
        self._data.update(other, **kwargs)
        self._mutated(True)

    def update_all(self, update: Callable[[K, V], V]) -> None:
        """Replace every value with update(key, value)."""
        updated = {key: update(key, old) for key, old in self._data.items()}
        changed = any(not self._equal(updated[key], old) for key, old in self._data.items())
        self._data.update(updated)
        self._mutated(changed)

    def remove_where(self, test: Callable[[K, V], bool]) -> None:
        doomed = [key for key, value in self._data.items() if test(key, value)]
        for key in doomed:
            del self._data[key]
        self._mutated(bool(doomed))

    def clear(self) -> None:
        changed = bool(self._data)
        self._data.clear()
        self._mutated(changed)

    def __repr__(self) -> str:
        return f"MapNotifier({self._data!r})"
