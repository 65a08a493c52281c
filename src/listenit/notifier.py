"""Notifiers — value holders that call their listeners when they change.

Notifier is the bare listenable: an ordered listener registry and
notify_listeners(). ValueListenable adds a readable value and the operator
methods (map, select, where, ...) that build chains on top of it.
ValueNotifier makes the value settable; every assignment notifies.
CustomValueNotifier lets a NotifierMode decide whether an assignment
notifies.

Listeners run synchronously, in registration order, on the thread that
triggered the notification. A listener that raises does not stop the
others: the error goes to the on_error callback given at construction,
or to the log when there is none.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Generic, Sequence, TypeVar

from listenit.errors import DisposedError
from listenit.scheduling import Scheduler

T = TypeVar("T")
U = TypeVar("U")

Listener = Callable[[], None]
ErrorHandler = Callable[[Exception, Listener], None]

logger = logging.getLogger("listenit.notifier")

_UNSET: Any = object()


class NotifierMode(enum.Enum):
    """When a mutation notifies listeners."""

    NORMAL = "normal"  # only when the value actually changed
    ALWAYS = "always"  # on every mutating call
    MANUAL = "manual"  # never; call notify_listeners() yourself


class ChainHandler:
    """Listener linking an operator node to one of its sources.

    Errors raised while the node recomputes belong to whoever changed the
    source, so notify_listeners() lets them through instead of isolating
    them like ordinary listener errors.
    """

    __slots__ = ("node", "index")

    def __init__(self, node: Any, index: int) -> None:
        self.node = node
        self.index = index

    def __call__(self) -> None:
        self.node._on_source_changed(self.index)

    def __repr__(self) -> str:
        return f"ChainHandler({type(self.node).__name__}, source={self.index})"


class Subscription:
    """Returned by listen(). cancel() removes the handler again.

    Safe to cancel from inside the handler and safe to cancel twice.
    """

    __slots__ = ("_target", "_handler", "_canceled")

    def __init__(self, target: Notifier) -> None:
        self._target = target
        self._handler: Listener | None = None
        self._canceled = False

    @property
    def target(self) -> Notifier:
        return self._target

    @property
    def canceled(self) -> bool:
        return self._canceled

    def cancel(self) -> None:
        if not self._canceled:
            self._target.remove_listener(self._handler)
            self._canceled = True

    def __repr__(self) -> str:
        state = "canceled" if self._canceled else "active"
        return f"Subscription({type(self._target).__name__}, {state})"


class Notifier:
    """A listenable without a value."""

    def __init__(self, *, on_error: ErrorHandler | None = None) -> None:
        self._listeners: list[Listener] = []
        self._removed_in_pass: list[list[Listener]] = []
        self._on_error = on_error
        self._disposed = False

    @property
    def has_listeners(self) -> bool:
        return bool(self._listeners)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def add_listener(self, listener: Listener) -> None:
        """Register listener. Registering the same callable twice is a no-op."""
        self._check_not_disposed("add_listener")
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        """Unregister listener. Unknown listeners are ignored."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            return
        for removed in self._removed_in_pass:
            removed.append(listener)

    def notify_listeners(self) -> None:
        """Call every listener once.

        Iterates over a snapshot: listeners added during the pass wait for
        the next one. A listener removed during the pass is skipped for the
        rest of it, even if it is added again before its turn.
        """
        self._check_not_disposed("notify_listeners")
        removed: list[Listener] = []
        self._removed_in_pass.append(removed)
        try:
            for listener in list(self._listeners):
                if listener in removed or listener not in self._listeners:
                    continue
                try:
                    listener()
                except Exception as error:
                    if isinstance(listener, ChainHandler):
                        raise
                    self._report_error(error, listener)
        finally:
            self._removed_in_pass.pop()

    def listen(self, handler: Callable[[Subscription], None]) -> Subscription:
        """Call handler(subscription) on every notification.

        Usage:
            subscription = notifier.listen(lambda sub: sub.cancel())
        """
        subscription = Subscription(self)
        subscription._handler = lambda: handler(subscription)
        self.add_listener(subscription._handler)
        return subscription

    def debounce(
        self,
        seconds: float,
        *,
        lazy: bool = False,
        scheduler: Scheduler | None = None,
    ) -> Notifier:
        """Notify once after seconds have passed without a new notification."""
        from listenit.operators import DebouncedNotifier

        return DebouncedNotifier(self, seconds, lazy=lazy, scheduler=scheduler)

    def dispose(self) -> None:
        """Drop all listeners. The notifier cannot be used afterwards."""
        self._disposed = True
        self._listeners.clear()

    def _check_not_disposed(self, operation: str) -> None:
        if self._disposed:
            raise DisposedError(self, operation)

    def _report_error(self, error: Exception, listener: Listener) -> None:
        if self._on_error is not None:
            self._on_error(error, listener)
        else:
            logger.exception("Listener %r of %r raised", listener, self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(listeners={len(self._listeners)})"


class ValueListenable(Notifier, Generic[T]):
    """A notifier with a readable value, and the operators to chain on it."""

    @property
    def value(self) -> T:
        raise NotImplementedError

    def listen(self, handler: Callable[[T, Subscription], None]) -> Subscription:
        """Call handler(value, subscription) on every notification.

        Usage:
            counter = ValueNotifier(0)

            def on_change(value, subscription):
                print(value)
                if value == 42:
                    subscription.cancel()

            counter.listen(on_change)
        """
        subscription = Subscription(self)
        subscription._handler = lambda: handler(self.value, subscription)
        self.add_listener(subscription._handler)
        return subscription

    def map(self, transformation: Callable[[T], U], *, lazy: bool = False) -> ValueListenable[U]:
        """Derive a value by applying transformation to every value of this one.

        Usage:
            source = ValueNotifier(5)
            doubled = source.map(lambda x: x * 2)
            doubled.value  # 10
            source.value = 7
            doubled.value  # 14
        """
        from listenit.operators import MapValueNotifier

        return MapValueNotifier(transformation(self.value), self, transformation, lazy=lazy)

    def select(self, selector: Callable[[T], U], *, lazy: bool = False) -> ValueListenable[U]:
        """Like map(), but only notifies when the selected value changes (!=).

        The selector must return a new object, not a live one. A collection's
        .value is the same live view on every call, so items.select(lambda v: v)
        never sees a change; select a snapshot such as tuple or len instead.
        """
        from listenit.operators import SelectValueNotifier

        return SelectValueNotifier(selector(self.value), self, selector, lazy=lazy)

    def where(
        self,
        selector: Callable[[T], bool],
        fallback_value: T = _UNSET,
        *,
        lazy: bool = False,
    ) -> ValueListenable[T]:
        """Pass on only the values for which selector returns True.

        A notifier always has a value, so the current value of this one
        becomes the initial value even when selector rejects it, unless
        fallback_value is given.

        Usage:
            source = ValueNotifier(5)
            evens = source.where(lambda x: x % 2 == 0, fallback_value=0)
            evens.value  # 0
            source.value = 6
            evens.value  # 6
            source.value = 3
            evens.value  # still 6
        """
        from listenit.operators import WhereValueNotifier

        current = self.value
        if selector(current) or fallback_value is _UNSET:
            initial = current
        else:
            initial = fallback_value
        return WhereValueNotifier(initial, self, selector, lazy=lazy)

    def debounce(
        self,
        seconds: float,
        *,
        lazy: bool = False,
        scheduler: Scheduler | None = None,
    ) -> ValueListenable[T]:
        """Pass on the latest value once seconds have passed without a change.

        Every change restarts the wait, so a burst of changes results in a
        single notification carrying the last value.
        """
        from listenit.operators import DebouncedValueNotifier

        return DebouncedValueNotifier(
            self.value, self, seconds, lazy=lazy, scheduler=scheduler
        )

    def defer(
        self,
        *,
        lazy: bool = False,
        scheduler: Scheduler | None = None,
    ) -> ValueListenable[T]:
        """Pass on changes on the next turn of the scheduler's loop.

        Use it where a listener must not run inside the code that changed
        the value. Several changes before the deferred call runs produce a
        single update with the latest value.
        """
        from listenit.operators import AsyncValueNotifier

        return AsyncValueNotifier(self.value, self, lazy=lazy, scheduler=scheduler)

    def combine_latest(
        self,
        *others: ValueListenable[Any],
        combiner: Callable[..., U],
        lazy: bool = False,
    ) -> ValueListenable[U]:
        """Combine this and up to five other listenables with combiner.

        combiner receives the current value of every source, this one
        first, and is called again whenever any of them notifies.

        Usage:
            a = ValueNotifier(1)
            b = ValueNotifier(2)
            total = a.combine_latest(b, combiner=lambda x, y: x + y)
            total.value  # 3
        """
        from listenit.operators import CombiningValueNotifier

        sources = (self, *others)
        return CombiningValueNotifier(
            combiner(*(source.value for source in sources)),
            sources,
            combiner,
            lazy=lazy,
        )

    def merge_with(
        self,
        others: Sequence[ValueListenable[T]],
        *,
        lazy: bool = False,
    ) -> ValueListenable[T]:
        """Pass on the value of whichever source changed last.

        The initial value is this listenable's value. An eager merge tracks
        every source right away; a lazy one only once it gets a listener.
        """
        from listenit.operators import MergingValueNotifier

        return MergingValueNotifier(self, others, self.value, lazy=lazy)


class ValueNotifier(ValueListenable[T]):
    """A settable value. Every assignment notifies, equal or not."""

    def __init__(self, value: T, *, on_error: ErrorHandler | None = None) -> None:
        super().__init__(on_error=on_error)
        self._value = value

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._check_not_disposed("set value")
        self._value = new_value
        self.notify_listeners()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


class CustomValueNotifier(ValueNotifier[T]):
    """A ValueNotifier whose mode decides whether an assignment notifies.

    NORMAL skips assignments of an equal value, ALWAYS notifies on every
    assignment, MANUAL leaves notifying to notify_listeners().
    """

    def __init__(
        self,
        value: T,
        *,
        mode: NotifierMode = NotifierMode.ALWAYS,
        on_error: ErrorHandler | None = None,
    ) -> None:
        super().__init__(value, on_error=on_error)
        self._mode = mode

    @property
    def mode(self) -> NotifierMode:
        return self._mode

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._check_not_disposed("set value")
        changed = self._value != new_value
        self._value = new_value
        if self._mode is NotifierMode.ALWAYS or (
            self._mode is NotifierMode.NORMAL and changed
        ):
            self.notify_listeners()
