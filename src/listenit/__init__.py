"""listenit: chainable operators and observable collections for listenables."""

from importlib.metadata import version as _version

__version__ = _version("listenit")

from listenit.errors import DisposedError, ListenItError, TransactionError
from listenit.notifier import (
    CustomValueNotifier,
    Notifier,
    NotifierMode,
    Subscription,
    ValueListenable,
    ValueNotifier,
)
from listenit.operators import (
    AsyncValueNotifier,
    CombiningValueNotifier,
    DebouncedNotifier,
    DebouncedValueNotifier,
    FunctionalValueNotifier,
    MapValueNotifier,
    MergingValueNotifier,
    SelectValueNotifier,
    WhereValueNotifier,
)
from listenit.scheduling import AsyncioScheduler, Scheduler, ThreadingScheduler
from listenit.list_notifier import ListNotifier
from listenit.map_notifier import MapNotifier
from listenit.set_notifier import SetNotifier
# textual NOT auto-imported — opt-in only

__all__ = [
    "Notifier",
    "ValueListenable",
    "ValueNotifier",
    "CustomValueNotifier",
    "NotifierMode",
    "Subscription",
    "FunctionalValueNotifier",
    "MapValueNotifier",
    "SelectValueNotifier",
    "WhereValueNotifier",
    "DebouncedValueNotifier",
    "DebouncedNotifier",
    "AsyncValueNotifier",
    "CombiningValueNotifier",
    "MergingValueNotifier",
    "ListNotifier",
    "MapNotifier",
    "SetNotifier",
    "Scheduler",
    "ThreadingScheduler",
    "AsyncioScheduler",
    "ListenItError",
    "DisposedError",
    "TransactionError",
]
