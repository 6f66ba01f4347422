"""Observer collections that tolerate mutation during dispatch."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

ListenerT = TypeVar("ListenerT", bound=Callable[..., Any])


class Subscription:
    """Handle returned by every listener registration.

    remove() is idempotent; once it returns the listener receives no further
    events, even from a dispatch that is already in progress.
    """

    __slots__ = ("_on_remove", "_active")

    def __init__(self, on_remove: Callable[[], None] | None = None):
        self._on_remove = on_remove
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def remove(self) -> None:
        if not self._active:
            return
        self._active = False
        on_remove, self._on_remove = self._on_remove, None
        if on_remove is not None:
            on_remove()


class _Slot(Generic[ListenerT]):
    __slots__ = ("callback", "active")

    def __init__(self, callback: ListenerT):
        self.callback = callback
        self.active = True


class ListenerSet(Generic[ListenerT]):
    """Ordered listener collection with snapshot dispatch and tombstoning.

    emit() iterates over a copy of the slots taken when the dispatch starts and
    skips any slot tombstoned in the meantime, so listeners may add or remove
    registrations (their own included) from inside a callback.
    """

    def __init__(self, on_empty: Callable[[], None] | None = None):
        """Initialize listener set.

        Args:
            on_empty: Called when removal leaves the set empty
        """
        self._slots: list[_Slot[ListenerT]] = []
        self._on_empty = on_empty

    def __len__(self) -> int:
        return len(self._slots)

    def __bool__(self) -> bool:
        return bool(self._slots)

    def __iter__(self) -> Iterator[ListenerT]:
        return (slot.callback for slot in list(self._slots) if slot.active)

    def add(self, callback: ListenerT) -> Subscription:
        slot = _Slot(callback)
        self._slots.append(slot)
        return Subscription(lambda: self._discard(slot))

    def _discard(self, slot: _Slot[ListenerT]) -> None:
        slot.active = False
        try:
            self._slots.remove(slot)
        except ValueError:
            return
        if not self._slots and self._on_empty is not None:
            self._on_empty()

    def emit(self, *args: Any) -> int:
        """Call every live listener with args.

        Returns:
            Number of listeners invoked
        """
        delivered = 0
        for slot in list(self._slots):
            if slot.active:
                slot.callback(*args)
                delivered += 1
        return delivered

    def clear(self) -> None:
        for slot in self._slots:
            slot.active = False
        self._slots.clear()
