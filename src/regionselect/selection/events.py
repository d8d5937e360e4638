"""Property-change notifications for selection models.

Observers subscribe to named properties ("state", "selection", "progress").
Events are delivered synchronously on the publishing thread, unless the bus was
created with ``post_foreign=True``: then events published from any thread other
than the owner are handed to a dispatcher (for example a GUI toolkit's
"invoke later" hook) or queued until the owner calls ``process_pending()``.
"""

import queue
import threading
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class PropertyChange:
    """A change of one named property.

    Attributes:
        name: Property name
        old_value: Value before the change (None when not tracked)
        new_value: Value after the change
        source: Object whose property changed
    """

    name: str
    old_value: Any
    new_value: Any
    source: object | None = None


Listener = Callable[[PropertyChange], None]
Dispatcher = Callable[[Callable[[], None]], None]


class EventBus:
    """Publish/subscribe channel keyed by property name.

    Subscribing with ``name=None`` receives every property.

    Example:
        bus = EventBus(source=model)
        bus.subscribe("state", lambda e: print(e.new_value))
        bus.publish("state", old, new)
    """

    def __init__(
        self,
        source: object | None = None,
        post_foreign: bool = False,
        dispatcher: Dispatcher | None = None,
    ) -> None:
        """Initialize the bus on the current (owning) thread.

        Args:
            source: Object reported as the source of every event
            post_foreign: Deliver events from other threads on the owner thread
            dispatcher: Callable that runs a callback on the owner thread. When
                None, foreign events wait in a queue for ``process_pending()``.
        """
        self._source = source
        self._post_foreign = post_foreign
        self._dispatcher = dispatcher
        self._owner = threading.get_ident()
        self._listeners: dict[str | None, list[Listener]] = defaultdict(list)
        self._pending: queue.SimpleQueue[PropertyChange] = queue.SimpleQueue()

    @property
    def post_foreign(self) -> bool:
        """Whether foreign-thread events are posted to the owner thread."""
        return self._post_foreign

    @property
    def dispatcher(self) -> Dispatcher | None:
        """Callable used to post events to the owner thread, if any."""
        return self._dispatcher

    def is_owner_thread(self) -> bool:
        """Return whether the calling thread owns this bus."""
        return threading.get_ident() == self._owner

    def subscribe(self, name: str | None, listener: Listener) -> None:
        """Register ``listener`` for property ``name`` (None for all properties)."""
        self._listeners[name].append(listener)

    def unsubscribe(self, name: str | None, listener: Listener) -> None:
        """Remove one registration of ``listener`` for ``name``, if present."""
        listeners = self._listeners.get(name)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def has_listeners(self, name: str) -> bool:
        """Return whether any listener would receive events for ``name``."""
        return bool(self._listeners.get(name)) or bool(self._listeners.get(None))

    def publish(self, name: str, old_value: Any, new_value: Any) -> None:
        """Notify listeners that property ``name`` changed."""
        event = PropertyChange(name, old_value, new_value, self._source)
        if self._post_foreign and not self.is_owner_thread():
            if self._dispatcher is not None:
                self._dispatcher(lambda: self._deliver(event))
            else:
                self._pending.put(event)
            return
        self._deliver(event)

    def process_pending(self) -> int:
        """Deliver queued foreign-thread events. Call from the owner thread.

        Returns:
            Number of events delivered
        """
        delivered = 0
        while True:
            try:
                event = self._pending.get_nowait()
            except queue.Empty:
                return delivered
            self._deliver(event)
            delivered += 1

    def _deliver(self, event: PropertyChange) -> None:
        listeners = [*self._listeners.get(event.name, ()), *self._listeners.get(None, ())]
        for listener in listeners:
            listener(event)
