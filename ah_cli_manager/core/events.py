"""
Event channel used to relay process progress and abort notifications to
subscribers of a CLIManager.
"""

from collections import defaultdict
from enum import Enum
from typing import Any, Callable

Listener = Callable[..., Any]


class ManagerEvent(str, Enum):
    """Events emitted by a CLIManager."""

    PROGRESS = "progress"
    ABORT = "abort"


class EventChannel:
    """
    Minimal observer list keyed by event.

    Listeners run synchronously in registration order. Listeners added or
    removed while an event is being emitted take effect from the next emit.
    """

    def __init__(self):
        self._listeners: dict[ManagerEvent, list[Listener]] = defaultdict(list)

    def on(self, event: ManagerEvent, listener: Listener) -> None:
        event = ManagerEvent(event)
        if not callable(listener):
            raise TypeError(f"Listener for '{event.value}' must be callable.")
        self._listeners[event].append(listener)

    def off(self, event: ManagerEvent, listener: Listener) -> bool:
        """Removes one registration of `listener`. Returns False if it was not found."""
        listeners = self._listeners.get(ManagerEvent(event), [])
        try:
            listeners.remove(listener)
        except ValueError:
            return False
        return True

    def emit(self, event: ManagerEvent, *args: Any) -> int:
        """Calls every listener of `event` and returns how many were called."""
        listeners = list(self._listeners.get(ManagerEvent(event), []))
        for listener in listeners:
            listener(*args)
        return len(listeners)

    def listener_count(self, event: ManagerEvent) -> int:
        return len(self._listeners.get(ManagerEvent(event), []))
