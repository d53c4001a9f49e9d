"""Minimal synchronous event emitter for SDK and workflow notifications"""

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

Listener = Callable[..., Any]


class EventEmitter:
    """Register listeners by event name; a failing listener never breaks the emitter"""

    def __init__(self):
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> Listener:
        self._listeners[event].append(listener)
        return listener

    def off(self, event: str, listener: Listener) -> None:
        if listener in self._listeners.get(event, []):
            self._listeners[event].remove(listener)

    def emit(self, event: str, *args: Any, **kwargs: Any) -> int:
        """Call every listener for ``event``; returns how many were called"""
        listeners = list(self._listeners.get(event, []))
        for listener in listeners:
            try:
                listener(*args, **kwargs)
            except Exception:
                logging.exception(f"Event listener failed for {event}", extra={"event": event})
        return len(listeners)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))
