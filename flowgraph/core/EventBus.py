"""
Synchronous publish/subscribe channel for graph events.

Listeners run inline, in registration order, on the thread that emitted the
event. A listener that raises stops delivery to the listeners after it and
the exception reaches whoever called ``emit``.
"""
import logging
from typing import Any, Callable, Dict, List

from flowgraph.core.Errors import InvalidEventName, InvalidListener

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


class EventBus:
    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    # ------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> None:
        if not callable(listener):
            raise InvalidListener(f"Listener for '{event}' must be callable, got {type(listener).__name__}")
        if not isinstance(event, str):
            raise InvalidEventName(f"Event name must be a string, got {type(event).__name__}")
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: str, listener: Listener) -> bool:
        """Remove the first registration of ``listener``; False if it was not registered."""
        listeners = self._listeners.get(event)
        if not listeners:
            return False
        try:
            listeners.remove(listener)
        except ValueError:
            return False
        return True

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    # ------------------------------------------------------------------
    # Emit
    # ------------------------------------------------------------------

    def emit(self, event: str, payload: Any = None) -> None:
        listeners = self._listeners.get(event)
        if not listeners:
            return
        logger.debug(f"emit {event}: {payload!r}")
        # Snapshot so listeners may (un)subscribe while being notified.
        for listener in list(listeners):
            listener(payload)
