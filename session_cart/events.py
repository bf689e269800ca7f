"""In-process event dispatcher and cart event names."""
from collections import defaultdict
from typing import Any, Callable, Dict, List

from .logging import get_logger

logger = get_logger(__name__)

ITEM_ADDED = "cart.item.added"
ITEM_UPDATED = "cart.item.updated"
ITEM_REMOVED = "cart.item.removed"
LOGOUT = "auth.logout"

Listener = Callable[[Any], None]


class EventDispatcher:
    """
    Minimal synchronous dispatcher.

    Listeners run in registration order. A failing listener is logged and
    skipped; dispatch never raises to the caller.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def listen(self, event: str, listener: Listener) -> None:
        """Register a listener for an event name."""
        self._listeners[event].append(listener)

    def forget(self, event: str) -> None:
        """Drop all listeners for an event name."""
        self._listeners.pop(event, None)

    def has_listeners(self, event: str) -> bool:
        return bool(self._listeners.get(event))

    def dispatch(self, event: str, payload: Any = None) -> None:
        for listener in list(self._listeners.get(event, ())):
            try:
                listener(payload)
            except Exception as e:
                logger.warning(f"Listener for {event} failed: {e}", exc_info=True)


__all__ = [
    "EventDispatcher",
    "ITEM_ADDED",
    "ITEM_UPDATED",
    "ITEM_REMOVED",
    "LOGOUT",
]
