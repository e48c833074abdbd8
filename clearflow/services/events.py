"""
In-process event bus for clearance events

The clearance engine publishes logical events after each committed change;
notifiers subscribe to them. Delivery is best effort: a failing handler is
logged and the remaining handlers still run.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List
from flask import current_app
from clearflow.utils.helpers import log_error

CLEARANCE_SUBMITTED = 'clearance_submitted'
DECISION_RECORDED = 'decision_recorded'
CLEARANCE_COMPLETED = 'clearance_completed'
CLEARANCE_REJECTED = 'clearance_rejected'

EXTENSION_KEY = 'clearance_events'

Handler = Callable[[Dict[str, Any]], None]


class EventBus:
    """Minimal publish/subscribe registry"""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event: str, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: Handler) -> None:
        if handler in self._handlers[event]:
            self._handlers[event].remove(handler)

    def emit(self, event: str, payload: Dict[str, Any]) -> int:
        """
        Deliver payload to every handler of event

        Returns:
            Number of handlers that completed without raising
        """
        delivered = 0
        for handler in list(self._handlers[event]):
            try:
                handler(payload)
                delivered += 1
            except Exception as e:
                log_error(f"Event handler for {event} failed", e)
        return delivered


def get_event_bus() -> EventBus:
    """Event bus of the current application"""
    return current_app.extensions[EXTENSION_KEY]


def emit(event: str, payload: Dict[str, Any]) -> int:
    return get_event_bus().emit(event, payload)
