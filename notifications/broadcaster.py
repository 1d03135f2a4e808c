"""
Real-time broadcast channel.

The emitter publishes two events: ``new-tender`` (payload: tender dict)
and ``new-notification`` (payload: notification dict). Delivery is
best-effort; a failing subscriber never affects the publisher or the
other subscribers.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

EVENT_NEW_TENDER = "new-tender"
EVENT_NEW_NOTIFICATION = "new-notification"

Subscriber = Callable[[str, Dict[str, Any]], None]


class Broadcaster(ABC):
    """Publish side of a pub/sub channel."""

    @abstractmethod
    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        pass


class NullBroadcaster(Broadcaster):
    """Drops every event. Used when nothing is listening."""

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        logger.debug(f"No broadcaster configured, dropping {event}")


class LocalBroadcaster(Broadcaster):
    """In-process broadcaster delivering events to registered callbacks."""

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a subscriber.

        Args:
            callback: Called as ``callback(event, payload)``

        Returns:
            Function that removes the subscription
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(event, payload)
            except Exception as e:
                logger.warning(f"Subscriber {callback!r} failed on {event}: {e}")
