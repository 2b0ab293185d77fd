"""Process-local publish/subscribe for new-confession notifications.

Delivery is limited to the listeners registered in this process at the
moment of publishing; nothing is buffered for late subscribers. A
multi-instance deployment needs a distributed pub/sub behind the same
interface.
"""

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]

DEFAULT_MAX_LISTENERS = 100


def confession_topic(recipient_id: int | str) -> str:
    return f"new-confession-{recipient_id}"


class Subscription:
    """Handle returned by ``EventBus.subscribe``."""

    def __init__(self, bus: "EventBus", topic: str, callback: Listener):
        self._bus = bus
        self._topic = topic
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if not self._active:
            return
        self._active = False
        self._bus._remove(self._topic, self._callback)


class EventBus:
    """Topic-per-recipient event emitter."""

    def __init__(self, max_listeners: int = DEFAULT_MAX_LISTENERS):
        self.max_listeners = max_listeners
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, recipient_id: int | str, callback: Listener) -> Subscription:
        topic = confession_topic(recipient_id)
        listeners = self._listeners[topic]
        listeners.append(callback)

        if len(listeners) > self.max_listeners:
            logger.warning(
                f"{len(listeners)} listeners on {topic} exceeds max_listeners={self.max_listeners}"
            )

        return Subscription(self, topic, callback)

    def publish(self, recipient_id: int | str, payload: Any) -> int:
        """Deliver ``payload`` to current listeners; returns how many were called."""
        topic = confession_topic(recipient_id)
        # Copy: listeners may unsubscribe while being notified
        listeners = list(self._listeners.get(topic, ()))

        delivered = 0
        for callback in listeners:
            try:
                callback(payload)
                delivered += 1
            except Exception as e:
                logger.error(f"Listener on {topic} failed: {e}", exc_info=True)

        return delivered

    def listener_count(self, recipient_id: int | str) -> int:
        return len(self._listeners.get(confession_topic(recipient_id), ()))

    def _remove(self, topic: str, callback: Listener) -> None:
        listeners = self._listeners.get(topic)
        if not listeners:
            return
        try:
            listeners.remove(callback)
        except ValueError:
            return
        if not listeners:
            del self._listeners[topic]
