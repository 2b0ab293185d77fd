"""In-process event bus used by the confession stream"""

from app.services.events.event_bus import EventBus, Subscription, confession_topic

__all__ = ["EventBus", "Subscription", "confession_topic"]
