"""Publish contract consumed by the simulation engine.

The engine receives its publisher as a constructor argument; it never imports
a transport. Delivery is fire-and-forget: ``publish`` returns once the event
is handed to the transport, and subscribers that are not connected at that
moment simply miss it.
"""

from abc import ABC, abstractmethod

from .event import EventKind


class Publisher(ABC):
    """Broadcasts typed events to topic-scoped listeners."""

    @abstractmethod
    def publish(self, topic: str, kind: EventKind, payload: dict) -> None:
        """Send ``payload`` as a ``kind`` event on ``topic``."""


class FanOutPublisher(Publisher):
    """Forward every event to several publishers, e.g. a hub and MQTT.

    A failing publisher does not prevent delivery to the others; the first
    error is re-raised once all of them were tried.
    """

    def __init__(self, *publishers: Publisher):
        self._publishers = list(publishers)

    def publish(self, topic: str, kind: EventKind, payload: dict) -> None:
        error: Exception | None = None
        for publisher in self._publishers:
            try:
                publisher.publish(topic, kind, payload)
            except Exception as exc:
                if error is None:
                    error = exc
        if error is not None:
            raise error
