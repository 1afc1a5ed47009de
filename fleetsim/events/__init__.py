"""Real-time event layer.

State changes produced by the simulation are broadcast as typed events to the
sessions subscribed to the owner's channel (``user_<id>``) or to the global
``fleet`` channel.

Exports:
    Event, EventKind: Event envelope and its kinds
    GLOBAL_TOPIC, owner_topic: Topic naming
    Publisher: Contract consumed by the engine
    FanOutPublisher: Forward to several publishers
    EventHub, Subscription: In-process transport
    MqttPublisher: MQTT transport
"""

from .event import GLOBAL_TOPIC, Event, EventKind, owner_topic
from .hub import EventHub, Subscription
from .mqtt import MqttPublisher
from .publisher import FanOutPublisher, Publisher

__all__ = [
    "GLOBAL_TOPIC",
    "Event",
    "EventHub",
    "EventKind",
    "FanOutPublisher",
    "MqttPublisher",
    "Publisher",
    "Subscription",
    "owner_topic",
]
