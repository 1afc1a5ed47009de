"""Event envelope pushed to dashboard subscribers."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import json

from fleetsim.models import utcnow

GLOBAL_TOPIC = "fleet"


def owner_topic(owner: str | None) -> str:
    """Channel of a single user; drones without an owner go to the global topic."""
    if not owner:
        return GLOBAL_TOPIC
    return f"user_{owner}"


class EventKind(Enum):
    """Kinds of state deltas broadcast by the simulation."""

    DRONE_UPDATE = "droneUpdate"
    MISSION_UPDATE = "missionUpdate"
    MISSION_PROGRESS = "missionProgress"
    MISSION_COMPLETED = "missionCompleted"


def _json_default(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


@dataclass(frozen=True)
class Event:
    """A typed state delta.

    Attributes:
        kind (EventKind): What changed.
        topic (str): Channel the event was published on.
        payload (dict): Full current representation of the affected entity.
        timestamp (datetime): When the event was published.
    """

    kind: EventKind
    topic: str
    payload: dict
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "type": self.kind.value,
            "topic": self.topic,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=_json_default)
