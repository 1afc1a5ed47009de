"""Mission document model."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from .drone import isoformat

DEFAULT_WAYPOINT_ALTITUDE = 50.0  # meters


class MissionStatus(Enum):
    """Lifecycle status of a mission.

    The engine itself only performs ``IN_PROGRESS -> COMPLETED``; every other
    transition is driven by operators through the CRUD layer.
    """

    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class Waypoint:
    """A single target point of a flight path."""

    latitude: float
    longitude: float
    altitude: float = DEFAULT_WAYPOINT_ALTITUDE

    def to_document(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "Waypoint":
        altitude = doc.get("altitude")
        return cls(
            latitude=float(doc["latitude"]),
            longitude=float(doc["longitude"]),
            altitude=DEFAULT_WAYPOINT_ALTITUDE if altitude is None else float(altitude),
        )


@dataclass
class Mission:
    """A survey mission flown by one drone along an ordered flight path.

    The flight path is treated as immutable while the mission is simulated;
    progress fields are derived from the waypoint index the engine reached.

    Attributes:
        id (str): Mission identifier.
        owner (str | None): Id of the owning user.
        drone_id (str | None): Assigned drone, None until assignment.
        name (str): Mission name.
        status (MissionStatus): Lifecycle status.
        flight_path (list[Waypoint]): Ordered waypoints.
        progress (float): Completion percentage, 0 to 100.
        current_waypoint (int): Index of the next waypoint to reach.
        distance_covered (float): Meters flown so far.
        start_time (datetime | None): When the mission went in progress.
        completed_at (datetime | None): When the engine completed the mission.
        description (str): Free text.
    """

    id: str
    owner: str | None = None
    drone_id: str | None = None
    name: str = ""
    status: MissionStatus = MissionStatus.PLANNED
    flight_path: list[Waypoint] = field(default_factory=list)
    progress: float = 0.0
    current_waypoint: int = 0
    distance_covered: float = 0.0
    start_time: datetime | None = None
    completed_at: datetime | None = None
    description: str = ""

    def __post_init__(self):
        self.status = MissionStatus(self.status)
        self.flight_path = [
            wp if isinstance(wp, Waypoint) else Waypoint.from_document(wp)
            for wp in self.flight_path
        ]

    def copy(self) -> "Mission":
        return replace(self, flight_path=list(self.flight_path))

    def progress_for(self, waypoint_index: int) -> float:
        """Completion percentage once ``waypoint_index`` waypoints are reached."""
        if not self.flight_path:
            return 0.0
        return min(100.0, 100.0 * waypoint_index / len(self.flight_path))

    def to_document(self) -> dict:
        return {
            "_id": self.id,
            "user": self.owner,
            "drone": self.drone_id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "flightPath": [wp.to_document() for wp in self.flight_path],
            "progress": self.progress,
            "currentWaypoint": self.current_waypoint,
            "distanceCovered": self.distance_covered,
            "startTime": self.start_time,
            "completedAt": self.completed_at,
        }

    def to_payload(self) -> dict:
        """JSON-safe representation used in published events."""
        doc = self.to_document()
        doc["id"] = doc.pop("_id")
        doc["startTime"] = isoformat(doc["startTime"])
        doc["completedAt"] = isoformat(doc["completedAt"])
        return doc

    @classmethod
    def from_document(cls, doc: dict) -> "Mission":
        raw_id = doc["_id"] if "_id" in doc else doc["id"]
        drone = doc.get("drone")
        owner = doc.get("user")
        return cls(
            id=str(raw_id),
            owner=str(owner) if owner is not None else None,
            drone_id=str(drone) if drone is not None else None,
            name=doc.get("name", ""),
            description=doc.get("description") or "",
            status=MissionStatus(doc.get("status", MissionStatus.PLANNED.value)),
            flight_path=[Waypoint.from_document(wp) for wp in doc.get("flightPath") or []],
            progress=float(doc.get("progress", 0.0) or 0.0),
            current_waypoint=int(doc.get("currentWaypoint", 0) or 0),
            distance_covered=float(doc.get("distanceCovered", 0.0) or 0.0),
            start_time=doc.get("startTime"),
            completed_at=doc.get("completedAt"),
        )
