"""Drone document model.

The document store is the system of record for drones; the simulation only
keeps a transient copy. ``Drone.to_document``/``Drone.from_document`` define
the camelCase document shape shared by the store implementations and by the
event payloads pushed to dashboards.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from fleetsim.energy import clamp_battery


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class DroneStatus(Enum):
    """Operational status of a drone as persisted in the store.

    Only ``AVAILABLE`` and ``IN_MISSION`` describe a drone the simulation flies.
    ``CHARGING`` is entered automatically when the battery runs low; the other
    statuses are set by operators.
    """

    AVAILABLE = "available"
    IN_MISSION = "in-mission"
    MAINTENANCE = "maintenance"
    OFFLINE = "offline"
    CHARGING = "charging"
    ERROR = "error"


ACTIVE_DRONE_STATUSES = (DroneStatus.AVAILABLE, DroneStatus.IN_MISSION)


@dataclass
class Location:
    """Current position of a drone in decimal degrees (altitude in meters)."""

    latitude: float
    longitude: float
    altitude: float | None = None

    def to_document(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
        }

    @classmethod
    def from_document(cls, doc: dict | None) -> "Location | None":
        """Parse a location sub-document; missing coordinates yield None."""
        if not doc or doc.get("latitude") is None or doc.get("longitude") is None:
            return None
        return cls(
            latitude=float(doc["latitude"]),
            longitude=float(doc["longitude"]),
            altitude=doc.get("altitude"),
        )


@dataclass
class Telemetry:
    """Informational flight data regenerated on every tick.

    Telemetry is never read back by the simulation; it exists so that
    dashboards have something lively to chart.
    """

    altitude: float = 0.0
    speed: float = 0.0
    heading: float = 0.0
    temperature: float = 20.0
    timestamp: datetime = field(default_factory=utcnow)

    def to_document(self) -> dict:
        return {
            "altitude": self.altitude,
            "speed": self.speed,
            "heading": self.heading,
            "temperature": self.temperature,
            "lastUpdate": self.timestamp,
        }

    @classmethod
    def from_document(cls, doc: dict | None) -> "Telemetry | None":
        if not doc:
            return None
        return cls(
            altitude=float(doc.get("altitude", 0.0) or 0.0),
            speed=float(doc.get("speed", 0.0) or 0.0),
            heading=float(doc.get("heading", 0.0) or 0.0),
            temperature=float(doc.get("temperature", 20.0) or 20.0),
            timestamp=doc.get("lastUpdate") or utcnow(),
        )


@dataclass
class Drone:
    """A drone of the fleet.

    Attributes:
        id (str): Stable identifier (string form of the store id).
        serial_number (str): Manufacturer serial number, unique in the fleet.
        model (str): Model name; "heavy" models drain their battery faster.
        owner (str | None): Id of the owning user, used for per-owner channels.
        name (str): Human readable name.
        status (DroneStatus): Operational status.
        battery (float): Charge percentage, clamped to [0, 100].
        location (Location | None): Last known position.
        telemetry (Telemetry | None): Last generated telemetry.
        current_mission (str | None): Id of the mission the drone is assigned to.
    """

    id: str
    serial_number: str
    model: str
    owner: str | None = None
    name: str = ""
    status: DroneStatus = DroneStatus.AVAILABLE
    battery: float = 100.0
    location: Location | None = None
    telemetry: Telemetry | None = None
    current_mission: str | None = None

    def __post_init__(self):
        self.status = DroneStatus(self.status)
        self.battery = clamp_battery(self.battery)

    def copy(self) -> "Drone":
        """Deep enough copy: nested location and telemetry are duplicated too."""
        return replace(
            self,
            location=replace(self.location) if self.location else None,
            telemetry=replace(self.telemetry) if self.telemetry else None,
        )

    def to_document(self) -> dict:
        return {
            "_id": self.id,
            "serialNumber": self.serial_number,
            "model": self.model,
            "user": self.owner,
            "name": self.name,
            "status": self.status.value,
            "battery": self.battery,
            "location": self.location.to_document() if self.location else None,
            "telemetry": self.telemetry.to_document() if self.telemetry else None,
            "currentMission": self.current_mission,
        }

    def to_payload(self) -> dict:
        """JSON-safe representation used in published events."""
        doc = self.to_document()
        doc["id"] = doc.pop("_id")
        if doc["telemetry"] is not None:
            doc["telemetry"]["lastUpdate"] = isoformat(doc["telemetry"]["lastUpdate"])
        return doc

    @classmethod
    def from_document(cls, doc: dict) -> "Drone":
        """Build a Drone from a store document.

        Raises:
            KeyError: If the document has no id.
            ValueError: If the status is not a known ``DroneStatus`` value.
        """
        raw_id = doc["_id"] if "_id" in doc else doc["id"]
        mission = doc.get("currentMission")
        return cls(
            id=str(raw_id),
            serial_number=doc.get("serialNumber", ""),
            model=doc.get("model", ""),
            owner=str(doc["user"]) if doc.get("user") is not None else None,
            name=doc.get("name", ""),
            status=DroneStatus(doc.get("status", DroneStatus.AVAILABLE.value)),
            battery=float(doc.get("battery", 100.0)),
            location=Location.from_document(doc.get("location")),
            telemetry=Telemetry.from_document(doc.get("telemetry")),
            current_mission=str(mission) if mission is not None else None,
        )
