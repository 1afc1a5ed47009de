"""Fleet data model: drones, missions and their documents.

The persistent store owns these records. Each model round-trips through the
camelCase document shape used by MongoDB and by dashboard events.

Exports:
    Drone, DroneStatus, Location, Telemetry, ACTIVE_DRONE_STATUSES
    Mission, MissionStatus, Waypoint
    utcnow: timezone-aware UTC clock used for timestamps
"""

from .drone import ACTIVE_DRONE_STATUSES, Drone, DroneStatus, Location, Telemetry, isoformat, utcnow
from .mission import Mission, MissionStatus, Waypoint

__all__ = [
    "ACTIVE_DRONE_STATUSES",
    "Drone",
    "DroneStatus",
    "Location",
    "Mission",
    "MissionStatus",
    "Telemetry",
    "Waypoint",
    "isoformat",
    "utcnow",
]
