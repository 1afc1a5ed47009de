"""In-memory implementation of the fleet store.

Backs the demo runner and the test-suite. Records are kept as model objects
and copied on the way in and out, so callers can never mutate stored state
behind the store's back (which is what a real database would guarantee).

Outages can be simulated with ``available = False`` or ``fail_next(n)``:
every operation then raises ``StoreUnavailableError`` like a store that timed
out.
"""

from collections.abc import Iterable
from dataclasses import replace
from itertools import count
import threading

from fleetsim.models import Drone, DroneStatus, Mission, MissionStatus, utcnow

from .base import FleetStore, StoreUnavailableError

_DRONE_FIELDS = frozenset(
    {
        "serialNumber",
        "model",
        "user",
        "name",
        "status",
        "battery",
        "location",
        "telemetry",
        "currentMission",
    }
)

_MISSION_FIELDS = frozenset(
    {
        "user",
        "drone",
        "name",
        "description",
        "status",
        "flightPath",
        "progress",
        "currentWaypoint",
        "distanceCovered",
        "startTime",
        "completedAt",
    }
)


class InMemoryFleetStore(FleetStore):
    """Thread-safe dict-backed ``FleetStore``.

    Attributes:
        available (bool): When False every call fails with ``StoreUnavailableError``.
        calls (list[str]): Names of the operations invoked, in order.

    Example:
        >>> store = InMemoryFleetStore()
        >>> drone = store.insert_drone(Drone(id="", serial_number="SN-1", model="Quad"))
        >>> store.find_drone(drone.id).serial_number
        'SN-1'
    """

    def __init__(self):
        self._drones: dict[str, Drone] = {}
        self._missions: dict[str, Mission] = {}
        self._created: dict[str, int] = {}
        self._ids = count(1)
        self._lock = threading.RLock()
        self._failures = 0
        self.available = True
        self.calls: list[str] = []

    def fail_next(self, n: int = 1) -> None:
        """Make the next ``n`` operations raise ``StoreUnavailableError``."""
        with self._lock:
            self._failures = n

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if not self.available:
            msg = f"{operation}: store unavailable"
            raise StoreUnavailableError(msg)
        if self._failures > 0:
            self._failures -= 1
            msg = f"{operation}: store timed out"
            raise StoreUnavailableError(msg)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    # Engine contract

    def find_drones_by_status(self, statuses: Iterable[DroneStatus]) -> list[Drone]:
        wanted = set(statuses)
        with self._lock:
            self._enter("find_drones_by_status")
            return [d.copy() for d in self._drones.values() if d.status in wanted]

    def find_drone(self, drone_id: str) -> Drone | None:
        with self._lock:
            self._enter("find_drone")
            drone = self._drones.get(drone_id)
            return drone.copy() if drone else None

    def find_active_mission_for_drone(self, drone_id: str) -> Mission | None:
        with self._lock:
            self._enter("find_active_mission_for_drone")
            for mission in self._missions.values():
                if mission.drone_id == drone_id and mission.status is MissionStatus.IN_PROGRESS:
                    return mission.copy()
            return None

    def update_drone(self, drone_id: str, fields: dict) -> Drone | None:
        with self._lock:
            self._enter("update_drone")
            drone = self._drones.get(drone_id)
            if drone is None:
                return None
            updated = Drone.from_document({**drone.to_document(), **_known(fields, _DRONE_FIELDS)})
            self._drones[drone_id] = updated
            return updated.copy()

    def complete_mission(self, mission_id: str) -> None:
        with self._lock:
            self._enter("complete_mission")
            mission = self._missions.get(mission_id)
            if mission is not None:
                self._missions[mission_id] = replace(
                    mission, status=MissionStatus.COMPLETED, completed_at=utcnow()
                )

    def set_drone_status(self, drone_id: str, status: DroneStatus) -> None:
        with self._lock:
            self._enter("set_drone_status")
            drone = self._drones.get(drone_id)
            if drone is not None:
                self._drones[drone_id] = replace(drone.copy(), status=DroneStatus(status))

    def update_mission(self, mission_id: str, fields: dict) -> Mission | None:
        with self._lock:
            self._enter("update_mission")
            mission = self._missions.get(mission_id)
            if mission is None:
                return None
            updated = Mission.from_document(
                {**mission.to_document(), **_known(fields, _MISSION_FIELDS)}
            )
            self._missions[mission_id] = updated
            return updated.copy()

    # Seeding helpers

    def insert_drone(self, drone: Drone) -> Drone:
        with self._lock:
            self._enter("insert_drone")
            stored = replace(drone.copy(), id=drone.id or self._next_id("drone-"))
            self._drones[stored.id] = stored
            return stored.copy()

    def insert_mission(self, mission: Mission) -> Mission:
        with self._lock:
            self._enter("insert_mission")
            stored = replace(mission.copy(), id=mission.id or self._next_id("mission-"))
            self._missions[stored.id] = stored
            self._created[stored.id] = next(self._ids)
            return stored.copy()

    def find_drone_for_owner(
        self, owner: str, statuses: Iterable[DroneStatus]
    ) -> Drone | None:
        wanted = set(statuses)
        with self._lock:
            self._enter("find_drone_for_owner")
            for drone in self._drones.values():
                if drone.owner == owner and drone.status in wanted:
                    return drone.copy()
            return None

    def find_latest_planned_mission(self, owner: str) -> Mission | None:
        with self._lock:
            self._enter("find_latest_planned_mission")
            planned = [
                m
                for m in self._missions.values()
                if m.owner == owner and m.status is MissionStatus.PLANNED
            ]
            if not planned:
                return None
            return max(planned, key=lambda m: self._created[m.id]).copy()

    # Inspection helpers for tests and the demo runner

    def get_mission(self, mission_id: str) -> Mission | None:
        with self._lock:
            mission = self._missions.get(mission_id)
            return mission.copy() if mission else None

    def drones(self) -> list[Drone]:
        with self._lock:
            return [d.copy() for d in self._drones.values()]

    def missions(self) -> list[Mission]:
        with self._lock:
            return [m.copy() for m in self._missions.values()]


def _known(fields: dict, allowed: frozenset[str]) -> dict:
    """Reject partial updates naming fields the document does not have."""
    unknown = set(fields) - allowed
    if unknown:
        msg = f"Unknown document fields: {sorted(unknown)}"
        raise ValueError(msg)
    return dict(fields)
