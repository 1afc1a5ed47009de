"""Per-drone simulation shadow state.

The store is the system of record. The engine keeps, for every tracked drone,
a non-authoritative copy of the persisted fields plus the simulation-only
fields the store never sees: the waypoint index, the waypoint being flown
to, whether the drone moved on the last tick, the distance flown on the
current mission and its flight phase.

Flight phases:
    IDLE: no active mission (or the mission just completed)
    EN_ROUTE: flying toward the target waypoint
    ARRIVED: reached a waypoint on this tick; becomes EN_ROUTE or IDLE next tick
    PAUSED: manual-override cooldown active
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
import threading

from fleetsim.models import Drone, Mission, Waypoint
from fleetsim.state import Action, StateMachine


class FlightPhase(Enum):
    IDLE = "idle"
    EN_ROUTE = "en-route"
    ARRIVED = "arrived"
    PAUSED = "paused"


PHASE_GRAPH = {
    FlightPhase.IDLE: {
        Action(FlightPhase.EN_ROUTE),
        Action(FlightPhase.ARRIVED),
        Action(FlightPhase.PAUSED),
    },
    FlightPhase.EN_ROUTE: {
        Action(FlightPhase.ARRIVED),
        Action(FlightPhase.IDLE),
        Action(FlightPhase.PAUSED),
    },
    FlightPhase.ARRIVED: {
        Action(FlightPhase.EN_ROUTE),
        Action(FlightPhase.IDLE),
        Action(FlightPhase.PAUSED),
    },
    FlightPhase.PAUSED: {
        Action(FlightPhase.IDLE),
        Action(FlightPhase.EN_ROUTE),
        Action(FlightPhase.ARRIVED),
    },
}


def _phase_machine() -> StateMachine:
    return StateMachine(FlightPhase.IDLE, PHASE_GRAPH)


@dataclass
class ShadowState:
    """Simulation view of one drone.

    Attributes:
        drone (Drone): Copy of the persisted drone fields.
        current_waypoint_index (int): Next waypoint of the active mission.
        target_waypoint (Waypoint | None): Waypoint flown to on the last tick.
        is_moving (bool): Whether the drone moved on the last tick.
        distance_covered (float): Meters flown on the current mission.
        mission (Mission | None): Last active mission read from the store.
        machine (StateMachine): Validated flight phase.
    """

    drone: Drone
    current_waypoint_index: int = 0
    target_waypoint: Waypoint | None = None
    is_moving: bool = False
    distance_covered: float = 0.0
    mission: Mission | None = None
    machine: StateMachine = field(default_factory=_phase_machine)

    @property
    def drone_id(self) -> str:
        return self.drone.id

    @property
    def phase(self) -> FlightPhase:
        return self.machine.current

    def enter(self, phase: FlightPhase) -> None:
        """Move to ``phase``; staying in the same phase is allowed."""
        self.machine.enter(phase)

    def reset_mission(self) -> None:
        """Forget mission progress after completion."""
        self.current_waypoint_index = 0
        self.target_waypoint = None
        self.is_moving = False
        self.distance_covered = 0.0
        self.mission = None


class ShadowStore:
    """Thread-safe map of drone id to ``ShadowState``.

    ``load`` and ``refresh`` replace the persisted part of a shadow while
    keeping its simulation-only fields, so a re-read from the store never
    rewinds mission progress.
    """

    def __init__(self):
        self._states: dict[str, ShadowState] = {}
        self._lock = threading.RLock()

    def load(self, drones: Iterable[Drone]) -> None:
        """Track ``drones``, carrying progress over for drones already tracked."""
        with self._lock:
            for drone in drones:
                if drone.id in self._states:
                    self._states[drone.id].drone = drone.copy()
                else:
                    self._states[drone.id] = ShadowState(drone=drone.copy())

    def refresh(self, drone: Drone) -> ShadowState | None:
        """Replace the persisted fields of a tracked drone.

        Returns:
            ShadowState | None: The refreshed shadow, None if not tracked.
        """
        with self._lock:
            shadow = self._states.get(drone.id)
            if shadow is None:
                return None
            shadow.drone = drone.copy()
            return shadow

    def get(self, drone_id: str) -> ShadowState | None:
        with self._lock:
            return self._states.get(drone_id)

    def put(self, shadow: ShadowState) -> None:
        with self._lock:
            self._states[shadow.drone_id] = shadow

    def discard(self, drone_id: str) -> None:
        with self._lock:
            self._states.pop(drone_id, None)

    def ids(self) -> list[str]:
        """Snapshot of tracked ids; safe to iterate while the map changes."""
        with self._lock:
            return list(self._states)

    def clear(self) -> None:
        with self._lock:
            self._states.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def __contains__(self, drone_id: object) -> bool:
        with self._lock:
            return drone_id in self._states

    def __iter__(self) -> Iterator[ShadowState]:
        with self._lock:
            return iter(list(self._states.values()))
