"""Persistence contract consumed by the simulation engine.

The engine never talks to a database directly. It depends on the narrow
``FleetStore`` interface below, so tests substitute the in-memory store and a
deployment plugs in MongoDB. Every operation may raise ``StoreError``;
transport failures and timeouts raise the more specific
``StoreUnavailableError``.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from fleetsim.models import Drone, DroneStatus, Mission


class StoreError(Exception):
    """Base class for persistence failures."""


class StoreUnavailableError(StoreError):
    """The store could not be reached or did not answer in time."""


class FleetStore(ABC):
    """Abstract document store holding drones and missions."""

    @abstractmethod
    def find_drones_by_status(self, statuses: Iterable[DroneStatus]) -> list[Drone]:
        """Return every drone whose status is one of ``statuses``."""

    @abstractmethod
    def find_drone(self, drone_id: str) -> Drone | None:
        """Return the drone with ``drone_id``, or None if it does not exist."""

    @abstractmethod
    def find_active_mission_for_drone(self, drone_id: str) -> Mission | None:
        """Return the in-progress mission assigned to ``drone_id``, if any."""

    @abstractmethod
    def update_drone(self, drone_id: str, fields: dict) -> Drone | None:
        """Apply a partial update given as document fields.

        Returns:
            Drone | None: The drone after the update, None if it does not exist.
        """

    @abstractmethod
    def complete_mission(self, mission_id: str) -> None:
        """Mark the mission completed and stamp its completion time."""

    @abstractmethod
    def set_drone_status(self, drone_id: str, status: DroneStatus) -> None:
        """Overwrite the status of a drone."""

    @abstractmethod
    def update_mission(self, mission_id: str, fields: dict) -> Mission | None:
        """Apply a partial update given as document fields."""

    # Seeding helpers used by the demo mission

    @abstractmethod
    def insert_drone(self, drone: Drone) -> Drone:
        """Persist a new drone and return it with its assigned id."""

    @abstractmethod
    def insert_mission(self, mission: Mission) -> Mission:
        """Persist a new mission and return it with its assigned id."""

    @abstractmethod
    def find_drone_for_owner(
        self, owner: str, statuses: Iterable[DroneStatus]
    ) -> Drone | None:
        """Return one drone of ``owner`` whose status is one of ``statuses``."""

    @abstractmethod
    def find_latest_planned_mission(self, owner: str) -> Mission | None:
        """Return the most recently created planned mission of ``owner``."""
