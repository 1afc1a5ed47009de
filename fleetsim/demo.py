"""Demo mission seeding.

Creates a survey mission around Manhattan landmarks so the simulation has
something visible to fly. Every helper returns a result dict with ``success``
and ``message`` keys and never raises; store failures are reported in the
message. When a publisher is given, a planned or started mission is announced
with a ``missionUpdate`` event on the owner's channel once it is written.

Example:
    >>> store = InMemoryFleetStore()
    >>> seed_demo_fleet(store, "user-1")["success"]
    True
    >>> create_test_mission(store, "user-1")["message"]
    'Test mission "Manhattan Survey Demo" created with 7 waypoints'
    >>> start_test_mission(store, "user-1")["success"]
    True
"""

import logging

from fleetsim.events import EventKind, Publisher, owner_topic
from fleetsim.models import Drone, DroneStatus, Location, Mission, MissionStatus, Waypoint, utcnow
from fleetsim.store import FleetStore, StoreError

logger = logging.getLogger(__name__)

DEMO_MISSION_NAME = "Manhattan Survey Demo"
DEMO_ALTITUDE = 50.0

MANHATTAN_SURVEY = (
    Waypoint(40.785091, -73.968285, DEMO_ALTITUDE),  # Central Park
    Waypoint(40.758895, -73.985131, DEMO_ALTITUDE),  # Times Square
    Waypoint(40.706086, -73.996864, DEMO_ALTITUDE),  # Brooklyn Bridge
    Waypoint(40.689247, -74.044502, DEMO_ALTITUDE),  # Statue of Liberty
    Waypoint(40.729030, -74.005333, DEMO_ALTITUDE),  # Hudson River Park
    Waypoint(40.748817, -73.985428, DEMO_ALTITUDE),  # Empire State Building
    Waypoint(40.785091, -73.968285, DEMO_ALTITUDE),  # back to Central Park
)

ASSIGNABLE_STATUSES = (DroneStatus.AVAILABLE, DroneStatus.CHARGING)


def _announce(publisher: Publisher | None, owner: str, mission: Mission) -> None:
    if publisher is None:
        return
    topic = owner_topic(owner)
    try:
        publisher.publish(topic, EventKind.MISSION_UPDATE, mission.to_payload())
    except Exception:
        logger.exception("Publishing mission %s update on %s failed", mission.id, topic)


def seed_demo_fleet(store: FleetStore, owner: str, model: str = "Quad X4") -> dict:
    """Insert a demo drone for ``owner`` unless one is already assignable."""
    try:
        existing = store.find_drone_for_owner(owner, ASSIGNABLE_STATUSES)
        if existing is not None:
            return {"success": True, "message": f"Drone {existing.serial_number} already available", "drone": existing}

        first = MANHATTAN_SURVEY[0]
        drone = store.insert_drone(
            Drone(
                id="",
                serial_number=f"DEMO-{owner}",
                model=model,
                owner=owner,
                name="Demo drone",
                location=Location(first.latitude, first.longitude, first.altitude),
            )
        )
    except StoreError as exc:
        logger.error("Could not seed demo fleet: %s", exc)
        return {"success": False, "message": str(exc)}

    logger.info("Seeded demo drone %s for %s", drone.serial_number, owner)
    return {"success": True, "message": f"Drone {drone.serial_number} created", "drone": drone}


def create_test_mission(store: FleetStore, owner: str, publisher: Publisher | None = None) -> dict:
    """Plan the Manhattan survey for an available (or charging) drone of ``owner``.

    The drone is made available and placed on the first waypoint so the
    mission starts from its beginning.

    Returns:
        dict: ``success`` and ``message``, plus ``mission`` and ``drone`` on success.
    """
    try:
        drone = store.find_drone_for_owner(owner, ASSIGNABLE_STATUSES)
        if drone is None:
            return {"success": False, "message": "No available drone found. Please create a drone first."}

        mission = store.insert_mission(
            Mission(
                id="",
                owner=owner,
                drone_id=drone.id,
                name=DEMO_MISSION_NAME,
                description="Demo mission to show real-time coordinate tracking across Manhattan landmarks",
                status=MissionStatus.PLANNED,
                flight_path=list(MANHATTAN_SURVEY),
            )
        )

        first = MANHATTAN_SURVEY[0]
        drone = store.update_drone(
            drone.id,
            {
                "status": DroneStatus.AVAILABLE.value,
                "location": Location(first.latitude, first.longitude).to_document(),
            },
        ) or drone
    except StoreError as exc:
        logger.error("Error creating test mission: %s", exc)
        return {"success": False, "message": str(exc)}

    logger.info(
        "Test mission %s created for drone %s with %d waypoints",
        mission.id,
        drone.serial_number,
        len(mission.flight_path),
    )
    _announce(publisher, owner, mission)
    return {
        "success": True,
        "mission": mission,
        "drone": drone,
        "message": f'Test mission "{mission.name}" created with {len(mission.flight_path)} waypoints',
    }


def start_test_mission(store: FleetStore, owner: str, publisher: Publisher | None = None) -> dict:
    """Put the newest planned mission of ``owner`` in progress and its drone in mission."""
    try:
        mission = store.find_latest_planned_mission(owner)
        if mission is None:
            return {"success": False, "message": "No planned mission found to start"}

        updated = store.update_mission(
            mission.id,
            {"status": MissionStatus.IN_PROGRESS.value, "startTime": utcnow()},
        )
        if mission.drone_id is not None:
            store.update_drone(
                mission.drone_id,
                {"status": DroneStatus.IN_MISSION.value, "currentMission": mission.id},
            )
    except StoreError as exc:
        logger.error("Error starting test mission: %s", exc)
        return {"success": False, "message": str(exc)}

    logger.info("Test mission %s started", mission.id)
    _announce(publisher, owner, updated or mission)
    return {
        "success": True,
        "mission": updated or mission,
        "message": f'Mission "{mission.name}" started successfully',
    }
