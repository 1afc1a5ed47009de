"""Drone movement simulation with real-time event fan-out.

fleetsim fakes the flight of a drone fleet for a fleet/mission management
application. A fixed-interval engine advances every active drone along the
flight path of its in-progress mission, drains its battery, detects waypoint
arrival and mission completion, writes the result to a document store and
broadcasts every committed change to dashboard subscribers.

Framework Architecture:
    Leaf Utilities:
        • Geodesy (fleetsim.geo): great-circle distance, forward azimuth and the
          spherical direct problem on a mean-radius Earth
        • Energy (fleetsim.energy): idle and moving battery drain with an
          injectable random source and a per-tick cap
        • State (fleetsim.state): validated state transitions

    Collaborators:
        • Models (fleetsim.models): Drone and Mission records and their
          camelCase documents
        • Store (fleetsim.store): persistence contract with in-memory and
          MongoDB implementations
        • Events (fleetsim.events): publish contract with an in-process hub
          and an MQTT transport

    Simulation (fleetsim.simulator):
        • SimulationEngine: start/stop/status control surface and tick loop
        • ManualOverrideGate: cooldown protecting human edits from being
          overwritten by the next tick
        • ShadowStore: in-memory per-drone state (waypoint index, flight phase)

Usage Patterns:
    Running the engine against the in-memory store:
        >>> from fleetsim import EventHub, InMemoryFleetStore, SimulationEngine
        >>> from fleetsim.demo import create_test_mission, seed_demo_fleet, start_test_mission
        >>>
        >>> store = InMemoryFleetStore()
        >>> for step in (seed_demo_fleet, create_test_mission, start_test_mission):
        ...     _ = step(store, "user-1")
        >>>
        >>> hub = EventHub()
        >>> updates = hub.subscribe("user_user-1")
        >>> engine = SimulationEngine(store, hub)
        >>> engine.load_drones()
        1
        >>> engine.tick()  # one pass, without the timer thread
        >>> [event.kind.value for event in updates.drain()]
        ['droneUpdate', 'missionProgress']

    Notifying a manual edit from the CRUD layer:
        >>> drone_id = store.drones()[0].id
        >>> engine.notify_manual_update(drone_id)  # paused for pause_duration seconds

    Command line:
        $ python -m fleetsim --ticks 30 --interval 0.5

Configuration:
    Defaults live in ``fleetsim.config``; ``SimulationConfig.from_env`` reads
    ``FLEETSIM_*`` variables (a ``.env`` file is honored), ``StoreSettings``
    reads ``MONGO_URI``/``MONGO_DB_NAME`` and ``MqttSettings`` reads ``MQTT_*``.
"""

from fleetsim.config import SimulationConfig
from fleetsim.events import EventHub, EventKind, MqttPublisher
from fleetsim.simulator import SimulationEngine
from fleetsim.store import InMemoryFleetStore, MongoFleetStore

__all__ = [
    "EventHub",
    "EventKind",
    "InMemoryFleetStore",
    "MongoFleetStore",
    "MqttPublisher",
    "SimulationConfig",
    "SimulationEngine",
]
