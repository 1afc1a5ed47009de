"""Tick-driven drone movement simulation.

The engine owns the shadow state of every tracked drone. A background thread
calls ``tick`` once per ``tick_interval``; each tick advances every unpaused
drone toward the next waypoint of its in-progress mission, drains its battery,
detects waypoint arrival and mission completion, writes the result back to
the store and publishes the change.

Per-drone update, in order:
    1. Skip the drone while its manual-override cooldown is active. An expired
       pause is cleared by the check itself and the drone is processed in the
       same tick.
    2. No in-progress mission (or an empty flight path): idle drain only.
    3. Every waypoint reached: complete the mission, make the drone available
       again and reset its waypoint index.
    4. Within the arrival threshold of the target: advance the waypoint index
       and charge the fixed per-waypoint cost.
    5. Otherwise fly one step (never past the target) and apply moving drain.
    6. At or below the low-battery threshold the drone is forced to
       ``charging`` in the same write.

Store failures are logged and the drone keeps advancing in memory; the next
successful write supersedes the skipped one. Events are published only after
the write they describe has been committed.
"""

import logging
import threading
import time

import numpy as np

from fleetsim.config import SimulationConfig
from fleetsim.energy import BatteryModel, RandomSource, apply_drain
from fleetsim.events import GLOBAL_TOPIC, EventKind, Publisher, owner_topic
from fleetsim.geo import bearing, destination, distance, normalize_heading
from fleetsim.models import (
    ACTIVE_DRONE_STATUSES,
    DroneStatus,
    Location,
    Mission,
    MissionStatus,
    Telemetry,
    isoformat,
    utcnow,
)
from fleetsim.store import FleetStore, StoreError

from .pause_gate import Clock, ManualOverrideGate
from .shadow import FlightPhase, ShadowState, ShadowStore

logger = logging.getLogger(__name__)

SPEED_RANGE = (10.0, 25.0)  # m/s while moving
TEMPERATURE_RANGE = (20.0, 40.0)  # degrees Celsius
ALTITUDE_RANGE = (50.0, 150.0)  # meters, when the waypoint has none


class SimulationEngine:
    """Fixed-interval simulation of every active drone.

    The store and the publisher are injected so that several isolated engines
    can run side by side (one per test, for instance). The random source is
    shared by the battery model and the telemetry generator.

    Args:
        store (FleetStore): System of record for drones and missions.
        publisher (Publisher): Receives an event for every committed change.
        config (SimulationConfig): Timing, movement and drain parameters.
        rng (RandomSource): Uniform random source; ``numpy.random.default_rng()``
            when omitted.
        clock (Clock): Monotonic clock used by the manual-override gate.

    Example:
        >>> store = InMemoryFleetStore()
        >>> engine = SimulationEngine(store, EventHub())
        >>> engine.start()
        {'success': True, 'message': 'Simulation started with 0 drones'}
        >>> engine.stop()["success"]
        True
    """

    def __init__(
        self,
        store: FleetStore,
        publisher: Publisher,
        config: SimulationConfig | None = None,
        rng: RandomSource | None = None,
        clock: Clock = time.monotonic,
    ):
        self.config = config or SimulationConfig()
        self._store = store
        self._publisher = publisher
        self._rng = rng if rng is not None else np.random.default_rng()
        self.battery = BatteryModel(self.config, self._rng)

        self.shadows = ShadowStore()
        self.gate = ManualOverrideGate(self.config.pause_duration, clock)

        self.running = False
        self.tick_count = 0
        self._thread: threading.Thread | None = None
        self._shutdown = threading.Event()
        self._control_lock = threading.Lock()
        self._tick_lock = threading.Lock()

    # Control surface

    def start(self) -> dict:
        """Load the active drones and start the timer thread.

        Returns:
            dict: ``{"success": bool, "message": str}``. Starting a running
            engine is a soft failure.
        """
        with self._control_lock:
            if self.running:
                return {"success": False, "message": "Simulation is already running"}

            try:
                loaded = self.load_drones()
            except StoreError as exc:
                logger.error("Could not load drones: %s", exc)
                return {"success": False, "message": f"Could not load drones: {exc}"}

            self._shutdown = threading.Event()
            self._thread = threading.Thread(target=self._run, name="fleetsim-engine", daemon=True)
            self.running = True
            self._thread.start()

        logger.info(
            "Simulation started with %d drones, tick every %d ms",
            loaded,
            self.config.tick_interval_ms,
        )
        return {"success": True, "message": f"Simulation started with {loaded} drones"}

    def stop(self) -> dict:
        """Stop the timer and forget every shadow and pause entry.

        An in-flight tick is allowed to finish before this returns (unless
        ``stop`` is called from the tick itself).

        Returns:
            dict: ``{"success": True, "message": str}``; stopping never fails.
        """
        with self._control_lock:
            if not self.running:
                self.shadows.clear()
                self.gate.clear()
                return {"success": True, "message": "Simulation was not running"}

            self.running = False
            self._shutdown.set()
            thread, self._thread = self._thread, None

        if thread is not None and thread is not threading.current_thread():
            thread.join()

        self.shadows.clear()
        self.gate.clear()
        logger.info("Simulation stopped after %d ticks", self.tick_count)
        return {"success": True, "message": "Simulation stopped"}

    def load_drones(self) -> int:
        """Track every drone whose status is available or in-mission.

        Drones already tracked keep their waypoint index.

        Returns:
            int: Number of drones read from the store.

        Raises:
            StoreError: If the store cannot be read.
        """
        drones = self._store.find_drones_by_status(ACTIVE_DRONE_STATUSES)
        self.shadows.load(drones)
        return len(drones)

    def status(self) -> dict:
        return {
            "is_running": self.running,
            "tracked_drone_count": len(self.shadows),
            "paused_drone_count": self.gate.active_count(),
            "tick_interval_ms": self.config.tick_interval_ms,
            "timestamp": isoformat(utcnow()),
            "tick_count": self.tick_count,
        }

    def notify_manual_update(self, drone_id: str) -> None:
        """Pause a drone after an external edit and re-read its persisted fields.

        The shadow-only fields (waypoint index, movement flag, distance) are
        kept. Unknown drone ids are ignored.
        """
        shadow = self.shadows.get(drone_id)
        if shadow is None:
            logger.debug("Manual update of untracked drone %s ignored", drone_id)
            return

        self.gate.pause(drone_id)
        shadow.enter(FlightPhase.PAUSED)
        shadow.is_moving = False

        try:
            drone = self._store.find_drone(drone_id)
        except StoreError as exc:
            logger.warning("Could not refresh drone %s after manual update: %s", drone_id, exc)
            return
        if drone is None:
            logger.info("Drone %s no longer exists, dropping it from the simulation", drone_id)
            self.shadows.discard(drone_id)
            return
        self.shadows.refresh(drone)

    def snapshot(self) -> list[dict]:
        """Rows describing every tracked drone, for status displays."""
        rows = []
        for shadow in self.shadows:
            drone = shadow.drone
            rows.append(
                {
                    "id": drone.id,
                    "name": drone.name or drone.serial_number,
                    "status": drone.status.value,
                    "phase": shadow.phase.value,
                    "battery": drone.battery,
                    "latitude": drone.location.latitude if drone.location else None,
                    "longitude": drone.location.longitude if drone.location else None,
                    "waypoint": shadow.current_waypoint_index,
                    "paused": self.gate.is_active(drone.id),
                }
            )
        return rows

    # Tick loop

    def _run(self) -> None:
        while not self._shutdown.wait(self.config.tick_interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Simulation tick %d failed", self.tick_count)

    def tick(self) -> None:
        """Advance every tracked drone once.

        Drones are independent: a failure while updating one is logged and
        the remaining drones are still processed.
        """
        with self._tick_lock:
            self.tick_count += 1
            for drone_id in self.shadows.ids():
                try:
                    self._update_drone(drone_id)
                except Exception:
                    logger.exception("Updating drone %s failed", drone_id)

    def _update_drone(self, drone_id: str) -> None:
        shadow = self.shadows.get(drone_id)
        if shadow is None:
            return
        if self.gate.is_paused(drone_id):
            return

        mission = self._active_mission(shadow)
        if mission is None or not mission.flight_path:
            self._idle(shadow)
            return

        if shadow.current_waypoint_index >= len(mission.flight_path):
            self._complete(shadow, mission)
            return

        drone = shadow.drone
        if drone.location is None:
            first = mission.flight_path[0]
            drone.location = Location(first.latitude, first.longitude, first.altitude)

        target = mission.flight_path[shadow.current_waypoint_index]
        shadow.target_waypoint = target
        remaining = distance(drone.location, target)

        if remaining < self.config.arrival_threshold:
            self._arrive(shadow, mission)
        else:
            self._move(shadow, remaining)

    def _active_mission(self, shadow: ShadowState) -> Mission | None:
        try:
            mission = self._store.find_active_mission_for_drone(shadow.drone_id)
        except StoreError as exc:
            logger.warning("Mission lookup for drone %s failed, using cached mission: %s", shadow.drone_id, exc)
            return shadow.mission

        if mission is not None and (shadow.mission is None or shadow.mission.id != mission.id):
            logger.info("Drone %s picked up mission %s", shadow.drone_id, mission.id)
            shadow.reset_mission()
        shadow.mission = mission
        return mission

    def _idle(self, shadow: ShadowState) -> None:
        shadow.enter(FlightPhase.IDLE)
        shadow.is_moving = False
        shadow.target_waypoint = None
        shadow.drone.battery = apply_drain(shadow.drone.battery, self.battery.idle_drain())
        self._persist_drone(shadow)

    def _complete(self, shadow: ShadowState, mission: Mission) -> None:
        drone = shadow.drone
        try:
            self._store.complete_mission(mission.id)
        except StoreError as exc:
            # index is left alone so completion is retried next tick
            logger.warning("Could not complete mission %s: %s", mission.id, exc)
            return

        completed = mission.copy()
        completed.status = MissionStatus.COMPLETED
        completed.completed_at = utcnow()
        completed.current_waypoint = len(mission.flight_path)
        completed.progress = 100.0
        completed.distance_covered = shadow.distance_covered
        logger.info("Drone %s completed mission %s", drone.id, mission.id)
        self._publish(mission.owner or drone.owner, EventKind.MISSION_COMPLETED, completed.to_payload())

        drone.status = DroneStatus.AVAILABLE
        shadow.reset_mission()
        shadow.enter(FlightPhase.IDLE)

        try:
            self._store.set_drone_status(drone.id, DroneStatus.AVAILABLE)
        except StoreError as exc:
            logger.warning("Could not release drone %s: %s", drone.id, exc)
            return
        self._publish(drone.owner, EventKind.DRONE_UPDATE, drone.to_payload())

    def _arrive(self, shadow: ShadowState, mission: Mission) -> None:
        drone = shadow.drone
        shadow.enter(FlightPhase.ARRIVED)
        shadow.is_moving = False
        shadow.current_waypoint_index += 1
        drone.battery = apply_drain(drone.battery, self.battery.waypoint_cost)
        logger.debug(
            "Drone %s reached waypoint %d/%d of mission %s",
            drone.id,
            shadow.current_waypoint_index,
            len(mission.flight_path),
            mission.id,
        )

        self._persist_drone(shadow)

        fields = {
            "progress": mission.progress_for(shadow.current_waypoint_index),
            "currentWaypoint": shadow.current_waypoint_index,
            "distanceCovered": shadow.distance_covered,
        }
        try:
            updated = self._store.update_mission(mission.id, fields)
        except StoreError as exc:
            logger.warning("Could not record progress of mission %s: %s", mission.id, exc)
            return
        if updated is not None:
            shadow.mission = updated
            self._publish(updated.owner or drone.owner, EventKind.MISSION_PROGRESS, updated.to_payload())

    def _move(self, shadow: ShadowState, remaining: float) -> None:
        drone = shadow.drone
        target = shadow.target_waypoint
        step = min(self.config.step_distance, remaining)
        azimuth = bearing(drone.location, target)
        latitude, longitude = destination(drone.location, azimuth, step)
        drone.location = Location(latitude, longitude, target.altitude)

        shadow.enter(FlightPhase.EN_ROUTE)
        shadow.is_moving = True
        shadow.distance_covered += step

        profile = self.battery.profile_for(drone.model)
        drone.battery = apply_drain(drone.battery, self.battery.moving_drain(profile, step))
        self._persist_drone(shadow, heading=normalize_heading(azimuth))

    def _persist_drone(self, shadow: ShadowState, heading: float | None = None) -> bool:
        """Write battery, status, location and telemetry; publish on success."""
        drone = shadow.drone
        if drone.battery <= self.config.low_battery_threshold and drone.status is not DroneStatus.CHARGING:
            logger.warning("Drone %s battery at %.1f%%, forcing charging", drone.id, drone.battery)
            drone.status = DroneStatus.CHARGING

        drone.telemetry = self._telemetry(shadow, heading)
        fields = {
            "battery": drone.battery,
            "status": drone.status.value,
            "location": drone.location.to_document() if drone.location else None,
            "telemetry": drone.telemetry.to_document(),
        }
        try:
            updated = self._store.update_drone(drone.id, fields)
        except StoreError as exc:
            logger.warning("Could not persist drone %s: %s", drone.id, exc)
            return False
        if updated is None:
            logger.warning("Drone %s disappeared from the store", drone.id)
            return False

        self._publish(drone.owner, EventKind.DRONE_UPDATE, updated.to_payload())
        return True

    def _telemetry(self, shadow: ShadowState, heading: float | None) -> Telemetry:
        previous = shadow.drone.telemetry
        if heading is None:
            heading = previous.heading if previous else 0.0

        location = shadow.drone.location
        if location is not None and location.altitude is not None:
            altitude = float(location.altitude)
        else:
            altitude = float(self._rng.uniform(*ALTITUDE_RANGE))

        speed = float(self._rng.uniform(*SPEED_RANGE)) if shadow.is_moving else 0.0
        return Telemetry(
            altitude=altitude,
            speed=speed,
            heading=heading,
            temperature=float(self._rng.uniform(*TEMPERATURE_RANGE)),
        )

    def _publish(self, owner: str | None, kind: EventKind, payload: dict) -> None:
        topic = owner_topic(owner) if self.config.per_owner_channels else GLOBAL_TOPIC
        try:
            self._publisher.publish(topic, kind, payload)
        except Exception:
            logger.exception("Publishing %s on %s failed", kind.value, topic)
