"""
Tests for the in-memory fleet store.
"""

import unittest

from fleetsim.models import Drone, DroneStatus, Location, Mission, MissionStatus, Waypoint
from fleetsim.store import InMemoryFleetStore, StoreError, StoreUnavailableError


class TestInMemoryFleetStore(unittest.TestCase):
    """Test InMemoryFleetStore."""

    def setUp(self):
        self.store = InMemoryFleetStore()
        self.drone = self.store.insert_drone(
            Drone(id="", serial_number="SN-1", model="Quad", owner="u1", location=Location(1.0, 2.0))
        )
        self.mission = self.store.insert_mission(
            Mission(
                id="",
                owner="u1",
                drone_id=self.drone.id,
                status=MissionStatus.IN_PROGRESS,
                flight_path=[Waypoint(1.0, 2.0), Waypoint(1.1, 2.0)],
            )
        )

    def test_generated_ids(self):
        """Records without an id get one."""
        self.assertTrue(self.drone.id.startswith("drone-"))
        self.assertTrue(self.mission.id.startswith("mission-"))

    def test_find_drones_by_status(self):
        """Only drones with a matching status are returned."""
        self.store.insert_drone(Drone(id="", serial_number="SN-2", model="Quad", status=DroneStatus.MAINTENANCE))
        found = self.store.find_drones_by_status([DroneStatus.AVAILABLE, DroneStatus.IN_MISSION])
        self.assertEqual([d.serial_number for d in found], ["SN-1"])

    def test_returned_records_are_copies(self):
        """Mutating a returned drone does not change the stored one."""
        drone = self.store.find_drone(self.drone.id)
        drone.battery = 1.0
        drone.location.latitude = 50.0
        stored = self.store.find_drone(self.drone.id)
        self.assertEqual(stored.battery, 100.0)
        self.assertEqual(stored.location.latitude, 1.0)

    def test_active_mission(self):
        """Only in-progress missions count as active."""
        self.assertEqual(self.store.find_active_mission_for_drone(self.drone.id).id, self.mission.id)
        self.store.complete_mission(self.mission.id)
        self.assertIsNone(self.store.find_active_mission_for_drone(self.drone.id))

    def test_complete_mission(self):
        """Completion stamps the completion time."""
        self.store.complete_mission(self.mission.id)
        mission = self.store.get_mission(self.mission.id)
        self.assertIs(mission.status, MissionStatus.COMPLETED)
        self.assertIsNotNone(mission.completed_at)

    def test_update_drone(self):
        """Partial updates use document field names."""
        updated = self.store.update_drone(
            self.drone.id,
            {"battery": 42.0, "status": "charging", "location": {"latitude": 3.0, "longitude": 4.0}},
        )
        self.assertEqual(updated.battery, 42.0)
        self.assertIs(updated.status, DroneStatus.CHARGING)
        self.assertEqual(updated.location, Location(3.0, 4.0))
        self.assertEqual(updated.serial_number, "SN-1")

    def test_update_unknown_field(self):
        """Unknown document fields are rejected."""
        with self.assertRaises(ValueError):
            self.store.update_drone(self.drone.id, {"colour": "red"})

    def test_update_missing_drone(self):
        """Updating a drone that does not exist returns None."""
        self.assertIsNone(self.store.update_drone("nope", {"battery": 1.0}))
        self.assertIsNone(self.store.update_mission("nope", {"progress": 1.0}))

    def test_set_drone_status(self):
        """Status can be overwritten directly."""
        self.store.set_drone_status(self.drone.id, DroneStatus.AVAILABLE)
        self.store.set_drone_status(self.drone.id, DroneStatus.OFFLINE)
        self.assertIs(self.store.find_drone(self.drone.id).status, DroneStatus.OFFLINE)

    def test_update_mission(self):
        """Mission progress fields are written."""
        updated = self.store.update_mission(
            self.mission.id, {"progress": 50.0, "currentWaypoint": 1, "distanceCovered": 120.0}
        )
        self.assertEqual(updated.progress, 50.0)
        self.assertEqual(updated.current_waypoint, 1)
        self.assertEqual(updated.distance_covered, 120.0)

    def test_owner_queries(self):
        """Owner lookups respect status filters and creation order."""
        self.assertEqual(
            self.store.find_drone_for_owner("u1", [DroneStatus.AVAILABLE]).id, self.drone.id
        )
        self.assertIsNone(self.store.find_drone_for_owner("u1", [DroneStatus.CHARGING]))

        first = self.store.insert_mission(Mission(id="", owner="u1", name="first"))
        second = self.store.insert_mission(Mission(id="", owner="u1", name="second"))
        self.assertEqual(self.store.find_latest_planned_mission("u1").id, second.id)
        self.assertNotEqual(first.id, second.id)
        self.assertIsNone(self.store.find_latest_planned_mission("u2"))

    def test_unavailable(self):
        """A switched-off store raises StoreUnavailableError."""
        self.store.available = False
        with self.assertRaises(StoreUnavailableError):
            self.store.find_drone(self.drone.id)

    def test_fail_next(self):
        """fail_next fails exactly the next n calls."""
        self.store.fail_next(2)
        for _ in range(2):
            with self.assertRaises(StoreError):
                self.store.find_drone(self.drone.id)
        self.assertIsNotNone(self.store.find_drone(self.drone.id))
        self.assertEqual(self.store.calls[-3:], ["find_drone"] * 3)


if __name__ == '__main__':
    unittest.main()
