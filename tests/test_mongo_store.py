"""
Tests for the MongoDB fleet store against mocked pymongo collections.
"""

import unittest
from unittest import mock

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from fleetsim.config import StoreSettings
from fleetsim.models import Drone, DroneStatus, Mission, MissionStatus
from fleetsim.store import MongoFleetStore, StoreError, StoreUnavailableError

DRONE_ID = "64b7f0c2a1b2c3d4e5f60718"
OWNER_ID = "64b7f0c2a1b2c3d4e5f60719"


def drone_doc(**fields):
    doc = {
        "_id": ObjectId(DRONE_ID),
        "serialNumber": "SN-1",
        "model": "Quad",
        "user": ObjectId(OWNER_ID),
        "status": "available",
        "battery": 80.0,
    }
    doc.update(fields)
    return doc


class TestMongoFleetStore(unittest.TestCase):
    """Test MongoFleetStore queries and error translation."""

    def setUp(self):
        self.drones = mock.MagicMock(name="drones")
        self.missions = mock.MagicMock(name="missions")
        database = mock.MagicMock(name="database")
        database.__getitem__.side_effect = {"drones": self.drones, "missions": self.missions}.__getitem__
        self.store = MongoFleetStore(database)

    def test_only_fleet_collections_are_opened(self):
        """The store binds the drones and missions collections and nothing else."""
        database = mock.MagicMock(name="database")
        MongoFleetStore(database)
        opened = [c.args[0] for c in database.__getitem__.call_args_list]
        self.assertEqual(opened, ["drones", "missions"])
        self.assertEqual(set(vars(self.store)), {"_drones", "_missions"})

    def test_find_drones_by_status(self):
        """Statuses are queried by value."""
        self.drones.find.return_value = [drone_doc()]
        found = self.store.find_drones_by_status([DroneStatus.AVAILABLE, DroneStatus.IN_MISSION])
        self.drones.find.assert_called_once_with({"status": {"$in": ["available", "in-mission"]}})
        self.assertEqual(found[0].id, DRONE_ID)
        self.assertEqual(found[0].owner, OWNER_ID)

    def test_find_drone_converts_object_ids(self):
        """Hex ids are queried as ObjectId."""
        self.drones.find_one.return_value = drone_doc()
        drone = self.store.find_drone(DRONE_ID)
        self.drones.find_one.assert_called_once_with({"_id": ObjectId(DRONE_ID)})
        self.assertEqual(drone.serial_number, "SN-1")

    def test_find_drone_missing(self):
        """A missing drone is None."""
        self.drones.find_one.return_value = None
        self.assertIsNone(self.store.find_drone(DRONE_ID))

    def test_active_mission_matches_both_reference_forms(self):
        """Drone references stored as string or ObjectId both match."""
        self.missions.find_one.return_value = {
            "_id": ObjectId(),
            "drone": ObjectId(DRONE_ID),
            "status": "in-progress",
            "flightPath": [{"latitude": 1.0, "longitude": 2.0, "altitude": 50}],
        }
        mission = self.store.find_active_mission_for_drone(DRONE_ID)
        query = self.missions.find_one.call_args.args[0]
        self.assertEqual(query["status"], "in-progress")
        self.assertIn(DRONE_ID, query["drone"]["$in"])
        self.assertIn(ObjectId(DRONE_ID), query["drone"]["$in"])
        self.assertEqual(mission.drone_id, DRONE_ID)
        self.assertEqual(len(mission.flight_path), 1)

    def test_update_drone_returns_document_after_update(self):
        """Partial updates use $set and return the updated drone."""
        self.drones.find_one_and_update.return_value = drone_doc(battery=42.0)
        drone = self.store.update_drone(DRONE_ID, {"battery": 42.0})
        self.drones.find_one_and_update.assert_called_once_with(
            {"_id": ObjectId(DRONE_ID)},
            {"$set": {"battery": 42.0}},
            return_document=ReturnDocument.AFTER,
        )
        self.assertEqual(drone.battery, 42.0)

    def test_complete_mission(self):
        """Completion sets the status and a timestamp."""
        self.store.complete_mission(DRONE_ID)
        _, update = self.missions.update_one.call_args.args
        self.assertEqual(update["$set"]["status"], "completed")
        self.assertIn("completedAt", update["$set"])

    def test_set_drone_status(self):
        """Status writes store the enum value."""
        self.store.set_drone_status(DRONE_ID, DroneStatus.CHARGING)
        _, update = self.drones.update_one.call_args.args
        self.assertEqual(update, {"$set": {"status": "charging"}})

    def test_insert_drone(self):
        """Inserted drones get the generated ObjectId as id."""
        new_id = ObjectId()
        self.drones.insert_one.return_value = mock.Mock(inserted_id=new_id)
        drone = self.store.insert_drone(Drone(id="", serial_number="SN-2", model="Quad", owner=OWNER_ID))
        doc = self.drones.insert_one.call_args.args[0]
        self.assertNotIn("_id", doc)
        self.assertEqual(doc["user"], ObjectId(OWNER_ID))
        self.assertEqual(drone.id, str(new_id))

    def test_insert_mission(self):
        """Mission references are stored as ObjectId."""
        new_id = ObjectId()
        self.missions.insert_one.return_value = mock.Mock(inserted_id=new_id)
        mission = self.store.insert_mission(Mission(id="", owner=OWNER_ID, drone_id=DRONE_ID))
        doc = self.missions.insert_one.call_args.args[0]
        self.assertEqual(doc["drone"], ObjectId(DRONE_ID))
        self.assertEqual(mission.id, str(new_id))

    def test_latest_planned_mission(self):
        """The newest planned mission is found by descending id."""
        self.missions.find_one.return_value = None
        self.assertIsNone(self.store.find_latest_planned_mission(OWNER_ID))
        query = self.missions.find_one.call_args.args[0]
        self.assertEqual(query["status"], MissionStatus.PLANNED.value)
        self.assertEqual(self.missions.find_one.call_args.kwargs["sort"], [("_id", DESCENDING)])

    def test_unavailable_errors(self):
        """Server selection timeouts become StoreUnavailableError."""
        self.drones.find_one.side_effect = ServerSelectionTimeoutError("no servers")
        with self.assertRaises(StoreUnavailableError):
            self.store.find_drone(DRONE_ID)

    def test_other_driver_errors(self):
        """Other driver failures become a plain StoreError."""
        self.drones.update_one.side_effect = OperationFailure("denied")
        with self.assertRaises(StoreError) as ctx:
            self.store.set_drone_status(DRONE_ID, DroneStatus.AVAILABLE)
        self.assertNotIsInstance(ctx.exception, StoreUnavailableError)

    @mock.patch("fleetsim.store.mongo.MongoClient")
    def test_connect_bounds_every_call(self, client_cls):
        """connect passes the operation timeout to the client."""
        MongoFleetStore.connect(StoreSettings("mongodb://db:27017/", "fleet"), timeout=2.5)
        client_cls.assert_called_once_with("mongodb://db:27017/", timeoutMS=2500)
        client_cls.return_value.__getitem__.assert_called_once_with("fleet")


if __name__ == '__main__':
    unittest.main()
