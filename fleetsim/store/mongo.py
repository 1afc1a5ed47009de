"""MongoDB implementation of the fleet store.

Drones and missions live in the ``drones`` and ``missions`` collections using
the camelCase document shape of ``fleetsim.models``. References between
documents (``user``, ``drone``) may be stored either as ``ObjectId`` or as
plain strings; queries match both.

Every call is bounded by the client-side ``timeoutMS`` so a slow or absent
server can never block the simulation tick loop indefinitely. Driver errors
are translated into the store exceptions the engine understands.
"""

from collections.abc import Callable, Iterable
from dataclasses import replace
import functools
import logging

from bson import ObjectId
from pymongo import DESCENDING, MongoClient, ReturnDocument
from pymongo.errors import (
    AutoReconnect,
    ConnectionFailure,
    ExecutionTimeout,
    NetworkTimeout,
    PyMongoError,
    ServerSelectionTimeoutError,
)

from fleetsim.config import DEFAULT_STORE_TIMEOUT, StoreSettings
from fleetsim.models import Drone, DroneStatus, Mission, MissionStatus, utcnow

from .base import FleetStore, StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)

_UNAVAILABLE_ERRORS = (
    AutoReconnect,
    ConnectionFailure,
    ExecutionTimeout,
    NetworkTimeout,
    ServerSelectionTimeoutError,
)


def _translate_errors(fn: Callable) -> Callable:
    """Re-raise driver exceptions as ``StoreError`` subclasses."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except _UNAVAILABLE_ERRORS as exc:
            msg = f"{fn.__name__}: {exc}"
            raise StoreUnavailableError(msg) from exc
        except PyMongoError as exc:
            msg = f"{fn.__name__}: {exc}"
            raise StoreError(msg) from exc

    return wrapper


def _oid(value: str | None):
    """Convert a hex id string into an ``ObjectId`` when it is one."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def _ref_filter(value: str) -> dict:
    """Match a reference stored either as ``ObjectId`` or as its string form."""
    candidates = {value}
    oid = _oid(value)
    if oid is not value:
        candidates.add(oid)
    return {"$in": list(candidates)}


class MongoFleetStore(FleetStore):
    """``FleetStore`` backed by a MongoDB database.

    Args:
        database: A pymongo ``Database``. Use ``MongoFleetStore.connect`` to
            build one from a URI.

    Example:
        >>> store = MongoFleetStore.connect(StoreSettings(uri="mongodb://localhost:27017/"))
        >>> drones = store.find_drones_by_status([DroneStatus.AVAILABLE])
    """

    def __init__(self, database):
        self._drones = database["drones"]
        self._missions = database["missions"]

    @classmethod
    def connect(
        cls, settings: StoreSettings | None = None, timeout: float = DEFAULT_STORE_TIMEOUT
    ) -> "MongoFleetStore":
        """Open a client with every operation bounded by ``timeout`` seconds."""
        settings = settings or StoreSettings.from_env()
        client = MongoClient(settings.uri, timeoutMS=int(timeout * 1000))
        logger.info("Connected to MongoDB database %s", settings.database)
        return cls(client[settings.database])

    @_translate_errors
    def find_drones_by_status(self, statuses: Iterable[DroneStatus]) -> list[Drone]:
        values = [DroneStatus(s).value for s in statuses]
        return [Drone.from_document(d) for d in self._drones.find({"status": {"$in": values}})]

    @_translate_errors
    def find_drone(self, drone_id: str) -> Drone | None:
        doc = self._drones.find_one({"_id": _oid(drone_id)})
        return Drone.from_document(doc) if doc else None

    @_translate_errors
    def find_active_mission_for_drone(self, drone_id: str) -> Mission | None:
        doc = self._missions.find_one(
            {"drone": _ref_filter(drone_id), "status": MissionStatus.IN_PROGRESS.value}
        )
        return Mission.from_document(doc) if doc else None

    @_translate_errors
    def update_drone(self, drone_id: str, fields: dict) -> Drone | None:
        doc = self._drones.find_one_and_update(
            {"_id": _oid(drone_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        return Drone.from_document(doc) if doc else None

    @_translate_errors
    def complete_mission(self, mission_id: str) -> None:
        self._missions.update_one(
            {"_id": _oid(mission_id)},
            {"$set": {"status": MissionStatus.COMPLETED.value, "completedAt": utcnow()}},
        )

    @_translate_errors
    def set_drone_status(self, drone_id: str, status: DroneStatus) -> None:
        self._drones.update_one(
            {"_id": _oid(drone_id)}, {"$set": {"status": DroneStatus(status).value}}
        )

    @_translate_errors
    def update_mission(self, mission_id: str, fields: dict) -> Mission | None:
        doc = self._missions.find_one_and_update(
            {"_id": _oid(mission_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        return Mission.from_document(doc) if doc else None

    @_translate_errors
    def insert_drone(self, drone: Drone) -> Drone:
        doc = drone.to_document()
        if not doc["_id"]:
            del doc["_id"]
        doc["user"] = _oid(doc["user"])
        result = self._drones.insert_one(doc)
        return replace(drone.copy(), id=str(result.inserted_id))

    @_translate_errors
    def insert_mission(self, mission: Mission) -> Mission:
        doc = mission.to_document()
        if not doc["_id"]:
            del doc["_id"]
        doc["user"] = _oid(doc["user"])
        doc["drone"] = _oid(doc["drone"])
        result = self._missions.insert_one(doc)
        return replace(mission.copy(), id=str(result.inserted_id))

    @_translate_errors
    def find_drone_for_owner(
        self, owner: str, statuses: Iterable[DroneStatus]
    ) -> Drone | None:
        values = [DroneStatus(s).value for s in statuses]
        doc = self._drones.find_one({"user": _ref_filter(owner), "status": {"$in": values}})
        return Drone.from_document(doc) if doc else None

    @_translate_errors
    def find_latest_planned_mission(self, owner: str) -> Mission | None:
        doc = self._missions.find_one(
            {"user": _ref_filter(owner), "status": MissionStatus.PLANNED.value},
            sort=[("_id", DESCENDING)],
        )
        return Mission.from_document(doc) if doc else None
