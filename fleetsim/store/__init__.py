"""Persistence collaborators of the simulation engine.

Exports:
    FleetStore: Abstract contract the engine depends on
    StoreError: Base persistence failure
    StoreUnavailableError: Store unreachable or timed out
    InMemoryFleetStore: Dict-backed store for demos and tests
    MongoFleetStore: MongoDB-backed store
"""

from .base import FleetStore, StoreError, StoreUnavailableError
from .memory import InMemoryFleetStore
from .mongo import MongoFleetStore

__all__ = [
    "FleetStore",
    "InMemoryFleetStore",
    "MongoFleetStore",
    "StoreError",
    "StoreUnavailableError",
]
