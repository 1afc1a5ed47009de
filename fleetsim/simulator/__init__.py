"""Drone movement simulation.

Exports:
    SimulationEngine: Tick-driven engine with start/stop/status control
    ManualOverrideGate: Per-drone cooldown after external edits
    ShadowState, ShadowStore: In-memory view of the tracked drones
    FlightPhase, PHASE_GRAPH: Per-drone flight phase machine
"""

from .engine import SimulationEngine
from .pause_gate import ManualOverrideGate
from .shadow import PHASE_GRAPH, FlightPhase, ShadowState, ShadowStore

__all__ = [
    "PHASE_GRAPH",
    "FlightPhase",
    "ManualOverrideGate",
    "ShadowState",
    "ShadowStore",
    "SimulationEngine",
]
