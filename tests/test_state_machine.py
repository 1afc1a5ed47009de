"""
Tests for the validated state machine and the flight phase graph.
"""

import unittest
from enum import Enum

from fleetsim.simulator import PHASE_GRAPH, FlightPhase
from fleetsim.state import Action, StateMachine


class Door(Enum):
    OPEN = "open"
    CLOSED = "closed"
    LOCKED = "locked"


class TestStateMachine(unittest.TestCase):
    """Test transition validation."""

    def setUp(self):
        self.log = []
        self.graph = {
            Door.OPEN: {Action(Door.CLOSED)},
            Door.CLOSED: {Action(Door.OPEN), Action(Door.LOCKED, lambda who: self.log.append(who))},
            Door.LOCKED: {Action(Door.CLOSED)},
        }
        self.sm = StateMachine(Door.OPEN, self.graph)

    def test_allowed_transition(self):
        """A transition in the graph changes the state."""
        self.sm.request_transition(Door.CLOSED)
        self.assertEqual(self.sm.current, Door.CLOSED)

    def test_illegal_transition(self):
        """A transition missing from the graph raises and keeps the state."""
        with self.assertRaises(ValueError):
            self.sm.request_transition(Door.LOCKED)
        self.assertEqual(self.sm.current, Door.OPEN)

    def test_effect_runs(self):
        """The action's effect receives the transition arguments."""
        self.sm.request_transition(Door.CLOSED)
        self.sm.request_transition(Door.LOCKED, "janitor")
        self.assertEqual(self.log, ["janitor"])

    def test_enter_same_state(self):
        """enter is a no-op when already in the requested state."""
        self.assertIsNone(self.sm.enter(Door.OPEN))
        self.assertEqual(self.sm.current, Door.OPEN)

    def test_allows_and_reset(self):
        """allows reflects the graph; reset bypasses it."""
        self.assertTrue(self.sm.allows(Door.CLOSED))
        self.assertFalse(self.sm.allows(Door.LOCKED))
        self.sm.reset(Door.LOCKED)
        self.assertEqual(self.sm.current, Door.LOCKED)


class TestFlightPhaseGraph(unittest.TestCase):
    """Test the per-drone flight phase graph."""

    def test_every_phase_can_pause(self):
        """A manual update may pause a drone in any phase."""
        for phase in FlightPhase:
            if phase is FlightPhase.PAUSED:
                continue
            sm = StateMachine(phase, PHASE_GRAPH)
            self.assertTrue(sm.allows(FlightPhase.PAUSED), phase)

    def test_arrived_collapses(self):
        """Arrival leads either back en route or to idle."""
        sm = StateMachine(FlightPhase.ARRIVED, PHASE_GRAPH)
        self.assertTrue(sm.allows(FlightPhase.EN_ROUTE))
        self.assertTrue(sm.allows(FlightPhase.IDLE))

    def test_no_self_loops(self):
        """Self transitions are handled by enter, not by the graph."""
        for phase, actions in PHASE_GRAPH.items():
            self.assertNotIn(phase, {a.state for a in actions})


if __name__ == '__main__':
    unittest.main()
