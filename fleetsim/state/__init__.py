"""State management for the fleet simulation.

Exports:
    StateMachine: Finite state machine with transition validation
    State: Type variable for state enumerations
    Action: Permitted transition with an optional effect
    StateGraph: Type alias for transition graph definitions
    ActionFn: Type alias for transition effects
"""

from .state_machine import Action, ActionFn, State, StateGraph, StateMachine

__all__ = ["StateMachine", "State", "Action", "StateGraph", "ActionFn"]
