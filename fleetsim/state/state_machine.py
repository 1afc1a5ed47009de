"""Validated finite state machine.

Used by the simulation engine to track each drone's flight phase. A transition
graph maps every state to the set of ``Action``s allowed from it; requesting
any other transition raises ``ValueError``, which surfaces engine bugs instead
of letting a drone silently end up in an impossible phase.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

State = TypeVar("State", bound=Enum)
"""Type variable for state enumerations."""

ActionFn = Callable[..., Any]
"""Effect executed when a transition fires."""

StateGraph = dict[Enum, set["Action"]]


@dataclass(frozen=True)
class Action:
    """A permitted transition into ``state`` with an optional side effect.

    Attributes:
        state: Target state of the transition.
        effect: Callable run after the state changed, or None.
    """

    state: Enum
    effect: ActionFn | None = None

    def __call__(self, *args, **kwargs) -> Any:
        if self.effect:
            return self.effect(*args, **kwargs)
        return None


class StateMachine:
    """Finite state machine that validates every transition against a graph.

    Attributes:
        _state: Current state.
        _allowed: Transition graph, state -> allowed actions.

    Example:
        >>> class Light(Enum):
        ...     OFF = "off"
        ...     ON = "on"
        >>> graph = {Light.OFF: {Action(Light.ON)}, Light.ON: {Action(Light.OFF)}}
        >>> sm = StateMachine(Light.OFF, graph)
        >>> sm.request_transition(Light.ON)
        >>> sm.current
        <Light.ON: 'on'>
    """

    _allowed: StateGraph
    _state: Enum

    def __init__(self, initial_state: Enum, nodes_graph: StateGraph):
        self._state = initial_state
        self._allowed = nodes_graph

    @property
    def current(self) -> Enum:
        """The current state."""
        return self._state

    def allows(self, next_state: Enum) -> bool:
        """Whether ``next_state`` is reachable from the current state in one step."""
        return any(a.state == next_state for a in self._allowed.get(self._state, set()))

    def request_transition(self, next_state: Enum, *args, **kwargs) -> Any:
        """Move to ``next_state`` and run the transition's effect.

        Returns:
            The effect's result, or None when the action has no effect.

        Raises:
            ValueError: If the graph does not allow the transition.
        """
        action = self._validate_transition(self._state, next_state)
        self._state = action.state
        return action(*args, **kwargs)

    def enter(self, next_state: Enum, *args, **kwargs) -> Any:
        """Like ``request_transition`` but a no-op when already in ``next_state``."""
        if self._state == next_state:
            return None
        return self.request_transition(next_state, *args, **kwargs)

    def reset(self, state: Enum) -> None:
        """Force the machine into ``state`` without validation or effects."""
        self._state = state

    def _validate_transition(self, frm: Enum, to: Enum) -> Action:
        for action in self._allowed.get(frm, set()):
            if action.state == to:
                return action

        msg = f"Illegal transition {frm.name} -> {to.name}"
        raise ValueError(msg)
