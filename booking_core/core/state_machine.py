"""
State Machine Definitions
=========================

Declarative state graphs for records whose status moves through a fixed
set of edges (appointments today).

A machine here does not hold a "current state": records keep their own
status, and the machine answers whether a given edge exists and whether
its guards accept a given context. This keeps the graph shareable across
threads and lets stores perform the actual write as a compare-and-swap.

Features:
- Initial and final (terminal) states
- Guard conditions per transition
- Structured logging of every evaluation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Set,
)

import structlog


# =============================================================================
# TYPE DEFINITIONS
# =============================================================================

Guard = Callable[["TransitionContext"], bool]


class TransitionOutcome(str, Enum):
    """Why a transition was accepted or refused."""

    ALLOWED = "allowed"
    UNKNOWN_STATE = "unknown_state"
    NO_SUCH_EDGE = "no_such_edge"
    GUARD_REJECTED = "guard_rejected"


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class TransitionContext:
    """Data guards inspect when deciding whether an edge may be taken."""

    from_state: str
    to_state: str
    variables: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.variables.get(key, default)


@dataclass
class TransitionResult:
    """Result of evaluating a transition."""

    outcome: TransitionOutcome
    from_state: str
    to_state: str
    failed_guard: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome == TransitionOutcome.ALLOWED


# =============================================================================
# STATE / TRANSITION DEFINITIONS
# =============================================================================


class State:
    """A named state; final states have no outgoing edges."""

    def __init__(
        self,
        name: str,
        is_initial: bool = False,
        is_final: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.name = name
        self.is_initial = is_initial
        self.is_final = is_final
        self.metadata = metadata or {}
        self.transitions: Dict[str, "Transition"] = {}

    def add_transition(self, transition: "Transition") -> "State":
        if self.is_final:
            raise ValueError(f"Final state '{self.name}' cannot have outgoing transitions")
        self.transitions[transition.target] = transition
        return self

    def __repr__(self) -> str:
        return f"State({self.name!r})"


class Transition:
    """An edge between two states, optionally protected by guards."""

    def __init__(
        self,
        source: str,
        target: str,
        guards: Optional[List[Guard]] = None,
    ):
        self.source = source
        self.target = target
        self.guards = guards or []

    def first_failing_guard(self, context: TransitionContext) -> Optional[Guard]:
        for guard in self.guards:
            if not guard(context):
                return guard
        return None


# =============================================================================
# STATE MACHINE
# =============================================================================


class StateMachine:
    """
    Declarative state graph.

    Usage:
        machine = StateMachine("appointment")
        machine.add_state(State("pending", is_initial=True))
        machine.add_state(State("confirmed"))
        machine.add_state(State("cancelled", is_final=True))
        machine.add_transition("pending", "confirmed")
        machine.add_transition("pending", "cancelled")

        result = machine.evaluate("pending", "confirmed")
        assert result.success
    """

    def __init__(self, name: str):
        self.name = name
        self._states: Dict[str, State] = {}
        self._initial_states: Set[str] = set()
        self._logger = structlog.get_logger(f"state_machine.{name}")

    # -------------------------------------------------------------------------
    # Definition
    # -------------------------------------------------------------------------

    def add_state(self, state: State) -> "StateMachine":
        self._states[state.name] = state
        if state.is_initial:
            self._initial_states.add(state.name)
        return self

    def add_transition(
        self,
        from_state: str,
        to_state: str,
        guards: Optional[List[Guard]] = None,
    ) -> "StateMachine":
        source = self._states.get(from_state)
        if source is None or to_state not in self._states:
            raise ValueError(
                f"Cannot add transition {from_state!r} -> {to_state!r}: unknown state"
            )
        source.add_transition(Transition(from_state, to_state, guards))
        return self

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def states(self) -> List[str]:
        return list(self._states)

    @property
    def initial_states(self) -> Set[str]:
        return set(self._initial_states)

    def is_final(self, state: str) -> bool:
        s = self._states.get(state)
        return s is not None and s.is_final

    def targets(self, from_state: str) -> List[str]:
        """Every state reachable from ``from_state`` in one step, guards ignored."""
        state = self._states.get(from_state)
        if state is None:
            return []
        return list(state.transitions)

    def has_edge(self, from_state: str, to_state: str) -> bool:
        state = self._states.get(from_state)
        return state is not None and to_state in state.transitions

    def evaluate(
        self,
        from_state: str,
        to_state: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> TransitionResult:
        """Check whether ``from_state -> to_state`` is allowed for the given context."""
        if from_state not in self._states or to_state not in self._states:
            outcome = TransitionOutcome.UNKNOWN_STATE
            self._logger.debug(
                "transition_evaluated",
                from_state=from_state,
                to_state=to_state,
                outcome=outcome.value,
            )
            return TransitionResult(outcome, from_state, to_state)

        transition = self._states[from_state].transitions.get(to_state)
        if transition is None:
            self._logger.debug(
                "transition_evaluated",
                from_state=from_state,
                to_state=to_state,
                outcome=TransitionOutcome.NO_SUCH_EDGE.value,
            )
            return TransitionResult(TransitionOutcome.NO_SUCH_EDGE, from_state, to_state)

        context = TransitionContext(from_state, to_state, dict(variables or {}))
        failing = transition.first_failing_guard(context)
        if failing is not None:
            guard_name = getattr(failing, "__name__", repr(failing))
            self._logger.debug(
                "transition_evaluated",
                from_state=from_state,
                to_state=to_state,
                outcome=TransitionOutcome.GUARD_REJECTED.value,
                guard=guard_name,
            )
            return TransitionResult(
                TransitionOutcome.GUARD_REJECTED, from_state, to_state, failed_guard=guard_name
            )

        self._logger.debug(
            "transition_evaluated",
            from_state=from_state,
            to_state=to_state,
            outcome=TransitionOutcome.ALLOWED.value,
        )
        return TransitionResult(TransitionOutcome.ALLOWED, from_state, to_state)


__all__ = [
    "Guard",
    "TransitionOutcome",
    "TransitionContext",
    "TransitionResult",
    "State",
    "Transition",
    "StateMachine",
]
