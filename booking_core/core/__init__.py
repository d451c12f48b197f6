# Engine Core
# Logging setup and declarative state machines shared by the scheduling engine

from booking_core.core.logging import (
    LogContext,
    LogFormat,
    LogLevel,
    get_logger,
    setup_logging,
)
from booking_core.core.state_machine import (
    State,
    StateMachine,
    Transition,
    TransitionContext,
    TransitionOutcome,
    TransitionResult,
)

__all__ = [
    # Logging
    "LogContext",
    "LogFormat",
    "LogLevel",
    "get_logger",
    "setup_logging",
    # State machine
    "State",
    "StateMachine",
    "Transition",
    "TransitionContext",
    "TransitionOutcome",
    "TransitionResult",
]
