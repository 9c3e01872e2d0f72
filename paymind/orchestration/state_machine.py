"""Canonical state transition helpers for workflow steps."""

from __future__ import annotations

from enum import Enum


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class AgentStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class InvalidTransitionError(ValueError):
    """Raised when a disallowed state transition is attempted."""


class StateMachine:
    """Simple in-memory state machine over a transition table."""

    def __init__(self, transitions: dict[str, set[str]]) -> None:
        self._transitions = transitions

    def can_transition(self, current: str, target: str) -> bool:
        return target in self._transitions.get(current, set())

    def assert_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(f"Transition not allowed: {current} -> {target}")


# Load goes straight from pending to completed; a cancelled step drops back to pending.
STEP_TRANSITIONS: dict[str, set[str]] = {
    StepStatus.PENDING.value: {StepStatus.RUNNING.value, StepStatus.COMPLETED.value},
    StepStatus.RUNNING.value: {StepStatus.COMPLETED.value, StepStatus.ERROR.value, StepStatus.PENDING.value},
    StepStatus.COMPLETED.value: {StepStatus.PENDING.value},
    StepStatus.ERROR.value: {StepStatus.PENDING.value},
}

STEP_STATE_MACHINE = StateMachine(STEP_TRANSITIONS)
