"""Generation request state machine.

Defines valid transitions and enforces them. Invalid transitions
raise ValueError rather than silently proceeding.

State Diagram:

    IDLE ──> PENDING ──┬──> SUCCEEDED ──┐
                       │                │
                       ├──> CANCELLED ──┼──> IDLE
                       │                │
                       └──> FAILED ─────┘
"""
from __future__ import annotations

from .models import GenerationState

VALID_TRANSITIONS: dict[GenerationState, set[GenerationState]] = {
    GenerationState.IDLE: {
        GenerationState.PENDING,
    },
    GenerationState.PENDING: {
        GenerationState.SUCCEEDED,
        GenerationState.CANCELLED,
        GenerationState.FAILED,
    },
    GenerationState.SUCCEEDED: {
        GenerationState.IDLE,
    },
    GenerationState.CANCELLED: {
        GenerationState.IDLE,
    },
    GenerationState.FAILED: {
        GenerationState.IDLE,
    },
}


def validate_transition(current: GenerationState, target: GenerationState) -> None:
    """Validate a state transition. Raises ValueError if invalid."""
    allowed = VALID_TRANSITIONS.get(current, set())
    if target not in allowed:
        allowed_str = ", ".join(sorted(s.value for s in allowed)) or "none"
        raise ValueError(
            f"Invalid generation transition: {current.value} -> {target.value}. "
            f"Allowed from {current.value}: {allowed_str}"
        )
