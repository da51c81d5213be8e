from __future__ import annotations

import pytest

from nvibe.engine.lifecycle import validate_transition
from nvibe.engine.models import GenerationState


@pytest.mark.parametrize("terminal", [
    GenerationState.SUCCEEDED,
    GenerationState.CANCELLED,
    GenerationState.FAILED,
])
def test_pending_settles_into_each_terminal_state_then_idle(terminal):
    validate_transition(GenerationState.IDLE, GenerationState.PENDING)
    validate_transition(GenerationState.PENDING, terminal)
    validate_transition(terminal, GenerationState.IDLE)
    assert terminal.is_terminal


@pytest.mark.parametrize("current,target", [
    (GenerationState.IDLE, GenerationState.SUCCEEDED),
    (GenerationState.PENDING, GenerationState.PENDING),
    (GenerationState.PENDING, GenerationState.IDLE),
    (GenerationState.CANCELLED, GenerationState.PENDING),
])
def test_invalid_transitions_raise(current, target):
    with pytest.raises(ValueError, match="Invalid generation transition"):
        validate_transition(current, target)
