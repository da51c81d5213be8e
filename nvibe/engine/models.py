"""Engine state enums and small value types."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from nvibe.shared.models.project import GeneratedFile


class GenerationState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (
            GenerationState.SUCCEEDED,
            GenerationState.CANCELLED,
            GenerationState.FAILED,
        )


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"


@dataclass(frozen=True)
class GenerationOutcome:
    """How a single generation request settled."""
    state: GenerationState
    prompt: str = ""
    files: tuple[GeneratedFile, ...] = field(default_factory=tuple)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is GenerationState.SUCCEEDED
