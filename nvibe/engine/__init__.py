"""N Vibe engine: project history, generation and auto-save coordination."""
from .config import EngineConfig
from .errors import (
    BusyError,
    DuplicateFileError,
    GenerationCancelled,
    GenerationTimeoutError,
    PackagingError,
    ServiceError,
    StorageError,
    ValidationError,
    VibeError,
)
from .models import GenerationOutcome, GenerationState, SaveStatus

__all__ = [
    # Facade (lazy import)
    "ProjectWorkspace",
    # Config
    "EngineConfig",
    "load_yaml_config",
    # Models
    "GenerationOutcome",
    "GenerationState",
    "SaveStatus",
    # Errors
    "BusyError",
    "DuplicateFileError",
    "GenerationCancelled",
    "GenerationTimeoutError",
    "PackagingError",
    "ServiceError",
    "StorageError",
    "ValidationError",
    "VibeError",
]


def __getattr__(name: str):
    if name == "ProjectWorkspace":
        from .workspace import ProjectWorkspace
        return ProjectWorkspace
    if name == "load_yaml_config":
        from .yaml_config import load_yaml_config
        return load_yaml_config
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
