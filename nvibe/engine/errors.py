"""Exception hierarchy for the workspace engine.

User-facing failures (validation, busy, duplicate file, service, storage)
derive from VibeError. Programming-error preconditions use ValueError or
RuntimeError instead so they are never shown as ordinary messages.
"""
from __future__ import annotations


class VibeError(Exception):
    """Base exception for all workspace errors."""


class ValidationError(VibeError):
    """Input rejected before any collaborator was contacted."""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class BusyError(VibeError):
    """A generation was requested while another one is pending."""
    def __init__(self) -> None:
        super().__init__(
            "A generation is already in progress. "
            "Wait for it to finish or stop it first."
        )


class DuplicateFileError(VibeError):
    """Add-file collided with an existing path."""
    def __init__(self, path: str):
        self.path = path
        super().__init__(f'File "{path}" already exists.')


class GenerationCancelled(VibeError):
    """The user aborted a generation. Not shown as an error."""
    def __init__(self, reason: str = "Generation stopped by user."):
        super().__init__(reason)


class ServiceError(VibeError):
    """The generation/explanation collaborator failed or answered garbage."""
    def __init__(self, message: str, *, provider: str | None = None):
        self.provider = provider
        super().__init__(message)


class GenerationTimeoutError(ServiceError):
    """Generation exceeded the configured timeout."""
    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Generation timed out after {timeout_seconds:g}s. Please try again."
        )


class StorageError(VibeError):
    """Durable storage could not be read or written."""
    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Storage failure for {key!r}: {reason}")


class PackagingError(VibeError):
    """Exporting the project archive failed."""
    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"Could not export project to {target}: {reason}")
