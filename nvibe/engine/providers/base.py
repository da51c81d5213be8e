"""Abstract base for code providers.

A provider is the generation/explanation collaborator: it turns a prompt
(plus, in edit mode, the current files) into a complete file set, and
explains a single file on request. The workspace never builds request
bodies itself.
"""
from __future__ import annotations

import abc
import logging
import shutil
from collections.abc import Sequence

from nvibe.engine.cancellation import CancellationToken
from nvibe.shared.models.project import GeneratedFile

logger = logging.getLogger(__name__)


class CodeProvider(abc.ABC):
    """Abstract provider interface.

    Implementations:
    - GeminiProvider: the `gemini` CLI run as a subprocess
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Short provider name (e.g. 'gemini')."""

    @abc.abstractmethod
    async def generate(
        self,
        prompt: str,
        existing_files: Sequence[GeneratedFile] | None,
        token: CancellationToken,
    ) -> Sequence[GeneratedFile]:
        """Produce the complete file set for the project.

        ``existing_files`` is None for a fresh generation and the current
        files for an edit. Implementations should abort promptly once
        ``token`` is cancelled and raise GenerationCancelled; any other
        failure is raised as ServiceError.
        """

    @abc.abstractmethod
    async def explain(self, code: str, path: str) -> str:
        """Return a markdown explanation of ``code``. Raises ServiceError."""

    @abc.abstractmethod
    def is_available(self) -> bool:
        """Check if this provider's runtime is installed."""

    def resolve_command(self, command: str, fallback: str | None = None) -> str:
        """Resolve a provider binary, preferring the explicit command.

        Keeps the raw value when nothing is on PATH so error messages can
        show what was configured.
        """
        if command and shutil.which(command):
            return command
        if fallback and shutil.which(fallback):
            logger.debug(
                "Command %s not found; falling back to %s for provider %s",
                command, fallback, self.name,
            )
            return fallback
        return command or fallback or ""

    async def shutdown(self) -> None:
        """Clean up resources. Default no-op."""
        return None
