"""User intents turned into new snapshots and committed to history."""
from __future__ import annotations

import logging
from collections.abc import Iterable

from nvibe.engine.errors import DuplicateFileError, ValidationError
from nvibe.engine.history import HistoryStore
from nvibe.shared.models.project import GeneratedFile, ProjectState

logger = logging.getLogger(__name__)


class MutationCoordinator:
    """Builds each new snapshot from ``history.current()`` and pushes it."""

    def __init__(self, history: HistoryStore) -> None:
        self._history = history

    def edit_file(self, path: str, content: str) -> ProjectState:
        """Replace one file's content.

        Editing a path that is not in the project is a caller bug and
        raises ValueError.
        """
        state = self._history.current().with_file_content(path, content)
        self._history.push(state)
        return state

    def add_file(self, path: str) -> ProjectState:
        """Append an empty file. Raises DuplicateFileError without pushing."""
        path = path.strip()
        if not path:
            raise ValidationError("File path cannot be empty.")
        current = self._history.current()
        if current.has_file(path):
            raise DuplicateFileError(path)
        state = current.with_added_file(path)
        self._history.push(state)
        logger.info("Added file %s", path)
        return state

    def update_metadata(self, name: str, description: str | None) -> ProjectState:
        state = self._history.current().with_metadata(name, description)
        self._history.push(state)
        return state

    def replace_files(self, files: Iterable[GeneratedFile]) -> ProjectState:
        """Swap in a whole generated file set, keeping project metadata."""
        state = self._history.current().with_files(files)
        self._history.push(state)
        logger.info("Committed generated file set (%d files)", len(state.files))
        return state
