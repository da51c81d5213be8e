"""Project slot: load/save the current snapshot in durable storage."""
from __future__ import annotations

import json
import logging

from nvibe.engine.errors import StorageError
from nvibe.shared.models.project import ProjectState
from nvibe.shared.services.storage import KeyValueStorage

logger = logging.getLogger(__name__)

PROJECT_KEY = "n-vibe-project"


class ProjectStore:
    """Reads and writes one ProjectState under a fixed storage key."""

    def __init__(self, storage: KeyValueStorage, key: str = PROJECT_KEY) -> None:
        self._storage = storage
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> ProjectState | None:
        """Return the saved project, or None if missing or corrupt."""
        try:
            raw = self._storage.get(self._key)
        except StorageError:
            logger.warning("Could not read saved project %r; using defaults", self._key, exc_info=True)
            return None
        if raw is None:
            logger.debug("No saved project under %r", self._key)
            return None
        try:
            state = ProjectState.from_dict(json.loads(raw))
        except ValueError:
            logger.warning("Saved project %r is corrupt; using defaults", self._key)
            return None
        logger.info(
            "Loaded saved project %r (%d files)", state.project_name, len(state.files),
        )
        return state

    def save(self, state: ProjectState) -> None:
        """Persist state. Raises StorageError on any failure."""
        try:
            payload = json.dumps(state.to_dict())
        except (TypeError, ValueError) as exc:
            raise StorageError(self._key, str(exc)) from exc
        self._storage.set(self._key, payload)

    def clear(self) -> None:
        self._storage.remove(self._key)
