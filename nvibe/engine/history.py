"""Linear undo/redo history of immutable project snapshots.

An append-only list plus a cursor. Pushing while the cursor is behind the
end discards the redo-able tail (branch cut), exactly like an editor's
undo stack. Snapshots themselves are never modified.
"""
from __future__ import annotations

import logging
from collections.abc import Callable

from nvibe.shared.models.project import ProjectState

logger = logging.getLogger(__name__)

# Signature: listener(snapshot, cursor) -> None
HistoryListener = Callable[[ProjectState, int], None]


class HistoryStore:
    """Ordered snapshots with a cursor marking the current one."""

    def __init__(self) -> None:
        self._snapshots: list[ProjectState] = []
        self._cursor = -1
        self._listeners: list[HistoryListener] = []

    @property
    def initialized(self) -> bool:
        return bool(self._snapshots)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def snapshots(self) -> tuple[ProjectState, ...]:
        return tuple(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def subscribe(self, listener: HistoryListener) -> None:
        self._listeners.append(listener)

    def initialize(self, snapshot: ProjectState) -> None:
        """Seed the history with its first snapshot. Only once per session."""
        if self.initialized:
            raise RuntimeError("History is already initialized")
        self._set([snapshot], 0)

    def reset(self, snapshot: ProjectState) -> None:
        """Drop everything and start over from a single snapshot."""
        self._require_initialized()
        self._set([snapshot], 0)

    def current(self) -> ProjectState:
        self._require_initialized()
        return self._snapshots[self._cursor]

    def push(self, snapshot: ProjectState) -> None:
        """Commit a new snapshot after the cursor, discarding any redo tail."""
        self._require_initialized()
        dropped = len(self._snapshots) - 1 - self._cursor
        if dropped:
            logger.debug("Branch cut: discarding %d redo snapshot(s)", dropped)
        del self._snapshots[self._cursor + 1:]
        self._snapshots.append(snapshot)
        self._cursor = len(self._snapshots) - 1
        self._notify()

    def undo(self) -> bool:
        """Step back one snapshot. Returns False (no-op) at the start."""
        if not self.can_undo:
            return False
        self._cursor -= 1
        self._notify()
        return True

    def redo(self) -> bool:
        """Step forward one snapshot. Returns False (no-op) at the end."""
        if not self.can_redo:
            return False
        self._cursor += 1
        self._notify()
        return True

    def _set(self, snapshots: list[ProjectState], cursor: int) -> None:
        self._snapshots = snapshots
        self._cursor = cursor
        self._notify()

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise RuntimeError("History has not been initialized")

    def _notify(self) -> None:
        snapshot = self._snapshots[self._cursor]
        for listener in list(self._listeners):
            listener(snapshot, self._cursor)
