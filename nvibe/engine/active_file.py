"""Active file selection derived from the current file set."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from nvibe.shared.models.project import GeneratedFile

logger = logging.getLogger(__name__)

ENTRY_POINT_HINT = "app.tsx"


def resolve_active_file(
    files: Sequence[GeneratedFile],
    previous: str,
    entry_point_hint: str = ENTRY_POINT_HINT,
) -> str:
    """Pick the path that should be active for ``files``.

    Keeps ``previous`` while it still exists; otherwise prefers the first
    path containing the entry-point hint (case-insensitive), then the first
    file. An empty file set yields "".
    """
    if not files:
        return ""
    if previous and any(f.path == previous for f in files):
        return previous
    hint = entry_point_hint.lower()
    for f in files:
        if hint and hint in f.path.lower():
            return f.path
    return files[0].path


class ActiveFileResolver:
    """Holds the active path and keeps it valid as snapshots change."""

    def __init__(self, entry_point_hint: str = ENTRY_POINT_HINT) -> None:
        self._entry_point_hint = entry_point_hint
        self._path = ""

    @property
    def path(self) -> str:
        return self._path

    def refresh(self, files: Sequence[GeneratedFile]) -> bool:
        """Re-validate against ``files``. Returns True if the path changed."""
        resolved = resolve_active_file(files, self._path, self._entry_point_hint)
        return self._set(resolved)

    def force(self, path: str) -> bool:
        """Make ``path`` active unconditionally (used right after add-file)."""
        return self._set(path)

    def select(self, files: Sequence[GeneratedFile], path: str) -> bool:
        """User selection. The path must name a file in ``files``."""
        if not any(f.path == path for f in files):
            raise ValueError(f"No file at path {path!r} in project")
        return self._set(path)

    def _set(self, path: str) -> bool:
        if path == self._path:
            return False
        logger.debug("Active file %r -> %r", self._path, path)
        self._path = path
        return True
