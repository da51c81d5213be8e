"""Debounced auto-save of the current snapshot.

Every history change after the first snapshot restarts a single quiet-period
timer; when it fires, whatever snapshot is current at that moment gets
written. Bursts of edits therefore cost one write. The component owns both
of its timer handles and is the only thing that schedules or cancels them.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from .errors import StorageError
from .models import SaveStatus
from nvibe.shared.models.project import ProjectState
from nvibe.shared.services.project_store import ProjectStore

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.5
DEFAULT_SAVED_DISPLAY_SECONDS = 2.0

StatusListener = Callable[[SaveStatus], None]


class PersistenceSync:
    """Watches (snapshot, cursor) pairs and writes the latest one lazily."""

    def __init__(
        self,
        store: ProjectStore,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        saved_display_seconds: float = DEFAULT_SAVED_DISPLAY_SECONDS,
        on_status_change: StatusListener | None = None,
    ) -> None:
        self._store = store
        self._debounce_seconds = debounce_seconds
        self._saved_display_seconds = saved_display_seconds
        self._on_status_change = on_status_change
        self._status = SaveStatus.IDLE
        self._latest: ProjectState | None = None
        self._write_handle: asyncio.TimerHandle | None = None
        self._reset_handle: asyncio.TimerHandle | None = None
        self._last_error: StorageError | None = None

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def last_error(self) -> StorageError | None:
        return self._last_error

    @property
    def has_pending_write(self) -> bool:
        return self._write_handle is not None

    def observe(self, snapshot: ProjectState, cursor: int) -> None:
        """History listener. Must be called from inside the event loop."""
        if cursor < 1:
            # The pristine first snapshot is never written.
            self._cancel_reset()
            self._cancel_write()
            self._latest = None
            self._set_status(SaveStatus.IDLE)
            return

        loop = asyncio.get_running_loop()
        self._cancel_reset()
        self._latest = snapshot
        self._cancel_write()
        self._set_status(SaveStatus.SAVING)
        self._write_handle = loop.call_later(self._debounce_seconds, self._write_latest)

    def flush(self) -> bool:
        """Write a pending snapshot now. Returns True if a write happened."""
        if self._write_handle is None:
            return False
        self._cancel_write()
        return self._write_latest()

    def cancel(self) -> None:
        """Drop any pending write and status reset; status goes back to idle."""
        self._cancel_write()
        self._cancel_reset()
        self._latest = None
        self._set_status(SaveStatus.IDLE)

    def _write_latest(self) -> bool:
        self._write_handle = None
        snapshot = self._latest
        if snapshot is None:
            return False
        self._latest = None
        try:
            self._store.save(snapshot)
        except StorageError as exc:
            self._last_error = exc
            logger.warning("Auto-save failed: %s", exc)
            self._set_status(SaveStatus.IDLE)
            return False
        self._last_error = None
        logger.debug("Auto-saved project %r", snapshot.project_name)
        self._set_status(SaveStatus.SAVED)
        loop = asyncio.get_running_loop()
        self._reset_handle = loop.call_later(self._saved_display_seconds, self._reset_status)
        return True

    def _reset_status(self) -> None:
        self._reset_handle = None
        self._set_status(SaveStatus.IDLE)

    def _cancel_write(self) -> None:
        if self._write_handle is not None:
            self._write_handle.cancel()
            self._write_handle = None

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _set_status(self, status: SaveStatus) -> None:
        if status is self._status:
            return
        self._status = status
        if self._on_status_change is not None:
            try:
                self._on_status_change(status)
            except Exception:
                logger.exception("Save status listener failed")
