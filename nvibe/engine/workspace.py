"""Project workspace: the single entry point the front end talks to.

Wires the history store to its two observers (active file resolver and
persistence sync), routes user intents through the mutation coordinator,
and runs generations through the request manager. Everything here runs on
one event loop; the only suspension points are the provider call and the
auto-save timer, so history is never seen half-updated.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .active_file import ActiveFileResolver
from .config import EngineConfig, EventCallback, fire_event
from .errors import StorageError
from .generation import GenerationRequestManager
from .history import HistoryStore
from .models import GenerationOutcome, GenerationState, SaveStatus
from .mutations import MutationCoordinator
from .persistence_sync import PersistenceSync
from .providers.base import CodeProvider
from nvibe.shared.models.project import ProjectState
from nvibe.shared.services.packaging import export_zip
from nvibe.shared.services.project_store import ProjectStore
from nvibe.shared.templates import default_project, is_pristine_files

logger = logging.getLogger(__name__)


class ProjectWorkspace:
    """Undoable project state plus generation and auto-save coordination."""

    def __init__(
        self,
        provider: CodeProvider,
        store: ProjectStore,
        config: EngineConfig | None = None,
        event_callback: EventCallback | None = None,
    ) -> None:
        self._config = config or EngineConfig()
        self._provider = provider
        self._store = store
        self._event_callback = event_callback

        self._history = HistoryStore()
        self._resolver = ActiveFileResolver(self._config.entry_point_hint)
        self._mutations = MutationCoordinator(self._history)
        self._sync = PersistenceSync(
            store,
            debounce_seconds=self._config.save_debounce_seconds,
            saved_display_seconds=self._config.saved_display_seconds,
            on_status_change=self._on_save_status,
        )
        self._generation = GenerationRequestManager(
            provider,
            self._mutations.replace_files,
            timeout_seconds=self._config.generation_timeout_seconds,
            on_state_change=self._on_generation_state,
        )
        self._history.subscribe(self._on_history_change)

    # ── Startup / shutdown ──

    def open(self) -> ProjectState:
        """Load the saved project, or the starter project if none is saved."""
        saved = self._store.load()
        initial = saved if saved is not None else default_project()
        self._history.initialize(initial)
        logger.info(
            "Workspace opened: %r (%d files, restored=%s)",
            initial.project_name, len(initial.files), saved is not None,
        )
        return initial

    async def close(self) -> None:
        """Stop any generation and write out a pending auto-save."""
        self._generation.cancel()
        if self._sync.flush():
            logger.info("Flushed pending auto-save on close")
        await self._provider.shutdown()

    # ── Observers ──

    @property
    def current_snapshot(self) -> ProjectState:
        return self._history.current()

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    @property
    def history_position(self) -> tuple[int, int]:
        """(cursor, number of snapshots)."""
        return self._history.cursor, len(self._history)

    @property
    def active_file(self) -> str:
        return self._resolver.path

    @property
    def save_status(self) -> SaveStatus:
        return self._sync.status

    @property
    def last_save_error(self) -> StorageError | None:
        return self._sync.last_error

    @property
    def generation_state(self) -> GenerationState:
        return self._generation.state

    @property
    def last_generation(self) -> GenerationOutcome | None:
        return self._generation.last_outcome

    @property
    def is_edit_mode(self) -> bool:
        """Edit once anything beyond the untouched starter project exists."""
        return len(self._history) > 1 or not is_pristine_files(self._history.current().files)

    # ── Generation ──

    async def generate(self, prompt: str) -> GenerationOutcome:
        """Generate (or edit) the project from a prompt.

        Raises ValidationError / BusyError up front. A cancelled or failed
        generation leaves history untouched; see the returned outcome.
        """
        current = self._history.current()
        return await self._generation.start(prompt, self.is_edit_mode, current.files)

    def stop_generation(self) -> bool:
        return self._generation.cancel()

    async def explain(self, path: str) -> str:
        """Ask the provider to explain one file. Never touches history."""
        f = self._history.current().get_file(path)
        if f is None:
            raise ValueError(f"No file at path {path!r} in project")
        return await self._provider.explain(f.content, f.path)

    # ── History ──

    def undo(self) -> bool:
        self._require_loop("undo")
        return self._history.undo()

    def redo(self) -> bool:
        self._require_loop("redo")
        return self._history.redo()

    # ── User edits ──

    def edit_file(self, path: str, content: str) -> ProjectState:
        self._require_loop("edit_file")
        return self._mutations.edit_file(path, content)

    def add_file(self, path: str) -> ProjectState:
        self._require_loop("add_file")
        state = self._mutations.add_file(path)
        path = state.files[-1].path
        if self._resolver.force(path):
            self._emit_active_file()
        return state

    def update_metadata(self, name: str, description: str | None) -> ProjectState:
        self._require_loop("update_metadata")
        return self._mutations.update_metadata(name, description)

    def select_file(self, path: str) -> None:
        if self._resolver.select(self._history.current().files, path):
            self._emit_active_file()

    def new_project(self) -> ProjectState:
        """Discard everything and restart from the starter project.

        A pending generation is cancelled first so its result can never
        land in the fresh project.
        """
        if self._generation.cancel():
            logger.info("New project: cancelled pending generation")
        self._sync.cancel()
        try:
            self._store.clear()
        except StorageError:
            logger.warning("New project: could not clear saved project", exc_info=True)
        fresh = default_project()
        self._history.reset(fresh)
        logger.info("Started a new project")
        return fresh

    def export(self, dest_dir: Path | str = ".") -> Path:
        return export_zip(self._history.current(), dest_dir)

    def flush(self) -> bool:
        """Write a pending auto-save immediately."""
        return self._sync.flush()

    # ── Internal listeners ──

    @staticmethod
    def _require_loop(intent: str) -> None:
        # Auto-save timers live on the running loop; check before committing.
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError(
                f"{intent}() must be called from within the running event loop"
            ) from None

    def _on_history_change(self, snapshot: ProjectState, cursor: int) -> None:
        if self._resolver.refresh(snapshot.files):
            self._emit_active_file()
        self._sync.observe(snapshot, cursor)
        fire_event(self._event_callback, {
            "event": "snapshot_changed",
            "cursor": cursor,
            "length": len(self._history),
            "can_undo": self._history.can_undo,
            "can_redo": self._history.can_redo,
        })

    def _on_save_status(self, status: SaveStatus) -> None:
        fire_event(self._event_callback, {
            "event": "save_status_changed",
            "status": status.value,
        })

    def _on_generation_state(self, state: GenerationState) -> None:
        event = {"event": "generation_state_changed", "state": state.value}
        outcome = self._generation.last_outcome
        if state.is_terminal and outcome is not None:
            event["error"] = outcome.error
        fire_event(self._event_callback, event)

    def _emit_active_file(self) -> None:
        fire_event(self._event_callback, {
            "event": "active_file_changed",
            "path": self._resolver.path,
        })
