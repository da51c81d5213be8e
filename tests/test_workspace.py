"""End-to-end tests for ProjectWorkspace with in-memory collaborators."""
from __future__ import annotations

import asyncio
import json
import zipfile

import pytest

from nvibe.engine.config import EngineConfig
from nvibe.engine.errors import BusyError, DuplicateFileError, ServiceError, ValidationError
from nvibe.engine.models import GenerationState, SaveStatus
from nvibe.engine.providers.base import CodeProvider
from nvibe.engine.workspace import ProjectWorkspace
from nvibe.shared.models.project import GeneratedFile, ProjectState
from nvibe.shared.services.project_store import PROJECT_KEY, ProjectStore
from nvibe.shared.services.storage import MemoryStorage
from nvibe.shared.templates import DEFAULT_FILES, PREVIEW_PATH

DEBOUNCE = 0.05

GENERATED = (
    GeneratedFile(PREVIEW_PATH, "<html>preview</html>"),
    GeneratedFile("index.html", "<html/>"),
    GeneratedFile("components/TodoApp.tsx", "todo"),
    GeneratedFile("index.tsx", "render"),
)


class _FakeProvider(CodeProvider):
    def __init__(self, result=GENERATED, hold: bool = False):
        self.result = result
        self.error: Exception | None = None
        self.release = asyncio.Event()
        if not hold:
            self.release.set()
        self.calls: list[tuple] = []
        self.shutdown_called = False

    @property
    def name(self) -> str:
        return "fake"

    async def generate(self, prompt, existing_files, token):
        self.calls.append((prompt, existing_files, token))
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result

    async def explain(self, code, path):
        return f"{path}: {len(code)} chars"

    def is_available(self) -> bool:
        return True

    async def shutdown(self) -> None:
        self.shutdown_called = True


class _CountingStorage(MemoryStorage):
    def __init__(self, initial=None) -> None:
        super().__init__(initial)
        self.writes = 0

    def set(self, key, text):
        self.writes += 1
        super().set(key, text)


def _workspace(provider=None, storage=None, events=None):
    provider = provider or _FakeProvider()
    storage = storage if storage is not None else _CountingStorage()
    config = EngineConfig(save_debounce_seconds=DEBOUNCE, saved_display_seconds=DEBOUNCE)
    ws = ProjectWorkspace(
        provider,
        ProjectStore(storage),
        config,
        event_callback=events.append if events is not None else None,
    )
    ws.open()
    return ws, provider, storage


async def _until(predicate, attempts: int = 50) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.mark.asyncio
async def test_open_without_saved_project_uses_starter():
    ws, _, storage = _workspace()

    assert ws.current_snapshot.files == DEFAULT_FILES
    assert ws.current_snapshot.project_name == "Untitled Project"
    assert ws.active_file == "App.tsx"
    assert ws.can_undo is False and ws.can_redo is False
    assert ws.is_edit_mode is False
    assert ws.save_status is SaveStatus.IDLE
    assert ws.generation_state is GenerationState.IDLE

    await asyncio.sleep(DEBOUNCE * 3)
    assert storage.writes == 0


@pytest.mark.asyncio
async def test_open_restores_saved_project_without_rewriting_it():
    saved = ProjectState(files=(GeneratedFile("main.tsx", "x"),), project_name="Saved")
    storage = _CountingStorage({PROJECT_KEY: json.dumps(saved.to_dict())})
    ws, _, _ = _workspace(storage=storage)

    assert ws.current_snapshot == saved
    assert ws.active_file == "main.tsx"
    assert ws.is_edit_mode is True
    await asyncio.sleep(DEBOUNCE * 3)
    assert storage.writes == 0


@pytest.mark.asyncio
async def test_generate_commits_snapshot_and_reassigns_active_file():
    ws, provider, storage = _workspace()

    outcome = await ws.generate("a todo app")

    assert outcome.state is GenerationState.SUCCEEDED
    assert outcome.succeeded
    assert provider.calls[0][1] is None  # generate mode
    assert ws.current_snapshot.files == GENERATED
    assert ws.current_snapshot.project_name == "Untitled Project"
    # App.tsx is gone; TodoApp.tsx matches the entry-point hint
    assert ws.active_file == "components/TodoApp.tsx"
    assert ws.can_undo is True
    assert ws.save_status is SaveStatus.SAVING

    await asyncio.sleep(DEBOUNCE * 2)
    assert storage.writes == 1
    assert json.loads(storage.get(PROJECT_KEY))["files"][2]["path"] == "components/TodoApp.tsx"


@pytest.mark.asyncio
async def test_second_generation_runs_in_edit_mode():
    ws, provider, _ = _workspace()
    await ws.generate("first")
    await ws.generate("make it blue")
    assert provider.calls[1][1] == GENERATED


@pytest.mark.asyncio
async def test_stop_generation_discards_result():
    ws, provider, storage = _workspace(provider=_FakeProvider(hold=True))

    task = asyncio.create_task(ws.generate("something"))
    await _until(lambda: provider.calls)
    assert ws.generation_state is GenerationState.PENDING

    assert ws.stop_generation() is True
    provider.release.set()
    outcome = await task

    assert not outcome.succeeded
    assert outcome.state is GenerationState.CANCELLED
    assert ws.last_generation.state is GenerationState.CANCELLED
    assert ws.last_generation.error is None
    assert ws.history_position == (0, 1)
    assert ws.current_snapshot.files == DEFAULT_FILES
    await asyncio.sleep(DEBOUNCE * 3)
    assert storage.writes == 0


@pytest.mark.asyncio
async def test_generate_while_pending_is_busy():
    ws, provider, _ = _workspace(provider=_FakeProvider(hold=True))
    task = asyncio.create_task(ws.generate("one"))
    await _until(lambda: provider.calls)

    with pytest.raises(BusyError):
        await ws.generate("two")
    assert ws.generation_state is GenerationState.PENDING

    provider.release.set()
    await task
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_empty_prompt_is_a_validation_error():
    ws, provider, _ = _workspace()
    with pytest.raises(ValidationError):
        await ws.generate("")
    assert provider.calls == []
    assert ws.history_position == (0, 1)


@pytest.mark.asyncio
async def test_failed_generation_leaves_history_alone():
    provider = _FakeProvider()
    provider.error = ServiceError("Could not understand the AI's response. Please try again.")
    ws, _, _ = _workspace(provider=provider)

    outcome = await ws.generate("x")

    assert outcome.state is GenerationState.FAILED
    assert "Please try again" in outcome.error
    assert ws.history_position == (0, 1)


@pytest.mark.asyncio
async def test_user_edits_undo_redo_and_branch_cut():
    ws, _, _ = _workspace()
    ws.edit_file("App.tsx", "v1")
    ws.edit_file("App.tsx", "v2")
    assert ws.history_position == (2, 3)

    assert ws.undo() is True
    assert ws.current_snapshot.get_file("App.tsx").content == "v1"
    ws.edit_file("App.tsx", "v3")

    assert ws.history_position == (2, 3)
    assert ws.can_redo is False
    assert ws.redo() is False
    assert ws.current_snapshot.get_file("App.tsx").content == "v3"


@pytest.mark.asyncio
async def test_add_file_forces_new_path_active():
    ws, _, _ = _workspace()
    ws.add_file("components/Button.tsx")
    assert ws.active_file == "components/Button.tsx"
    assert ws.current_snapshot.files[-1] == GeneratedFile("components/Button.tsx", "")


@pytest.mark.asyncio
async def test_duplicate_add_file_changes_nothing():
    ws, _, _ = _workspace()
    before = ws.current_snapshot
    with pytest.raises(DuplicateFileError):
        ws.add_file("App.tsx")
    assert ws.current_snapshot is before
    assert ws.history_position == (0, 1)
    assert ws.active_file == "App.tsx"


@pytest.mark.asyncio
async def test_undo_of_add_file_falls_back_to_entry_point():
    ws, _, _ = _workspace()
    ws.add_file("notes.md")
    ws.undo()
    assert ws.active_file == "App.tsx"


@pytest.mark.asyncio
async def test_update_metadata_keeps_files():
    ws, _, _ = _workspace()
    ws.update_metadata("Shop", "An online shop")
    assert ws.current_snapshot.project_name == "Shop"
    assert ws.current_snapshot.project_description == "An online shop"
    assert ws.current_snapshot.files == DEFAULT_FILES


@pytest.mark.asyncio
async def test_generated_files_keep_current_metadata():
    ws, _, _ = _workspace()
    ws.update_metadata("Shop", "desc")
    await ws.generate("a shop")
    assert ws.current_snapshot.project_name == "Shop"
    assert ws.current_snapshot.files == GENERATED


@pytest.mark.asyncio
async def test_new_project_resets_history_and_clears_storage():
    ws, _, storage = _workspace()
    ws.edit_file("App.tsx", "changed")
    ws.flush()
    assert storage.get(PROJECT_KEY) is not None

    ws.new_project()

    assert storage.get(PROJECT_KEY) is None
    assert ws.history_position == (0, 1)
    assert ws.current_snapshot.files == DEFAULT_FILES
    assert ws.save_status is SaveStatus.IDLE


@pytest.mark.asyncio
async def test_new_project_cancels_pending_generation():
    ws, provider, _ = _workspace(provider=_FakeProvider(hold=True))
    task = asyncio.create_task(ws.generate("something"))
    await _until(lambda: provider.calls)

    ws.new_project()
    provider.release.set()
    outcome = await task

    assert outcome.state is GenerationState.CANCELLED
    assert ws.current_snapshot.files == DEFAULT_FILES
    assert ws.history_position == (0, 1)


@pytest.mark.asyncio
async def test_close_flushes_pending_write():
    ws, provider, storage = _workspace()
    ws.edit_file("App.tsx", "unsaved")
    await ws.close()

    assert storage.writes == 1
    saved = ProjectState.from_dict(json.loads(storage.get(PROJECT_KEY)))
    assert saved.get_file("App.tsx").content == "unsaved"
    assert provider.shutdown_called is True


@pytest.mark.asyncio
async def test_explain_uses_current_file_content():
    ws, _, _ = _workspace()
    ws.edit_file("App.tsx", "12345")
    assert await ws.explain("App.tsx") == "App.tsx: 5 chars"
    with pytest.raises(ValueError):
        await ws.explain("missing.tsx")
    assert ws.history_position == (1, 2)


@pytest.mark.asyncio
async def test_select_file():
    ws, _, _ = _workspace()
    ws.select_file("index.html")
    assert ws.active_file == "index.html"
    with pytest.raises(ValueError):
        ws.select_file("missing")


@pytest.mark.asyncio
async def test_events_are_reported():
    events: list[dict] = []
    ws, _, _ = _workspace(events=events)
    events.clear()

    ws.add_file("notes.md")
    await ws.generate("x")

    kinds = [e["event"] for e in events]
    assert "snapshot_changed" in kinds
    assert {"event": "active_file_changed", "path": "notes.md"} in events
    assert {"event": "save_status_changed", "status": "saving"} in events
    states = [e["state"] for e in events if e["event"] == "generation_state_changed"]
    assert states == ["pending", "succeeded", "idle"]


@pytest.mark.asyncio
async def test_broken_event_callback_does_not_break_workspace():
    def _boom(event):
        raise RuntimeError("listener bug")

    provider = _FakeProvider()
    ws = ProjectWorkspace(provider, ProjectStore(MemoryStorage()), EngineConfig(), event_callback=_boom)
    ws.open()
    ws.edit_file("App.tsx", "still works")
    assert ws.current_snapshot.get_file("App.tsx").content == "still works"


@pytest.mark.asyncio
async def test_export_skips_preview(tmp_path):
    ws, _, _ = _workspace()
    ws.update_metadata("My Cool  App", "")
    target = ws.export(tmp_path)

    assert target.name == "My-Cool-App.zip"
    with zipfile.ZipFile(target) as zf:
        names = zf.namelist()
    assert PREVIEW_PATH not in names
    assert "App.tsx" in names


def test_intents_outside_event_loop_leave_workspace_unchanged():
    events: list[dict] = []
    ws, _, storage = _workspace(events=events)
    before = ws.current_snapshot

    for intent in (
        lambda: ws.edit_file("App.tsx", "changed"),
        lambda: ws.add_file("extra.ts"),
        lambda: ws.update_metadata("Renamed", None),
        ws.undo,
        ws.redo,
    ):
        with pytest.raises(RuntimeError, match="running event loop"):
            intent()

    assert ws.current_snapshot is before
    assert ws.history_position == (0, 1)
    assert ws.save_status is SaveStatus.IDLE
    assert ws.active_file == "App.tsx"
    assert storage.writes == 0
    assert not any(e["event"] == "save_status_changed" for e in events)
