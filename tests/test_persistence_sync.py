"""Tests for debounced auto-save."""
from __future__ import annotations

import asyncio
import json

import pytest

from nvibe.engine.errors import StorageError
from nvibe.engine.models import SaveStatus
from nvibe.engine.persistence_sync import PersistenceSync
from nvibe.shared.models.project import GeneratedFile, ProjectState
from nvibe.shared.services.project_store import PROJECT_KEY, ProjectStore
from nvibe.shared.services.storage import MemoryStorage

DEBOUNCE = 0.05
DISPLAY = 0.05


class _CountingStorage(MemoryStorage):
    def __init__(self, fail: bool = False) -> None:
        super().__init__()
        self.fail = fail
        self.writes: list[str] = []

    def set(self, key: str, text: str) -> None:
        if self.fail:
            raise StorageError(key, "disk full")
        self.writes.append(text)
        super().set(key, text)


def _state(label: str) -> ProjectState:
    return ProjectState(files=(GeneratedFile("App.tsx", label),), project_name=label)


def _sync(storage: _CountingStorage, statuses: list[SaveStatus] | None = None) -> PersistenceSync:
    return PersistenceSync(
        ProjectStore(storage),
        debounce_seconds=DEBOUNCE,
        saved_display_seconds=DISPLAY,
        on_status_change=statuses.append if statuses is not None else None,
    )


@pytest.mark.asyncio
async def test_pristine_snapshot_is_never_written():
    storage = _CountingStorage()
    sync = _sync(storage)

    for _ in range(3):
        sync.observe(_state("A"), 0)
        await asyncio.sleep(DEBOUNCE * 2)

    assert storage.writes == []
    assert sync.status is SaveStatus.IDLE
    assert sync.has_pending_write is False


@pytest.mark.asyncio
async def test_burst_of_changes_is_written_once_with_latest_snapshot():
    storage = _CountingStorage()
    sync = _sync(storage)

    for cursor in range(1, 6):
        sync.observe(_state(f"S{cursor}"), cursor)
    assert sync.status is SaveStatus.SAVING
    assert storage.writes == []

    await asyncio.sleep(DEBOUNCE * 3)

    assert len(storage.writes) == 1
    assert json.loads(storage.writes[0])["projectName"] == "S5"


@pytest.mark.asyncio
async def test_status_goes_saving_saved_idle():
    storage = _CountingStorage()
    statuses: list[SaveStatus] = []
    sync = _sync(storage, statuses)

    sync.observe(_state("B"), 1)
    await asyncio.sleep(DEBOUNCE + DISPLAY * 3)

    assert statuses == [SaveStatus.SAVING, SaveStatus.SAVED, SaveStatus.IDLE]
    assert sync.status is SaveStatus.IDLE


@pytest.mark.asyncio
async def test_change_during_saved_display_restarts_cycle():
    storage = _CountingStorage()
    statuses: list[SaveStatus] = []
    sync = PersistenceSync(
        ProjectStore(storage),
        debounce_seconds=DEBOUNCE,
        saved_display_seconds=0.3,
        on_status_change=statuses.append,
    )

    sync.observe(_state("B"), 1)
    await asyncio.sleep(DEBOUNCE * 3)
    assert sync.status is SaveStatus.SAVED

    sync.observe(_state("C"), 2)
    assert sync.status is SaveStatus.SAVING
    await asyncio.sleep(DEBOUNCE + 0.5)

    assert len(storage.writes) == 2
    assert statuses == [
        SaveStatus.SAVING, SaveStatus.SAVED,
        SaveStatus.SAVING, SaveStatus.SAVED, SaveStatus.IDLE,
    ]


@pytest.mark.asyncio
async def test_storage_failure_never_reports_saved():
    storage = _CountingStorage(fail=True)
    statuses: list[SaveStatus] = []
    sync = _sync(storage, statuses)

    sync.observe(_state("B"), 1)
    await asyncio.sleep(DEBOUNCE * 3)

    assert SaveStatus.SAVED not in statuses
    assert sync.status is SaveStatus.IDLE
    assert isinstance(sync.last_error, StorageError)


@pytest.mark.asyncio
async def test_returning_to_first_snapshot_cancels_pending_write():
    storage = _CountingStorage()
    sync = _sync(storage)

    sync.observe(_state("B"), 1)
    sync.observe(_state("A"), 0)
    await asyncio.sleep(DEBOUNCE * 3)

    assert storage.writes == []
    assert sync.status is SaveStatus.IDLE


@pytest.mark.asyncio
async def test_flush_writes_pending_snapshot_immediately():
    storage = _CountingStorage()
    sync = _sync(storage)

    sync.observe(_state("B"), 1)
    assert sync.flush() is True
    assert json.loads(storage.get(PROJECT_KEY))["projectName"] == "B"
    assert sync.flush() is False

    await asyncio.sleep(DEBOUNCE * 3)
    assert len(storage.writes) == 1


def test_observe_outside_event_loop_does_not_mark_saving():
    statuses: list[SaveStatus] = []
    sync = _sync(_CountingStorage(), statuses)

    with pytest.raises(RuntimeError):
        sync.observe(_state("B"), 1)

    assert sync.status is SaveStatus.IDLE
    assert sync.has_pending_write is False
    assert statuses == []
