"""Durable key-value storage: the single slot the project lives in.

All operations are synchronous. JsonFileStorage keeps every key in one
JSON object file and swaps in a fully written sibling file on every write
so a crash mid-write leaves the previous content intact.
"""
from __future__ import annotations

import abc
import json
import logging
import os
import tempfile
from pathlib import Path

from nvibe.engine.errors import StorageError

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_PATH = Path.home() / ".nvibe" / "storage.json"


class KeyValueStorage(abc.ABC):
    """Abstract text storage keyed by string."""

    @abc.abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored text, or None when absent."""

    @abc.abstractmethod
    def set(self, key: str, text: str) -> None:
        """Store text under key. Raises StorageError on failure."""

    @abc.abstractmethod
    def remove(self, key: str) -> None:
        """Drop key if present. Raises StorageError on failure."""


class MemoryStorage(KeyValueStorage):
    """In-process storage; nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, text: str) -> None:
        self._data[key] = text

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


def _sync_directory(directory: Path) -> None:
    """Persist the rename itself; skipped where directories cannot be opened."""
    if not hasattr(os, "O_DIRECTORY"):
        return
    try:
        fd = os.open(directory, os.O_RDONLY | os.O_DIRECTORY)
    except OSError:
        logger.debug("Cannot open %s for fsync", directory)
        return
    try:
        os.fsync(fd)
    except OSError:
        logger.debug("Directory fsync unsupported for %s", directory)
    finally:
        os.close(fd)


class JsonFileStorage(KeyValueStorage):
    """Keys stored together in one JSON file on disk."""

    def __init__(self, path: Path | str = DEFAULT_STORAGE_PATH) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, text: str) -> None:
        data = self._read_all()
        data[key] = text
        self._write_all(key, data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key not in data:
            return
        del data[key]
        self._write_all(key, data)

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Storage file %s is unreadable; treating as empty", self._path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file %s does not hold an object; treating as empty", self._path)
            return {}
        return data

    def _write_all(self, key: str, data: dict[str, str]) -> None:
        try:
            payload = json.dumps(data, indent=2)
        except (TypeError, ValueError) as exc:
            raise StorageError(key, f"not serializable: {exc}") from exc
        try:
            self._replace_file(payload)
        except OSError as exc:
            raise StorageError(key, f"{self._path}: {exc.strerror or exc}") from exc
        logger.debug("Wrote %d key(s) to %s", len(data), self._path)

    def _replace_file(self, payload: str) -> None:
        """Swap in a fully written sibling file; the old file survives any failure."""
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=directory,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            staged = Path(tmp.name)
            try:
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            except OSError:
                tmp.close()
                staged.unlink(missing_ok=True)
                raise
        try:
            os.replace(staged, self._path)
        except OSError:
            staged.unlink(missing_ok=True)
            raise
        _sync_directory(directory)
