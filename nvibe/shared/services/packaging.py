"""Zip export of the project's source files."""
from __future__ import annotations

import logging
import re
import zipfile
from pathlib import Path

from nvibe.engine.errors import PackagingError
from nvibe.shared.models.project import ProjectState
from nvibe.shared.templates import PREVIEW_PATH

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_NAME = "n-vibe-app"


def archive_name(project_name: str) -> str:
    """Turn a project name into a file-system friendly archive stem."""
    stem = re.sub(r"\s+", "-", project_name.strip())
    stem = stem.replace("/", "-").replace("\\", "-")
    return stem or DEFAULT_ARCHIVE_NAME


def export_zip(state: ProjectState, dest_dir: Path | str = ".") -> Path:
    """Write the project's source files to ``<dest_dir>/<name>.zip``.

    The monolithic preview file is a build artifact and is left out.
    """
    target = Path(dest_dir).expanduser() / f"{archive_name(state.project_name)}.zip"
    files = [f for f in state.files if f.path != PREVIEW_PATH]
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for f in files:
                zf.writestr(f.path, f.content)
    except OSError as exc:
        raise PackagingError(str(target), str(exc)) from exc
    logger.info("Exported %d file(s) to %s", len(files), target)
    return target
