"""Project snapshot model: files plus project metadata.

Snapshots are frozen. Every change produces a new ProjectState; the
history keeps references to old ones, so nothing may edit them in place.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

DEFAULT_PROJECT_NAME = "Untitled Project"


@dataclass(frozen=True)
class GeneratedFile:
    """A single project file. The path is its identity."""

    path: str
    content: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "content": self.content}


@dataclass(frozen=True)
class ProjectState:
    """One immutable snapshot of the whole project."""

    files: tuple[GeneratedFile, ...] = field(default_factory=tuple)
    project_name: str = DEFAULT_PROJECT_NAME
    project_description: str | None = ""

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    def has_file(self, path: str) -> bool:
        return any(f.path == path for f in self.files)

    def get_file(self, path: str) -> GeneratedFile | None:
        for f in self.files:
            if f.path == path:
                return f
        return None

    def with_files(self, files: Iterable[GeneratedFile]) -> ProjectState:
        """Replace the file set wholesale, keeping metadata."""
        return replace(self, files=tuple(files))

    def with_file_content(self, path: str, content: str) -> ProjectState:
        """Replace one file's content. The path must exist."""
        if not self.has_file(path):
            raise ValueError(f"No file at path {path!r} in project")
        return replace(
            self,
            files=tuple(
                GeneratedFile(path=f.path, content=content) if f.path == path else f
                for f in self.files
            ),
        )

    def with_added_file(self, path: str, content: str = "") -> ProjectState:
        """Append a new file. Callers check for collisions first."""
        return replace(self, files=self.files + (GeneratedFile(path=path, content=content),))

    def with_metadata(self, name: str, description: str | None) -> ProjectState:
        return replace(self, project_name=name, project_description=description)

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the storage wire format (camelCase keys)."""
        return {
            "files": [f.to_dict() for f in self.files],
            "projectName": self.project_name,
            "projectDescription": self.project_description,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProjectState:
        """Parse the storage wire format. Raises ValueError when malformed."""
        if not isinstance(data, Mapping):
            raise ValueError("Project payload must be an object")
        files = files_from_payload(data.get("files"))
        name = data.get("projectName", DEFAULT_PROJECT_NAME)
        if not isinstance(name, str):
            raise ValueError("projectName must be a string")
        description = data.get("projectDescription", "")
        if description is not None and not isinstance(description, str):
            raise ValueError("projectDescription must be a string")
        return cls(files=files, project_name=name, project_description=description)


def files_from_payload(items: Any) -> tuple[GeneratedFile, ...]:
    """Validate a list of ``{"path", "content"}`` mappings.

    A repeated path keeps its first position and takes the later content.
    """
    if not isinstance(items, list):
        raise ValueError("files must be a list")
    ordered: dict[str, str] = {}
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise ValueError(f"files[{index}] is not an object")
        path = item.get("path")
        content = item.get("content", "")
        if not isinstance(path, str) or not path.strip():
            raise ValueError(f"files[{index}] has no usable path")
        if not isinstance(content, str):
            raise ValueError(f"files[{index}] content must be a string")
        ordered[path] = content
    return tuple(GeneratedFile(path=p, content=c) for p, c in ordered.items())
