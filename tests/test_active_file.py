"""Tests for active file resolution."""
from __future__ import annotations

import pytest

from nvibe.engine.active_file import ActiveFileResolver, resolve_active_file
from nvibe.shared.models.project import GeneratedFile


def _files(*paths: str) -> tuple[GeneratedFile, ...]:
    return tuple(GeneratedFile(p, "") for p in paths)


def test_previous_path_is_kept_while_it_exists():
    files = _files("index.html", "App.tsx", "styles.css")
    assert resolve_active_file(files, "styles.css") == "styles.css"


def test_missing_previous_falls_back_to_entry_point():
    files = _files("preview.html", "index.html", "src/App.tsx")
    assert resolve_active_file(files, "gone.tsx") == "src/App.tsx"


def test_entry_point_match_is_case_insensitive():
    files = _files("index.html", "APP.TSX")
    assert resolve_active_file(files, "") == "APP.TSX"


def test_falls_back_to_first_file_without_entry_point():
    files = _files("main.py", "util.py")
    assert resolve_active_file(files, "gone.py") == "main.py"


def test_empty_file_set_yields_empty_path():
    assert resolve_active_file((), "App.tsx") == ""


def test_custom_entry_point_hint():
    files = _files("index.html", "main.py")
    assert resolve_active_file(files, "", entry_point_hint="main.py") == "main.py"


def test_resolver_refresh_reports_changes():
    resolver = ActiveFileResolver()
    assert resolver.refresh(_files("index.html", "App.tsx")) is True
    assert resolver.path == "App.tsx"
    assert resolver.refresh(_files("App.tsx", "other.tsx")) is False
    assert resolver.refresh(()) is True
    assert resolver.path == ""


def test_force_overrides_fallback():
    resolver = ActiveFileResolver()
    resolver.refresh(_files("App.tsx", "new.tsx"))
    resolver.force("new.tsx")
    assert resolver.path == "new.tsx"
    # still valid, so a later refresh keeps it
    resolver.refresh(_files("App.tsx", "new.tsx"))
    assert resolver.path == "new.tsx"


def test_select_requires_existing_file():
    resolver = ActiveFileResolver()
    files = _files("App.tsx", "index.tsx")
    resolver.select(files, "index.tsx")
    assert resolver.path == "index.tsx"
    with pytest.raises(ValueError):
        resolver.select(files, "missing.tsx")
    assert resolver.path == "index.tsx"
