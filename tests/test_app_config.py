from __future__ import annotations

import argparse
import logging

from nvibe.app import _load_config, _resolve_level


def _args(**overrides) -> argparse.Namespace:
    values = {"config": None, "storage": None, "timeout": None, "verbose": False}
    values.update(overrides)
    return argparse.Namespace(**values)


def test_resolve_level() -> None:
    assert _resolve_level("warning") == logging.WARNING
    assert _resolve_level(" debug ") == logging.DEBUG
    assert _resolve_level("nonsense") == logging.INFO
    assert _resolve_level("BASIC_FORMAT") == logging.INFO
    assert _resolve_level("ERROR", verbose=True) == logging.DEBUG


def test_yaml_log_level_reaches_config(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("NVIBE_LOG_LEVEL", raising=False)
    config_path = tmp_path / "nvibe.yaml"
    config_path.write_text("engine:\n  log_level: warning\n")

    config = _load_config(_args(config=str(config_path), timeout=30.0))

    assert config.log_level == "warning"
    assert _resolve_level(config.log_level) == logging.WARNING
    assert config.generation_timeout_seconds == 30.0


def test_cli_storage_overrides_yaml(tmp_path) -> None:
    config_path = tmp_path / "nvibe.yaml"
    config_path.write_text("engine:\n  storage_path: /somewhere/else.json\n")

    config = _load_config(_args(config=str(config_path), storage=str(tmp_path / "s.json")))

    assert config.storage_path == str(tmp_path / "s.json")
