"""YAML configuration loader.

Layers a YAML file over the environment config. Unknown keys are logged
and ignored.

Example YAML:
    engine:
      save_debounce_seconds: 1.5
      generation_timeout_seconds: 600
      storage_path: ~/.nvibe/storage.json

    provider:
      type: gemini
      command: gemini
      api_key_env: GEMINI_API_KEY
      generation_model: gemini-2.5-pro
      explanation_model: gemini-2.5-flash
"""
from __future__ import annotations

import logging
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from .config import EngineConfig

logger = logging.getLogger(__name__)

CONFIG_CANDIDATES = (Path(".nvibe") / "nvibe.yaml", Path("nvibe.yaml"))

_FLOAT_KEYS = {
    "save_debounce_seconds",
    "saved_display_seconds",
    "generation_timeout_seconds",
}

# provider section key -> EngineConfig field
_PROVIDER_KEYS = {
    "type": "provider",
    "command": "provider_command",
    "api_key_env": "api_key_env",
    "generation_model": "generation_model",
    "explanation_model": "explanation_model",
}


def discover_config(cwd: Path | None = None) -> Path | None:
    """Return the first existing config file under ``cwd``."""
    base = cwd or Path.cwd()
    for candidate in CONFIG_CANDIDATES:
        path = base / candidate
        logger.debug("Config auto-discovery candidate: %s (exists=%s)", path, path.exists())
        if path.exists():
            return path
    return None


def load_yaml_config(path: Path | str, base: EngineConfig | None = None) -> EngineConfig:
    """Load ``path`` and apply it over ``base`` (env config when omitted)."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: top level must be a mapping")

    config = base or EngineConfig.from_env()
    known = {f.name for f in fields(EngineConfig)}

    engine_raw = raw.get("engine") or {}
    if not isinstance(engine_raw, dict):
        raise ValueError(f"{path}: 'engine' must be a mapping")
    for key, value in engine_raw.items():
        if key not in known:
            logger.warning("%s: ignoring unknown engine key %r", path, key)
            continue
        _apply(config, key, value)

    provider_raw = raw.get("provider") or {}
    if not isinstance(provider_raw, dict):
        raise ValueError(f"{path}: 'provider' must be a mapping")
    for key, value in provider_raw.items():
        target = _PROVIDER_KEYS.get(key)
        if target is None:
            logger.warning("%s: ignoring unknown provider key %r", path, key)
            continue
        _apply(config, target, value)

    logger.info("Loaded YAML config from %s", path)
    return config


def _apply(config: EngineConfig, key: str, value: Any) -> None:
    if key in _FLOAT_KEYS:
        value = float(value)
    elif key == "storage_path":
        value = str(Path(str(value)).expanduser())
    elif value is not None:
        value = str(value)
    setattr(config, key, value)
