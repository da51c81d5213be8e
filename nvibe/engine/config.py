"""Configuration loaded from environment variables.

All settings have sensible defaults. Override via NVIBE_* env vars, or
with a YAML file (see yaml_config.py) layered on top.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


# Optional synchronous callback for workspace event observation.
# Signature: def callback(event: dict[str, Any]) -> None
EventCallback = Callable[[dict[str, Any]], None]


def fire_event(callback: EventCallback | None, event: dict[str, Any]) -> None:
    """Fire an event callback if set. Listener errors never break the core."""
    if callback is None:
        return
    try:
        callback(event)
    except Exception:
        logger.debug("Event callback failed for %s", event.get("event"), exc_info=True)


def _default_storage_path() -> str:
    return os.path.join(os.path.expanduser("~"), ".nvibe", "storage.json")


@dataclass
class EngineConfig:
    """Workspace engine configuration."""

    # Durable storage
    storage_path: str = field(default_factory=_default_storage_path)
    storage_key: str = "n-vibe-project"

    # Auto-save: quiet period before a write, then how long "saved" shows.
    save_debounce_seconds: float = 1.5
    saved_display_seconds: float = 2.0

    # Max wall-clock time for one generation.
    # Set to 0 (or a negative value) to disable timeout.
    generation_timeout_seconds: float = 0.0

    # Case-insensitive substring marking the preferred file to show.
    entry_point_hint: str = "app.tsx"

    # Code provider
    provider: str = "gemini"
    provider_command: str = "gemini"
    api_key_env: str | None = None
    generation_model: str = "gemini-2.5-pro"
    explanation_model: str = "gemini-2.5-flash"

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Load configuration from NVIBE_* environment variables."""
        nvibe_vars = {
            k: v for k, v in os.environ.items() if k.startswith("NVIBE_")
        }
        if nvibe_vars:
            logger.info(
                "EngineConfig.from_env: NVIBE_* env overrides: %s",
                ", ".join(f"{k}={v}" for k, v in sorted(nvibe_vars.items())),
            )
        else:
            logger.debug("EngineConfig.from_env: no NVIBE_* env vars set, using defaults")

        defaults = cls()
        config = cls(
            storage_path=os.getenv("NVIBE_STORAGE_PATH", defaults.storage_path),
            storage_key=os.getenv("NVIBE_STORAGE_KEY", defaults.storage_key),
            save_debounce_seconds=float(os.getenv(
                "NVIBE_SAVE_DEBOUNCE", str(defaults.save_debounce_seconds)
            )),
            saved_display_seconds=float(os.getenv(
                "NVIBE_SAVED_DISPLAY", str(defaults.saved_display_seconds)
            )),
            generation_timeout_seconds=float(os.getenv(
                "NVIBE_GENERATION_TIMEOUT",
                str(defaults.generation_timeout_seconds),
            )),
            entry_point_hint=os.getenv(
                "NVIBE_ENTRY_POINT", defaults.entry_point_hint
            ),
            provider=os.getenv("NVIBE_PROVIDER", defaults.provider),
            provider_command=os.getenv(
                "NVIBE_PROVIDER_COMMAND", defaults.provider_command
            ),
            api_key_env=os.getenv("NVIBE_API_KEY_ENV") or None,
            generation_model=os.getenv(
                "NVIBE_GENERATION_MODEL", defaults.generation_model
            ),
            explanation_model=os.getenv(
                "NVIBE_EXPLANATION_MODEL", defaults.explanation_model
            ),
            log_level=os.getenv("NVIBE_LOG_LEVEL", defaults.log_level),
        )
        logger.info(
            "EngineConfig.from_env: provider=%s model=%s storage=%s log_level=%s",
            config.provider, config.generation_model,
            config.storage_path, config.log_level,
        )
        return config
