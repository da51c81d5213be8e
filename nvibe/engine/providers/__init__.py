"""Code providers: generation and explanation collaborators."""
from __future__ import annotations

from typing import TYPE_CHECKING

from .base import CodeProvider
from .gemini_provider import GeminiProvider

if TYPE_CHECKING:
    from ..config import EngineConfig

__all__ = ["CodeProvider", "GeminiProvider", "build_provider"]


def build_provider(config: EngineConfig) -> CodeProvider:
    """Instantiate the provider named in the config."""
    if config.provider == "gemini":
        return GeminiProvider(
            command=config.provider_command,
            api_key_env=config.api_key_env,
            generation_model=config.generation_model,
            explanation_model=config.explanation_model,
        )
    raise ValueError(f"Unknown provider {config.provider!r} (available: gemini)")
