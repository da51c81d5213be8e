"""N Vibe CLI: main application entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console

from nvibe.engine.config import EngineConfig
from nvibe.engine.providers import build_provider
from nvibe.engine.workspace import ProjectWorkspace
from nvibe.engine.yaml_config import discover_config, load_yaml_config
from nvibe.shared.services.project_store import ProjectStore
from nvibe.shared.services.storage import JsonFileStorage
from nvibe.shell import VibeShell

logger = logging.getLogger(__name__)


def _resolve_level(level_name: str, verbose: bool = False) -> int:
    if verbose:
        return logging.DEBUG
    level = getattr(logging, level_name.strip().upper(), None)
    return level if isinstance(level, int) else logging.INFO


def _configure_logging(level: int) -> Path:
    log_dir = Path.home() / ".nvibe" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "nvibe.log"

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s [pid=%(process)d] %(message)s"
    )
    file_handler = RotatingFileHandler(
        log_file, maxBytes=2_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
    return log_file


def _load_config(args: argparse.Namespace) -> EngineConfig:
    config = EngineConfig.from_env()
    config_path = Path(args.config) if args.config else discover_config()
    if config_path is not None:
        config = load_yaml_config(config_path, base=config)
    if args.storage:
        config.storage_path = str(Path(args.storage).expanduser())
    if args.timeout is not None:
        config.generation_timeout_seconds = args.timeout
    return config


def _log_event(event: dict) -> None:
    logger.debug("Workspace event: %s", event)


async def _run(workspace: ProjectWorkspace, shell: VibeShell) -> None:
    workspace.open()
    try:
        await shell.run()
    finally:
        await workspace.close()


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="nvibe",
        description="Generate and iterate on a small web project from prompts",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="YAML config file (default: .nvibe/nvibe.yaml or nvibe.yaml)",
    )
    parser.add_argument(
        "--storage",
        default=None,
        help="Storage file for the saved project (default: ~/.nvibe/storage.json)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Generation timeout in seconds (default: none)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()

    log_file = _configure_logging(
        _resolve_level(os.getenv("NVIBE_LOG_LEVEL", "INFO"), args.verbose)
    )
    console = Console()

    try:
        config = _load_config(args)
    except (OSError, ValueError) as exc:
        console.print(f"[bold red]Error:[/] invalid configuration: {exc}")
        sys.exit(1)
    # YAML may override the level the environment gave us.
    logging.getLogger().setLevel(_resolve_level(config.log_level, args.verbose))
    logger.info("Starting nvibe cwd=%s log=%s", Path.cwd(), log_file)

    try:
        provider = build_provider(config)
    except ValueError as exc:
        console.print(f"[bold red]Error:[/] {exc}")
        sys.exit(1)
    if not provider.is_available():
        console.print(
            f"[yellow]Warning:[/] the {provider.name} CLI was not found on PATH; "
            "generation will fail until it is installed."
        )

    store = ProjectStore(JsonFileStorage(config.storage_path), key=config.storage_key)
    workspace = ProjectWorkspace(provider, store, config, event_callback=_log_event)
    shell = VibeShell(workspace, console)

    try:
        asyncio.run(_run(workspace, shell))
    except KeyboardInterrupt:
        console.print("\nInterrupted.")
        sys.exit(1)


if __name__ == "__main__":
    main()
