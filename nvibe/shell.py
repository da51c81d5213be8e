"""Interactive console front end for a ProjectWorkspace.

Plain input is a generation prompt; lines starting with '/' are commands
(see shared/commands.py). Rendering goes through a rich Console.
"""
from __future__ import annotations

import asyncio
import logging
import os
import shlex
import signal
import tempfile
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.prompt import Confirm
from rich.syntax import Syntax
from rich.table import Table

from nvibe.engine.errors import VibeError
from nvibe.engine.models import GenerationState, SaveStatus
from nvibe.engine.workspace import ProjectWorkspace
from nvibe.shared.commands import COMMAND_HELP, ParsedCommand, parse_command

logger = logging.getLogger(__name__)

QUIT_COMMANDS = {"quit", "exit", "q"}

_SAVE_STATUS_STYLE = {
    SaveStatus.IDLE: "dim",
    SaveStatus.SAVING: "yellow",
    SaveStatus.SAVED: "green",
}


class VibeShell:
    """Read-eval loop over a workspace."""

    def __init__(self, workspace: ProjectWorkspace, console: Console | None = None) -> None:
        self._workspace = workspace
        self._console = console or Console()

    async def run(self) -> None:
        self._console.print(
            f"[bold magenta]N Vibe[/] — project [bold]{self._workspace.current_snapshot.project_name}[/]. "
            "Type a prompt to generate, /help for commands."
        )
        while True:
            try:
                line = await asyncio.to_thread(self._console.input, self._prompt_text())
            except EOFError:
                break
            if not line.strip():
                continue
            command = parse_command(line)
            if command is None:
                await self.generate(line.strip())
                continue
            if command.name in QUIT_COMMANDS:
                break
            await self.handle_command(command)

    def _prompt_text(self) -> str:
        status = self._workspace.save_status
        style = _SAVE_STATUS_STYLE[status]
        name = self._workspace.current_snapshot.project_name
        return f"[{style}]({status.value})[/] [bold]{name}[/] > "

    # ── Generation ──

    async def generate(self, prompt: str) -> None:
        verb = "Editing" if self._workspace.is_edit_mode else "Generating"
        loop = asyncio.get_running_loop()
        handler_installed = False
        try:
            loop.add_signal_handler(signal.SIGINT, self._workspace.stop_generation)
            handler_installed = True
        except (NotImplementedError, RuntimeError):
            logger.debug("SIGINT handler unavailable; Ctrl-C will not stop generation")

        try:
            with self._console.status(f"{verb} project… (Ctrl-C to stop)"):
                outcome = await self._workspace.generate(prompt)
        except VibeError as exc:
            self._error(str(exc))
            return
        finally:
            if handler_installed:
                loop.remove_signal_handler(signal.SIGINT)

        if outcome.succeeded:
            self._console.print(f"[green]Generated {len(outcome.files)} file(s).[/]")
            self.show_files()
        elif outcome.state is GenerationState.CANCELLED:
            self._console.print("[dim]Generation stopped.[/]")
        else:
            self._error(outcome.error or "Generation failed.")

    # ── Commands ──

    async def handle_command(self, command: ParsedCommand) -> None:
        handler = getattr(self, f"_cmd_{command.name}", None)
        if handler is None:
            self._error(f"Unknown command /{command.name}. Type /help.")
            return
        try:
            result = handler(command)
            if asyncio.iscoroutine(result):
                await result
        except VibeError as exc:
            self._error(str(exc))

    def _cmd_help(self, command: ParsedCommand) -> None:
        table = Table(show_header=False, box=None)
        for name, text in COMMAND_HELP.items():
            table.add_row(f"[bold]/{name}[/]", text)
        self._console.print(table)

    def _cmd_files(self, command: ParsedCommand) -> None:
        self.show_files()

    def show_files(self) -> None:
        snapshot = self._workspace.current_snapshot
        table = Table(title=snapshot.project_name)
        table.add_column("", width=1)
        table.add_column("Path")
        table.add_column("Lines", justify="right")
        for f in snapshot.files:
            marker = "*" if f.path == self._workspace.active_file else ""
            table.add_row(marker, f.path, str(len(f.content.splitlines())))
        self._console.print(table)

    def _cmd_show(self, command: ParsedCommand) -> None:
        path = self._path_arg(command)
        if path is None:
            return
        f = self._workspace.current_snapshot.get_file(path)
        lexer = Syntax.guess_lexer(f.path, code=f.content)
        self._console.print(Syntax(f.content, lexer, line_numbers=True, word_wrap=True))

    def _cmd_open(self, command: ParsedCommand) -> None:
        if not command.rest:
            self._error("Usage: /open PATH")
            return
        if not self._workspace.current_snapshot.has_file(command.rest):
            self._error(f"No such file: {command.rest}")
            return
        self._workspace.select_file(command.rest)
        self._console.print(f"Active file: [bold]{command.rest}[/]")

    def _cmd_add(self, command: ParsedCommand) -> None:
        self._workspace.add_file(command.rest)
        self._console.print(f"Added [bold]{self._workspace.active_file}[/]")

    async def _cmd_edit(self, command: ParsedCommand) -> None:
        path = self._path_arg(command)
        if path is None:
            return
        f = self._workspace.current_snapshot.get_file(path)
        editor = os.environ.get("VISUAL") or os.environ.get("EDITOR") or "vi"
        with tempfile.TemporaryDirectory(prefix="nvibe-") as tmp:
            tmp_path = Path(tmp) / Path(f.path).name
            tmp_path.write_text(f.content, encoding="utf-8")
            try:
                proc = await asyncio.create_subprocess_exec(*shlex.split(editor), str(tmp_path))
            except FileNotFoundError:
                self._error(f"Editor not found: {editor}")
                return
            returncode = await proc.wait()
            new_content = tmp_path.read_text(encoding="utf-8")
        if returncode != 0:
            self._error(f"Editor exited with status {returncode}; file left unchanged.")
            return
        if new_content == f.content:
            self._console.print("[dim]No changes.[/]")
            return
        self._workspace.edit_file(f.path, new_content)
        self._console.print(f"Updated [bold]{f.path}[/]")

    def _cmd_undo(self, command: ParsedCommand) -> None:
        if not self._workspace.undo():
            self._console.print("[dim]Nothing to undo.[/]")
            return
        self._print_position()

    def _cmd_redo(self, command: ParsedCommand) -> None:
        if not self._workspace.redo():
            self._console.print("[dim]Nothing to redo.[/]")
            return
        self._print_position()

    def _cmd_name(self, command: ParsedCommand) -> None:
        if not command.rest:
            self._error("Usage: /name NAME")
            return
        snapshot = self._workspace.current_snapshot
        self._workspace.update_metadata(command.rest, snapshot.project_description)

    def _cmd_describe(self, command: ParsedCommand) -> None:
        snapshot = self._workspace.current_snapshot
        self._workspace.update_metadata(snapshot.project_name, command.rest)

    async def _cmd_explain(self, command: ParsedCommand) -> None:
        path = self._path_arg(command)
        if path is None:
            return
        with self._console.status(f"Explaining {path}…"):
            text = await self._workspace.explain(path)
        self._console.print(Markdown(text))

    def _cmd_export(self, command: ParsedCommand) -> None:
        target = self._workspace.export(command.rest or ".")
        self._console.print(f"Exported to [bold]{target}[/]")

    async def _cmd_new(self, command: ParsedCommand) -> None:
        confirmed = await asyncio.to_thread(
            Confirm.ask,
            "Start a new project? Any unsaved changes will be lost.",
            console=self._console,
            default=False,
        )
        if confirmed:
            self._workspace.new_project()
            self._console.print("Started a new project.")

    def _cmd_status(self, command: ParsedCommand) -> None:
        ws = self._workspace
        cursor, length = ws.history_position
        self._console.print(f"History: {cursor + 1}/{length} (undo={ws.can_undo}, redo={ws.can_redo})")
        self._console.print(f"Active file: {ws.active_file or '-'}")
        self._console.print(f"Save status: {ws.save_status.value}")
        if ws.last_save_error is not None:
            self._console.print(f"[red]Last save failed:[/] {ws.last_save_error}")
        self._console.print(f"Generation: {ws.generation_state.value}")
        last = ws.last_generation
        if last is not None:
            self._console.print(f"Last generation: {last.state.value}" + (f" — {last.error}" if last.error else ""))

    # ── Helpers ──

    def _path_arg(self, command: ParsedCommand) -> str | None:
        path = command.rest or self._workspace.active_file
        if not path:
            self._error("The project has no files.")
            return None
        if not self._workspace.current_snapshot.has_file(path):
            self._error(f"No such file: {path}")
            return None
        return path

    def _print_position(self) -> None:
        cursor, length = self._workspace.history_position
        self._console.print(f"[dim]History {cursor + 1}/{length}[/]")

    def _error(self, message: str) -> None:
        self._console.print(f"[bold red]Error:[/] {message}")
