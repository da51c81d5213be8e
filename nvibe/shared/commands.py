"""Slash command parser and dispatch table."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ParsedCommand:
    """A parsed slash command."""

    name: str
    args: list[str]
    raw: str

    @property
    def rest(self) -> str:
        """Everything after the command name, whitespace preserved."""
        return self.raw[len(self.name) + 1:].strip()


def parse_command(text: str) -> ParsedCommand | None:
    """Parse a /command from input text.

    Returns None if text does not start with '/'.
    """
    stripped = text.strip()
    if not stripped.startswith("/"):
        return None
    parts = stripped.split()
    name = parts[0][1:].lower()  # remove leading '/'
    args = parts[1:] if len(parts) > 1 else []
    return ParsedCommand(name=name, args=args, raw=stripped)


COMMAND_HELP: dict[str, str] = {
    "files": "List project files (* marks the active one)",
    "show": "/show [PATH] — print a file (default: active file)",
    "open": "/open PATH — make PATH the active file",
    "add": "/add PATH — add a new empty file",
    "edit": "/edit [PATH] — edit a file in $EDITOR",
    "undo": "Undo the last change",
    "redo": "Redo the last undone change",
    "name": "/name NAME — rename the project",
    "describe": "/describe TEXT — set the project description",
    "explain": "/explain [PATH] — ask the AI to explain a file",
    "export": "/export [DIR] — write the project sources to a .zip",
    "new": "Discard this project and start from the starter template",
    "status": "Show history, save and generation status",
    "help": "Show this help message",
    "quit": "Save and exit",
}
