"""Gemini CLI provider.

Runs `gemini --prompt=... --output-format=json` once per request and reads
the model's reply from the JSON envelope. Prompts too large for one argv
string are piped through stdin instead. Generation replies must carry a
``files`` array; anything else is reported as a ServiceError.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import shutil
from collections.abc import Sequence

from ..cancellation import CancellationToken
from ..errors import GenerationCancelled, ServiceError
from .base import CodeProvider
from .prompts import build_explanation_prompt, build_generation_prompt, wrap_with_system
from nvibe.shared.models.project import GeneratedFile, files_from_payload

logger = logging.getLogger(__name__)

UNREADABLE_RESPONSE = "Could not understand the AI's response. Please try again."
EXPLAIN_UNAVAILABLE = "Could not get code explanation. The AI service may be unavailable."

# Linux caps a single argv string at 128 KiB; larger prompts go through stdin.
MAX_ARGV_PROMPT_BYTES = 100_000

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```\s*$", re.DOTALL)


class GeminiProvider(CodeProvider):
    """Provider backed by the Gemini CLI.

    Auth: uses the CLI's cached credentials. If api_key_env is set, that
    variable's value is passed to the CLI as GEMINI_API_KEY.
    """

    def __init__(
        self,
        command: str = "gemini",
        api_key_env: str | None = None,
        generation_model: str = "gemini-2.5-pro",
        explanation_model: str = "gemini-2.5-flash",
    ) -> None:
        self._command = self.resolve_command(command, "gemini")
        self._api_key_env = api_key_env
        self._generation_model = generation_model
        self._explanation_model = explanation_model

    @property
    def name(self) -> str:
        return "gemini"

    def is_available(self) -> bool:
        return shutil.which(self._command) is not None

    def _build_env(self) -> dict[str, str] | None:
        if self._api_key_env:
            key = os.environ.get(self._api_key_env)
            if key:
                env = os.environ.copy()
                env["GEMINI_API_KEY"] = key
                return env
        return None

    async def generate(
        self,
        prompt: str,
        existing_files: Sequence[GeneratedFile] | None,
        token: CancellationToken,
    ) -> tuple[GeneratedFile, ...]:
        system_prompt, user_content = build_generation_prompt(prompt, existing_files)
        reply = await self._run(
            wrap_with_system(system_prompt, user_content),
            model=self._generation_model,
            token=token,
        )
        return parse_files_response(reply)

    async def explain(self, code: str, path: str) -> str:
        system_prompt, user_content = build_explanation_prompt(code, path)
        try:
            reply = await self._run(
                wrap_with_system(system_prompt, user_content),
                model=self._explanation_model,
            )
        except ServiceError as exc:
            logger.error("Failed to get code explanation for %s: %s", path, exc)
            raise ServiceError(EXPLAIN_UNAVAILABLE, provider=self.name) from exc
        if not reply.strip():
            raise ServiceError(EXPLAIN_UNAVAILABLE, provider=self.name)
        return reply

    def _build_command(self, full_prompt: str, model: str) -> tuple[list[str], bytes | None]:
        """Return (argv, stdin payload). Oversized prompts are piped in."""
        cmd = [self._command, "--model", model]
        payload: bytes | None = full_prompt.encode("utf-8")
        if len(payload) > MAX_ARGV_PROMPT_BYTES:
            # With no --prompt and a piped stdin the CLI runs non-interactively.
            logger.debug("Prompt is %d bytes; sending via stdin", len(payload))
        else:
            # --prompt=value keeps yargs from reading the prompt as a positional.
            cmd.append(f"--prompt={full_prompt}")
            payload = None
        cmd.append("--output-format=json")
        return cmd, payload

    async def _run(
        self,
        full_prompt: str,
        *,
        model: str,
        token: CancellationToken | None = None,
    ) -> str:
        """Run the CLI once and return the reply text from its JSON envelope."""
        cmd, stdin_payload = self._build_command(full_prompt, model)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE if stdin_payload is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._build_env(),
            )
        except FileNotFoundError:
            raise ServiceError(
                f"'{self._command}' CLI not found. Install it or configure provider_command.",
                provider=self.name,
            ) from None
        except OSError as exc:
            logger.error("Could not launch %s: %s", self._command, exc)
            raise ServiceError(
                f"Could not launch '{self._command}': {exc.strerror or exc}",
                provider=self.name,
            ) from exc

        communicate = asyncio.ensure_future(proc.communicate(input=stdin_payload))
        cancel_wait = asyncio.ensure_future(token.wait()) if token is not None else None
        try:
            waiters = {communicate} if cancel_wait is None else {communicate, cancel_wait}
            done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            communicate.cancel()
            await _terminate(proc)
            raise
        finally:
            if cancel_wait is not None:
                cancel_wait.cancel()

        if communicate not in done:
            communicate.cancel()
            await _terminate(proc)
            logger.info("Gemini CLI terminated after cancellation")
            raise GenerationCancelled()

        stdout_bytes, stderr_bytes = communicate.result()
        stdout_text = stdout_bytes.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            error = stderr_bytes.decode("utf-8", errors="replace").strip()
            logger.warning("Gemini CLI failed (rc=%s): %s", proc.returncode, error)
            raise ServiceError(
                f"Gemini failed (rc={proc.returncode}): {error or stdout_text.strip()}",
                provider=self.name,
            )
        return parse_cli_envelope(stdout_text)


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


def parse_cli_envelope(stdout_text: str) -> str:
    """Extract the ``response`` text from the CLI's JSON output.

    The CLI may print banner lines ("Loaded cached credentials...") before
    the JSON, so parsing starts at the first '{'.
    """
    json_start = stdout_text.find("{")
    if json_start == -1:
        logger.error("Gemini output was not JSON: %s", stdout_text[:500])
        raise ServiceError(UNREADABLE_RESPONSE, provider="gemini")
    try:
        data = json.loads(stdout_text[json_start:])
    except json.JSONDecodeError:
        logger.error("Failed to parse Gemini JSON: %s", stdout_text[json_start:][:500])
        raise ServiceError(UNREADABLE_RESPONSE, provider="gemini") from None
    if not isinstance(data, dict):
        raise ServiceError(UNREADABLE_RESPONSE, provider="gemini")
    error = data.get("error")
    if error:
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise ServiceError(f"Gemini error: {message}", provider="gemini")
    response = data.get("response")
    if not isinstance(response, str):
        raise ServiceError(UNREADABLE_RESPONSE, provider="gemini")
    return response


def parse_files_response(text: str) -> tuple[GeneratedFile, ...]:
    """Parse a ``{"files": [...]}`` reply, tolerating a markdown code fence."""
    body = text.strip()
    fenced = _FENCE_RE.match(body)
    if fenced:
        body = fenced.group(1).strip()
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        logger.error("Failed to parse generated files: %s", body[:500])
        raise ServiceError(UNREADABLE_RESPONSE, provider="gemini") from None
    if not isinstance(parsed, dict) or not isinstance(parsed.get("files"), list):
        logger.error("Invalid JSON structure received from Gemini")
        raise ServiceError(UNREADABLE_RESPONSE, provider="gemini")
    try:
        return files_from_payload(parsed["files"])
    except ValueError as exc:
        logger.error("Generated file list rejected: %s", exc)
        raise ServiceError(UNREADABLE_RESPONSE, provider="gemini") from exc
