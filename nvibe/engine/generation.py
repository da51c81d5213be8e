"""Generation request manager: one cancellable in-flight generation.

The token allocated at start() is the only thing consulted when the
collaborator call settles. If it was cancelled in the meantime the result
is dropped, even a successful one; nothing reaches history after the
token is cancelled.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from .cancellation import CancellationToken
from .errors import (
    BusyError,
    GenerationCancelled,
    GenerationTimeoutError,
    ServiceError,
    ValidationError,
)
from .lifecycle import validate_transition
from .models import GenerationOutcome, GenerationState
from .providers.base import CodeProvider
from nvibe.shared.models.project import GeneratedFile

logger = logging.getLogger(__name__)

SuccessHandler = Callable[[tuple[GeneratedFile, ...]], object]
StateListener = Callable[[GenerationState], None]


class GenerationRequestManager:
    """Owns at most one pending call to the generation collaborator."""

    def __init__(
        self,
        service: CodeProvider,
        on_success: SuccessHandler,
        *,
        timeout_seconds: float = 0.0,
        on_state_change: StateListener | None = None,
    ) -> None:
        self._service = service
        self._on_success = on_success
        self._timeout_seconds = timeout_seconds
        self._on_state_change = on_state_change
        self._state = GenerationState.IDLE
        self._token: CancellationToken | None = None
        self._last_outcome: GenerationOutcome | None = None

    @property
    def state(self) -> GenerationState:
        return self._state

    @property
    def is_pending(self) -> bool:
        return self._state is GenerationState.PENDING

    @property
    def last_outcome(self) -> GenerationOutcome | None:
        return self._last_outcome

    async def start(
        self,
        prompt: str,
        edit_mode: bool,
        current_files: Sequence[GeneratedFile],
    ) -> GenerationOutcome:
        """Run one generation to settlement.

        Raises ValidationError for an empty prompt and BusyError while
        another request is pending; neither touches the collaborator.
        Collaborator failures come back as a FAILED outcome.
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Please enter a prompt.")
        if self.is_pending:
            raise BusyError()

        token = CancellationToken()
        self._token = token
        self._transition(GenerationState.PENDING)
        existing = tuple(current_files) if edit_mode else None
        logger.info(
            "Generation started (mode=%s, files=%d)",
            "edit" if edit_mode else "generate",
            len(existing or ()),
        )

        error: Exception | None = None
        files: tuple[GeneratedFile, ...] = ()
        try:
            files = tuple(await self._call(prompt, existing, token))
        except asyncio.CancelledError:
            token.cancel()
            self._settle(GenerationOutcome(GenerationState.CANCELLED, prompt=prompt))
            raise
        except Exception as exc:
            error = exc

        if token.cancelled or isinstance(error, GenerationCancelled):
            logger.info("Generation stopped by user; result discarded")
            return self._settle(GenerationOutcome(GenerationState.CANCELLED, prompt=prompt))

        if error is not None:
            if isinstance(error, ServiceError):
                message = str(error)
                logger.warning("Generation failed: %s", message)
            else:
                message = f"Generation failed: {error}"
                logger.error("Generation collaborator raised unexpectedly", exc_info=error)
            return self._settle(
                GenerationOutcome(GenerationState.FAILED, prompt=prompt, error=message)
            )

        try:
            # No await between the token check above and this commit.
            self._on_success(files)
        except Exception as exc:
            self._settle(
                GenerationOutcome(GenerationState.FAILED, prompt=prompt, error=str(exc))
            )
            raise
        logger.info("Generation succeeded (%d files)", len(files))
        return self._settle(
            GenerationOutcome(GenerationState.SUCCEEDED, prompt=prompt, files=files)
        )

    def cancel(self) -> bool:
        """Ask the pending request to stop. Returns False if nothing is pending.

        Settlement still happens in start(); this only flips the token,
        which the collaborator watches to abort its work.
        """
        if not self.is_pending or self._token is None:
            return False
        if not self._token.cancelled:
            logger.info("Cancelling pending generation")
            self._token.cancel()
        return True

    async def _call(
        self,
        prompt: str,
        existing: tuple[GeneratedFile, ...] | None,
        token: CancellationToken,
    ) -> Sequence[GeneratedFile]:
        call = self._service.generate(prompt, existing, token)
        if self._timeout_seconds <= 0:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self._timeout_seconds)
        except asyncio.TimeoutError:
            raise GenerationTimeoutError(self._timeout_seconds) from None

    def _settle(self, outcome: GenerationOutcome) -> GenerationOutcome:
        if self._state is GenerationState.PENDING:
            self._last_outcome = outcome
            self._token = None
            self._transition(outcome.state)
            self._transition(GenerationState.IDLE)
        return outcome

    def _transition(self, target: GenerationState) -> None:
        validate_transition(self._state, target)
        self._state = target
        if self._on_state_change is not None:
            try:
                self._on_state_change(target)
            except Exception:
                logger.exception("Generation state listener failed")
