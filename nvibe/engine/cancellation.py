"""Cooperative cancellation token shared between a request and its collaborator."""
from __future__ import annotations

import asyncio


class CancellationToken:
    """One-shot flag. Once cancelled it stays cancelled."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        """Block until cancel() is called."""
        await self._event.wait()
