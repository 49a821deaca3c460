"""Exit sequencing for a barrier participant.

There are three ways out, and the session is closed exactly once whichever
one wins:
1. Barrier passed: wait ``exit_delay`` seconds, close, exit 0. The delay lets
   peers observe the passage before this node disappears.
2. Attempt failed: close immediately, exit 1.
3. Interrupted by a signal: cancel any pending delayed exit, close
   immediately, exit 0.

Example:
    sequencer = ExitSequencer(client, exit_delay=2.0)
    sequencer.schedule_exit()
    code = await sequencer.wait()
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from rendezvous.coordination.base import CoordinationClient, CoordinationError

logger = logging.getLogger(__name__)

DEFAULT_EXIT_DELAY = 2.0


class ExitReason(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    INTERRUPTED = "interrupted"


EXIT_CODES = {
    ExitReason.PASSED: 0,
    ExitReason.FAILED: 1,
    ExitReason.INTERRUPTED: 0,
}


class ExitSequencer:
    """Owns the single teardown of the coordination session.

    Args:
        client: The session to close
        exit_delay: Seconds to wait after passing before closing
    """

    def __init__(self, client: CoordinationClient, exit_delay: float = DEFAULT_EXIT_DELAY):
        self.client = client
        self.exit_delay = exit_delay
        self.reason: ExitReason | None = None
        self._closing = False
        self._pending: asyncio.Task[None] | None = None
        self._done = asyncio.Event()

    @property
    def exit_code(self) -> int | None:
        return EXIT_CODES[self.reason] if self.reason is not None else None

    def schedule_exit(self) -> None:
        """Schedule the delayed success exit. Later calls are ignored."""
        if self._closing or self._pending is not None:
            return
        logger.info(
            "Barrier passed, waiting %.1fs for all participants to observe it",
            self.exit_delay,
        )
        self._pending = asyncio.create_task(self._delayed_exit())

    async def abort(self, exc: BaseException) -> None:
        """Close immediately after an attempt-level failure."""
        if self._closing:
            return
        logger.error("Barrier failed: %s", exc)
        self._cancel_pending()
        await self._terminate(ExitReason.FAILED)

    async def interrupt(self, reason: str = "interrupted") -> None:
        """Close immediately on user request, regardless of barrier state."""
        if self._closing:
            return
        logger.info("Shutdown requested: %s", reason)
        self._cancel_pending()
        await self._terminate(ExitReason.INTERRUPTED)

    async def wait(self) -> int:
        """Block until the session is closed and return the exit code."""
        await self._done.wait()
        code = self.exit_code
        if code is None:
            raise RuntimeError("Exit sequence finished without a reason")
        return code

    async def _delayed_exit(self) -> None:
        await asyncio.sleep(self.exit_delay)
        logger.info("Exiting safely")
        await self._terminate(ExitReason.PASSED)

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()

    async def _terminate(self, reason: ExitReason) -> None:
        if self._closing:
            return
        self._closing = True
        try:
            await self.client.close()
        except CoordinationError as exc:
            logger.warning("Error closing coordination session: %s", exc)
        finally:
            self.reason = reason
            self._done.set()
