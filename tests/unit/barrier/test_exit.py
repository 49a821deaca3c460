"""Tests for exit sequencing."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from rendezvous.barrier.exit import ExitReason, ExitSequencer
from rendezvous.coordination.base import CoordinationError


class TestExitSequencer:
    """Tests for ExitSequencer."""

    @pytest.fixture
    def client(self) -> AsyncMock:
        """Create a mock coordination client."""
        return AsyncMock()

    async def test_scheduled_exit_waits_for_delay(self, client: AsyncMock) -> None:
        """The success exit only closes after the delay."""
        sequencer = ExitSequencer(client, exit_delay=0.05)

        sequencer.schedule_exit()
        await asyncio.sleep(0.01)
        client.close.assert_not_awaited()

        assert await asyncio.wait_for(sequencer.wait(), timeout=1.0) == 0
        assert sequencer.reason is ExitReason.PASSED
        client.close.assert_awaited_once()

    async def test_schedule_exit_twice_closes_once(self, client: AsyncMock) -> None:
        """Repeated scheduling is ignored."""
        sequencer = ExitSequencer(client, exit_delay=0)

        sequencer.schedule_exit()
        sequencer.schedule_exit()
        await sequencer.wait()
        await asyncio.sleep(0.01)

        client.close.assert_awaited_once()

    async def test_abort_closes_immediately(self, client: AsyncMock) -> None:
        """A failure closes at once and exits 1."""
        sequencer = ExitSequencer(client, exit_delay=10)

        await sequencer.abort(RuntimeError("boom"))

        assert await sequencer.wait() == 1
        assert sequencer.reason is ExitReason.FAILED
        client.close.assert_awaited_once()

    async def test_interrupt_cancels_pending_exit(self, client: AsyncMock) -> None:
        """A signal bypasses the delayed exit and exits 0."""
        sequencer = ExitSequencer(client, exit_delay=10)
        sequencer.schedule_exit()

        await sequencer.interrupt("SIGTERM")

        assert await sequencer.wait() == 0
        assert sequencer.reason is ExitReason.INTERRUPTED
        client.close.assert_awaited_once()

    async def test_paths_are_mutually_exclusive(self, client: AsyncMock) -> None:
        """Whichever path runs first wins; the session is closed once."""
        sequencer = ExitSequencer(client, exit_delay=0)

        await sequencer.interrupt()
        await sequencer.abort(RuntimeError("late"))
        sequencer.schedule_exit()
        await asyncio.sleep(0.01)

        assert sequencer.reason is ExitReason.INTERRUPTED
        assert sequencer.exit_code == 0
        client.close.assert_awaited_once()

    async def test_close_error_still_completes(self, client: AsyncMock) -> None:
        """A failing close is logged and the exit still completes."""
        client.close.side_effect = CoordinationError("already gone")
        sequencer = ExitSequencer(client, exit_delay=0)

        await sequencer.abort(RuntimeError("boom"))

        assert await sequencer.wait() == 1

    async def test_exit_code_unset_until_closed(self, client: AsyncMock) -> None:
        """No exit code exists until one of the paths has closed the session."""
        sequencer = ExitSequencer(client, exit_delay=10)
        waiting = asyncio.create_task(sequencer.wait())
        await asyncio.sleep(0.01)

        assert sequencer.exit_code is None
        assert not waiting.done()

        await sequencer.interrupt("SIGTERM")

        assert await asyncio.wait_for(waiting, timeout=1.0) == 0
        assert sequencer.exit_code == 0

    async def test_wait_without_reason_raises(self, client: AsyncMock) -> None:
        """A finished sequence without a reason is an error, not a silent exit."""
        sequencer = ExitSequencer(client)
        sequencer._done.set()

        with pytest.raises(RuntimeError, match="without a reason"):
            await sequencer.wait()
