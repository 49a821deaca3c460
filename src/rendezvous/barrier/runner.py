"""Barrier entry and process lifecycle.

Barrier wires registration and monitoring for one attempt. BarrierRunner
adds the process side: connecting the session, SIGINT/SIGTERM handling and
routing every outcome through the ExitSequencer.

Example:
    client = create_coordination_client()
    runner = BarrierRunner(client, BarrierConfig(participant_count=3))
    exit_code = await runner.run()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import time

from rendezvous.barrier.context import BarrierConfig, BarrierContext
from rendezvous.barrier.errors import BarrierError
from rendezvous.barrier.exit import ExitSequencer
from rendezvous.barrier.monitor import BarrierMonitor
from rendezvous.barrier.registrar import ParticipantRegistrar
from rendezvous.barrier.schemas import BarrierResult
from rendezvous.coordination.base import CoordinationClient, CoordinationError, node_name
from rendezvous.observability.logging import LogContext

logger = logging.getLogger(__name__)


class Barrier:
    """One participant's attempt at a rendezvous barrier."""

    def __init__(self, context: BarrierContext) -> None:
        self.context = context
        self.registrar = ParticipantRegistrar(context.client, context.config.node_prefix)
        self.monitor: BarrierMonitor | None = None

    @property
    def node_name(self) -> str | None:
        if self.context.node_path is None:
            return None
        return node_name(self.context.node_path)

    async def enter(self) -> BarrierResult:
        """Register and wait until the required number of participants is live.

        The session must already be started.

        Raises:
            RegistrationError: If the node cannot be created.
            ListingError: If a children listing fails.
            FetchError: If the leader cannot read a payload.
        """
        config = self.context.config
        self.context.started_at = time.monotonic()
        with LogContext(barrier_path=config.barrier_path):
            node_path = await self.registrar.register(config.barrier_path, config.payload())
            self.context.node_path = node_path
            name = node_name(node_path)

            self.monitor = BarrierMonitor(self.context, name)
            with LogContext(node=name):
                report = await self.monitor.run()

        aggregator = self.monitor.aggregator
        return BarrierResult(
            node_path=node_path,
            node_name=name,
            participants=report.children,
            elapsed_seconds=self.monitor.latch.elapsed(),
            is_leader=report.is_leader,
            stats=aggregator.statistics(self.monitor.children) if aggregator.cache else None,
            rounds=list(self.monitor.reports),
        )


class BarrierRunner:
    """Runs a barrier attempt as a process: connect, enter, exit.

    Args:
        client: Session to the coordination service (not yet started)
        config: Barrier configuration
        handle_signals: Install SIGINT/SIGTERM handlers on the running loop
    """

    def __init__(
        self,
        client: CoordinationClient,
        config: BarrierConfig,
        handle_signals: bool = True,
    ) -> None:
        self.context = BarrierContext(client=client, config=config)
        self.barrier = Barrier(self.context)
        self.sequencer = ExitSequencer(client, exit_delay=config.exit_delay)
        self.handle_signals = handle_signals

        self.result: BarrierResult | None = None
        self.error: BaseException | None = None

        self._task: asyncio.Task[None] | None = None
        self._interrupt_task: asyncio.Task[None] | None = None

    async def run(self) -> int:
        """Run until the session is closed and return the process exit code."""
        loop = asyncio.get_running_loop()
        signals = (signal.SIGINT, signal.SIGTERM) if self.handle_signals else ()
        for sig in signals:
            loop.add_signal_handler(sig, self.request_shutdown, sig.name)

        self._task = asyncio.create_task(self._attempt())
        try:
            return await self.sequencer.wait()
        finally:
            for sig in signals:
                loop.remove_signal_handler(sig)
            if not self._task.done():
                self._task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._task

    def request_shutdown(self, reason: str = "interrupted") -> None:
        """Tear down immediately; in-flight coordination calls are abandoned."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._interrupt_task = asyncio.create_task(self.sequencer.interrupt(reason))

    async def _attempt(self) -> None:
        try:
            await self.context.client.start()
            self.result = await self.barrier.enter()
        except (BarrierError, CoordinationError) as exc:
            self.error = exc
            await self.sequencer.abort(exc)
            return
        except Exception as exc:
            logger.exception("Unexpected error in barrier attempt")
            self.error = exc
            await self.sequencer.abort(exc)
            return

        self.sequencer.schedule_exit()
