"""Re-arming watch loop over the barrier's children.

Watches are one-shot and notifications are at-least-once and unordered, so a
fired watch only means "something changed". Every round re-lists the full
set of children (which also arms the next watch) and re-evaluates from that
snapshot:

    WAITING -> EVALUATING -> WAITING
                          -> PASSED (terminal, no further watches)

The diff against the previous listing only tells the leader which payloads
it has not read yet. The quorum decision always uses the live count.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from enum import Enum

from rendezvous.barrier.context import BarrierContext
from rendezvous.barrier.errors import ListingError
from rendezvous.barrier.leader import LeaderAggregator, elect_leader
from rendezvous.barrier.quorum import BarrierLatch, evaluate_quorum
from rendezvous.barrier.schemas import QuorumDecision, RoundReport
from rendezvous.coordination.base import CoordinationError, WatchEvent

logger = logging.getLogger(__name__)


class MonitorState(str, Enum):
    WAITING = "waiting"
    EVALUATING = "evaluating"
    PASSED = "passed"


class BarrierMonitor:
    """Tracks membership of one barrier from this participant's point of view.

    Args:
        context: The attempt's shared context
        node_name: This participant's node name (not the full path)
        aggregator: Leader-side metadata aggregator (created if omitted)
        latch: Barrier latch (created from the context start time if omitted)
    """

    def __init__(
        self,
        context: BarrierContext,
        node_name: str,
        aggregator: LeaderAggregator | None = None,
        latch: BarrierLatch | None = None,
    ) -> None:
        self.context = context
        self.node_name = node_name
        self.aggregator = aggregator or LeaderAggregator(
            context.client, context.config.barrier_path
        )
        self.latch = latch or BarrierLatch(started_at=context.started_at)

        self.state = MonitorState.WAITING
        self.children: set[str] = set()
        self.last_children: set[str] = set()
        self.reports: list[RoundReport] = []

        self._changes: asyncio.Queue[WatchEvent] = asyncio.Queue()

    @property
    def root_path(self) -> str:
        return self.context.config.barrier_path

    @property
    def leader(self) -> str | None:
        """Leader of the most recent round."""
        return elect_leader(self.children)

    @property
    def is_leader(self) -> bool:
        return self.leader == self.node_name

    async def run(self) -> RoundReport:
        """Watch until the barrier passes and return the passing round.

        Raises:
            ListingError: If a listing fails.
            FetchError: If the leader cannot read a participant's payload.
        """
        while True:
            children = await self._list_children()
            report = await self.evaluate(children)
            if report.decision is QuorumDecision.PASSED:
                return report

            await self._changes.get()
            # Collapse notifications that piled up into one re-list
            while not self._changes.empty():
                self._changes.get_nowait()

    async def evaluate(self, children: Iterable[str]) -> RoundReport:
        """Run one evaluation round over a full children listing."""
        self.state = MonitorState.EVALUATING

        self.children = set(children)
        added = self.children - self.last_children
        self.last_children = self.children

        leader = elect_leader(self.children)
        is_leader = leader is not None and leader == self.node_name

        report = RoundReport(
            round=len(self.reports) + 1,
            children=len(self.children),
            required=self.context.config.participant_count,
            added=sorted(added),
            leader=leader,
            is_leader=is_leader,
            decision=QuorumDecision.CONTINUE,
        )

        if is_leader and added:
            aggregation = await self.aggregator.aggregate(self.children, added)
            report.stats = aggregation.stats
            report.fetch_seconds = aggregation.fetch_seconds

        # Non-leaders never fetch, so this is None for them
        report.leader_metadata = self.aggregator.metadata(leader)
        logger.info(
            "Leader %s metadata: %s",
            leader,
            report.leader_metadata.model_dump(by_alias=True) if report.leader_metadata else None,
            extra={"leader": leader, "is_leader": is_leader},
        )

        report.decision = evaluate_quorum(
            self.children, self.context.config.participant_count, self.latch
        )
        self.state = (
            MonitorState.PASSED
            if report.decision is QuorumDecision.PASSED
            else MonitorState.WAITING
        )
        self.reports.append(report)
        return report

    async def _list_children(self) -> list[str]:
        try:
            return await self.context.client.get_children(
                self.root_path, watch=self._on_children_changed
            )
        except CoordinationError as exc:
            raise ListingError(self.root_path, str(exc)) from exc

    def _on_children_changed(self, event: WatchEvent) -> None:
        # Delivered on the event loop by the coordination client
        if self.state is MonitorState.PASSED:
            return
        logger.debug("Watch fired: %s on %s", event.type.value, event.path)
        self._changes.put_nowait(event)
