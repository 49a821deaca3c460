"""Quorum detection and the one-way barrier latch."""

from __future__ import annotations

import logging
import time
from collections.abc import Collection

from rendezvous.barrier.schemas import QuorumDecision

logger = logging.getLogger(__name__)


class BarrierLatch:
    """Flag that flips from waiting to passed exactly once."""

    def __init__(self, started_at: float | None = None) -> None:
        self.started_at = time.monotonic() if started_at is None else started_at
        self.passed_at: float | None = None

    @property
    def passed(self) -> bool:
        return self.passed_at is not None

    def trip(self) -> bool:
        """Mark the barrier passed. Returns True only on the first call."""
        if self.passed_at is not None:
            return False
        self.passed_at = time.monotonic()
        return True

    def elapsed(self) -> float:
        """Seconds from the start of the attempt until passing (or now)."""
        end = self.passed_at if self.passed_at is not None else time.monotonic()
        return end - self.started_at


def evaluate_quorum(
    children: Collection[str], required_count: int, latch: BarrierLatch
) -> QuorumDecision:
    """Compare the live child count with the threshold.

    Only the count matters: a participant whose payload could not be read
    still counts. Once the latch has tripped this is a no-op, even if the
    count has since dropped.
    """
    if latch.passed:
        return QuorumDecision.PASSED

    ready = len(children)
    if ready < required_count:
        logger.info(
            "Waiting, %d/%d participants ready",
            ready,
            required_count,
            extra={"ready": ready, "required": required_count},
        )
        return QuorumDecision.CONTINUE

    latch.trip()
    logger.info(
        "Barrier passed, all participants ready (%d/%d) after %.1fs",
        ready,
        required_count,
        latch.elapsed(),
        extra={
            "ready": ready,
            "required": required_count,
            "elapsed_seconds": round(latch.elapsed(), 3),
        },
    )
    return QuorumDecision.PASSED
