"""Leader election and metadata aggregation.

The leader of an evaluation round is the participant whose node name is
smallest in byte order. Sequence suffixes are zero padded to a fixed width,
so this is also creation order: the leader is the earliest registered
participant that is still alive. No lock or lease is involved; every process
computes the same answer from the same listing.

Only the leader reads peer payloads, and only for nodes it has not seen
before. Other participants never populate a cache, so n participants
reacting to one change cost n listings rather than n * n reads.

Example:
    aggregator = LeaderAggregator(client, "/barrier")

    if elect_leader(children) == my_node and added:
        result = await aggregator.aggregate(children, added)
        print(result.stats.mean)
"""

from __future__ import annotations

import asyncio
import logging
import statistics
import time
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from rendezvous.barrier.errors import DecodeError, FetchError
from rendezvous.barrier.schemas import AggregateStats, ParticipantPayload
from rendezvous.coordination.base import (
    CoordinationClient,
    CoordinationError,
    NodeNotFoundError,
    join_path,
)

logger = logging.getLogger(__name__)


def elect_leader(children: Iterable[str]) -> str | None:
    """Return the byte-wise smallest child name, or None for no children."""
    return min(children, key=lambda name: name.encode(), default=None)


def compute_stats(values: Iterable[float | None]) -> AggregateStats:
    """Max, min and mean over the truthy values.

    Zero is dropped together with missing values.
    """
    kept = [value for value in values if value]
    if not kept:
        return AggregateStats()
    return AggregateStats(
        count=len(kept),
        maximum=max(kept),
        minimum=min(kept),
        mean=statistics.fmean(kept),
    )


@dataclass
class AggregationRound:
    """Result of one leader aggregation round."""

    stats: AggregateStats
    observed: dict[str, ParticipantPayload | None] = field(default_factory=dict)
    fetch_seconds: float = 0.0


class LeaderAggregator:
    """Fetches newly seen participants' payloads and keeps running stats.

    The metadata cache only grows, and only while this process is leader.
    A process that becomes leader later starts from whatever it cached
    itself, which is nothing if it has never led.

    Args:
        client: Session used for reading payloads
        root_path: Barrier root the participant nodes live under
    """

    def __init__(self, client: CoordinationClient, root_path: str):
        self.client = client
        self.root_path = root_path
        self._cache: dict[str, ParticipantPayload] = {}

    @property
    def cache(self) -> Mapping[str, ParticipantPayload]:
        """Read-only view of decoded payloads by node name."""
        return MappingProxyType(self._cache)

    def metadata(self, name: str | None) -> ParticipantPayload | None:
        """Cached payload of ``name``, if this process ever fetched it."""
        if name is None:
            return None
        return self._cache.get(name)

    def statistics(self, children: Iterable[str]) -> AggregateStats:
        """Stats over the cached values of the given live children."""
        return compute_stats(
            self._cache[child].value for child in children if child in self._cache
        )

    async def aggregate(
        self, children: Collection[str], added: Collection[str]
    ) -> AggregationRound:
        """Fetch payloads for ``added`` and recompute stats over ``children``.

        Raises:
            FetchError: If a read fails for a reason other than the node
                having disappeared.
        """
        start = time.monotonic()
        ordered = sorted(added, key=lambda name: name.encode())
        payloads = await asyncio.gather(*(self._fetch(name) for name in ordered))
        fetch_seconds = time.monotonic() - start

        observed = dict(zip(ordered, payloads))
        for name, payload in observed.items():
            if payload is not None:
                self._cache[name] = payload

        stats = self.statistics(children)
        logger.info(
            "Known values: %d, max=%s, min=%s, mean=%s",
            stats.count,
            stats.maximum,
            stats.minimum,
            stats.mean,
            extra={
                "values": stats.count,
                "max": stats.maximum,
                "min": stats.minimum,
                "mean": stats.mean,
            },
        )
        for name, payload in observed.items():
            logger.info(
                "New participant %s metadata: %s",
                name,
                payload.model_dump(by_alias=True) if payload is not None else None,
            )
        logger.info(
            "New participants: %d, fetched in %.1fs",
            len(ordered),
            fetch_seconds,
            extra={"added": len(ordered), "fetch_seconds": round(fetch_seconds, 3)},
        )
        return AggregationRound(stats=stats, observed=observed, fetch_seconds=fetch_seconds)

    async def _fetch(self, name: str) -> ParticipantPayload | None:
        path = join_path(self.root_path, name)
        try:
            raw = await self.client.get_data(path)
        except NodeNotFoundError:
            logger.warning("Participant %s left before its payload was read", name)
            return None
        except CoordinationError as exc:
            raise FetchError(path, str(exc)) from exc

        try:
            return ParticipantPayload.decode(raw)
        except DecodeError as exc:
            logger.warning("Ignoring participant %s: %s", name, exc)
            return None
