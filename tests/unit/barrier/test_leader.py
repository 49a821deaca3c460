"""Tests for leader election and metadata aggregation."""

from unittest.mock import AsyncMock

import pytest

from rendezvous.barrier.errors import FetchError
from rendezvous.barrier.leader import LeaderAggregator, compute_stats, elect_leader
from rendezvous.barrier.schemas import AggregateStats, ParticipantPayload
from rendezvous.coordination.base import CoordinationError, NodeNotFoundError
from rendezvous.coordination.memory import (
    InMemoryCoordinationClient,
    InMemoryCoordinationService,
)


class TestElectLeader:
    """Tests for elect_leader."""

    def test_smallest_name_wins(self) -> None:
        """The earliest sequence number leads regardless of listing order."""
        children = ["participant-0000000007", "participant-0000000002", "participant-0000000010"]

        assert elect_leader(children) == "participant-0000000002"

    def test_byte_order(self) -> None:
        """Names compare byte-wise, uppercase before lowercase."""
        assert elect_leader(["b-1", "a-2", "B-3"]) == "B-3"

    def test_no_children(self) -> None:
        """An empty listing has no leader."""
        assert elect_leader([]) is None

    def test_next_smallest_after_departure(self) -> None:
        """Removing the leader hands over to the next smallest."""
        children = {"participant-0000000000", "participant-0000000001", "participant-0000000002"}
        children.discard(elect_leader(children))

        assert elect_leader(children) == "participant-0000000001"


class TestComputeStats:
    """Tests for compute_stats."""

    def test_max_min_mean(self) -> None:
        """Stats over plain values."""
        assert compute_stats([10, 20, 30]) == AggregateStats(
            count=3, maximum=30, minimum=10, mean=20
        )

    def test_zero_and_none_are_dropped(self) -> None:
        """Falsy values (zero included) do not take part in stats."""
        stats = compute_stats([0, None, 4, 8])

        assert stats.count == 2
        assert stats.minimum == 4
        assert stats.mean == 6

    def test_negative_values_are_kept(self) -> None:
        """Negative numbers are truthy and count."""
        assert compute_stats([-5, 5]).mean == 0

    def test_no_values(self) -> None:
        """Without values every statistic is None."""
        assert compute_stats([None, 0]) == AggregateStats()


class TestLeaderAggregator:
    """Tests for LeaderAggregator against the in-memory backend."""

    @pytest.fixture
    async def client(self, service: InMemoryCoordinationService) -> InMemoryCoordinationClient:
        """A started client with the barrier root in place."""
        client = service.client()
        await client.start()
        await client.ensure_path("/barrier")
        return client

    async def _add(self, client: InMemoryCoordinationClient, data: bytes) -> str:
        path = await client.create_node("/barrier/participant-", data, sequence=True)
        return path.rsplit("/", 1)[1]

    async def test_aggregate_fetches_added(self, client: InMemoryCoordinationClient) -> None:
        """Added participants are fetched, cached and aggregated."""
        names = [
            await self._add(client, ParticipantPayload(value=v).encode()) for v in (10, 20, 30)
        ]
        aggregator = LeaderAggregator(client, "/barrier")

        result = await aggregator.aggregate(names, names)

        assert set(aggregator.cache) == set(names)
        assert result.stats == AggregateStats(count=3, maximum=30, minimum=10, mean=20)
        assert result.observed[names[1]] == ParticipantPayload(value=20)
        assert result.fetch_seconds >= 0

    async def test_only_added_are_fetched(self, client: InMemoryCoordinationClient) -> None:
        """Already cached children are not read again."""
        first = await self._add(client, ParticipantPayload(value=1).encode())
        second = await self._add(client, ParticipantPayload(value=3).encode())
        aggregator = LeaderAggregator(client, "/barrier")
        await aggregator.aggregate([first], [first])

        reads: list[str] = []
        original_get_data = client.get_data

        async def spy(path: str) -> bytes:
            reads.append(path)
            return await original_get_data(path)

        client.get_data = spy
        result = await aggregator.aggregate([first, second], [second])

        assert reads == [f"/barrier/{second}"]
        assert result.stats.mean == 2

    async def test_stats_cover_only_live_children(
        self, client: InMemoryCoordinationClient
    ) -> None:
        """Cached values of departed children are left out."""
        first = await self._add(client, ParticipantPayload(value=100).encode())
        second = await self._add(client, ParticipantPayload(value=2).encode())
        aggregator = LeaderAggregator(client, "/barrier")
        await aggregator.aggregate([first, second], [first, second])

        assert aggregator.statistics([second]) == AggregateStats(
            count=1, maximum=2, minimum=2, mean=2
        )

    async def test_undecodable_payload_is_skipped(
        self, client: InMemoryCoordinationClient
    ) -> None:
        """A malformed payload is logged and left out of the cache."""
        good = await self._add(client, ParticipantPayload(value=5).encode())
        bad = await self._add(client, b"{broken")
        aggregator = LeaderAggregator(client, "/barrier")

        result = await aggregator.aggregate([good, bad], [good, bad])

        assert bad not in aggregator.cache
        assert result.observed[bad] is None
        assert result.stats.count == 1

    async def test_departed_node_is_skipped(self, client: InMemoryCoordinationClient) -> None:
        """A node deleted between listing and fetch is omitted."""
        aggregator = LeaderAggregator(client, "/barrier")
        client.get_data = AsyncMock(side_effect=NodeNotFoundError("/barrier/participant-9"))

        result = await aggregator.aggregate(["participant-9"], ["participant-9"])

        assert aggregator.cache == {}
        assert result.stats == AggregateStats()

    async def test_session_failure_raises_fetch_error(
        self, client: InMemoryCoordinationClient
    ) -> None:
        """Any other read failure aborts the round."""
        aggregator = LeaderAggregator(client, "/barrier")
        client.get_data = AsyncMock(side_effect=CoordinationError("connection loss"))

        with pytest.raises(FetchError, match="participant-1"):
            await aggregator.aggregate(["participant-1"], ["participant-1"])

    async def test_metadata_lookup(self, client: InMemoryCoordinationClient) -> None:
        """metadata() returns cached payloads and None otherwise."""
        name = await self._add(client, ParticipantPayload(repository="a/b", value=7).encode())
        aggregator = LeaderAggregator(client, "/barrier")

        assert aggregator.metadata(name) is None
        await aggregator.aggregate([name], [name])

        assert aggregator.metadata(name) == ParticipantPayload(repository="a/b", value=7)
        assert aggregator.metadata(None) is None
