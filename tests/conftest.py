"""Global pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import pytest

from rendezvous.coordination.memory import InMemoryCoordinationService

WaitUntil = Callable[[Callable[[], bool]], Awaitable[None]]


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "zookeeper: test needs a live ZooKeeper (RENDEZVOUS_TEST_ZK_HOSTS)"
    )


@pytest.fixture
def service() -> InMemoryCoordinationService:
    """A fresh in-memory coordination service."""
    return InMemoryCoordinationService()


@pytest.fixture
def wait_until() -> WaitUntil:
    """Poll a predicate on the event loop until it holds."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("Condition not met before timeout")
            await asyncio.sleep(0.01)

    return _wait
