"""Runtime wiring for the coordination backend."""

from __future__ import annotations

from rendezvous.config import Settings, settings
from rendezvous.coordination.base import CoordinationClient
from rendezvous.coordination.memory import InMemoryCoordinationService
from rendezvous.coordination.zookeeper import ZooKeeperCoordinationClient


def create_coordination_client(
    backend: str | None = None,
    hosts: str | None = None,
    config: Settings | None = None,
) -> CoordinationClient:
    """Create a coordination client based on configuration.

    ``backend`` and ``hosts`` override the configured values.
    """
    config = config or settings
    backend = (backend or config.coordination_backend).lower()

    if backend in {"zookeeper", "zk"}:
        return ZooKeeperCoordinationClient(
            hosts=hosts or config.zk_hosts,
            session_timeout=config.zk_session_timeout,
            connect_timeout=config.zk_connect_timeout,
        )

    if backend in {"memory", "inmemory", "in_memory"}:
        # A private service: only this process takes part
        return InMemoryCoordinationService().client()

    raise ValueError("Unsupported coordination_backend. Supported values: zookeeper, memory.")
