"""Coordination service clients.

Provides the session-oriented client the barrier talks to:
- ZooKeeperCoordinationClient: production backend built on kazoo
- InMemoryCoordinationClient: single-process backend with ZooKeeper semantics

Example:
    from rendezvous.coordination import create_coordination_client

    client = create_coordination_client("zookeeper", hosts="zk1:2181,zk2:2181")
    await client.start()
    path = await client.create_node("/barrier/participant-", b"{}", ephemeral=True, sequence=True)
"""

from rendezvous.coordination.base import (
    CoordinationClient,
    CoordinationError,
    NodeExistsError,
    NodeNotFoundError,
    SessionError,
    WatchCallback,
    WatchEvent,
    WatchEventType,
)
from rendezvous.coordination.memory import (
    InMemoryCoordinationClient,
    InMemoryCoordinationService,
)
from rendezvous.coordination.runtime import create_coordination_client
from rendezvous.coordination.zookeeper import ZooKeeperCoordinationClient

__all__ = [
    "CoordinationClient",
    "CoordinationError",
    "NodeExistsError",
    "NodeNotFoundError",
    "SessionError",
    "WatchCallback",
    "WatchEvent",
    "WatchEventType",
    "InMemoryCoordinationClient",
    "InMemoryCoordinationService",
    "ZooKeeperCoordinationClient",
    "create_coordination_client",
]
