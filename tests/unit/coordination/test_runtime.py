"""Tests for coordination backend selection."""

import pytest

from rendezvous.config import Settings
from rendezvous.coordination.memory import InMemoryCoordinationClient
from rendezvous.coordination.runtime import create_coordination_client
from rendezvous.coordination.zookeeper import ZooKeeperCoordinationClient


class TestCreateCoordinationClient:
    """Tests for create_coordination_client."""

    def test_zookeeper_from_settings(self) -> None:
        """The zookeeper backend uses the configured hosts and timeouts."""
        config = Settings(
            coordination_backend="zookeeper",
            zk_hosts="zk1:2181,zk2:2181",
            zk_session_timeout=4.0,
            zk_connect_timeout=6.0,
        )

        client = create_coordination_client(config=config)

        assert isinstance(client, ZooKeeperCoordinationClient)
        assert client.hosts == "zk1:2181,zk2:2181"
        assert client.session_timeout == 4.0
        assert client.connect_timeout == 6.0

    def test_hosts_override(self) -> None:
        """Explicit hosts win over configuration."""
        client = create_coordination_client("zk", hosts="other:2181", config=Settings())

        assert isinstance(client, ZooKeeperCoordinationClient)
        assert client.hosts == "other:2181"

    def test_memory_backend(self) -> None:
        """The memory backend gets a private service."""
        client = create_coordination_client("memory", config=Settings())

        assert isinstance(client, InMemoryCoordinationClient)

    def test_unknown_backend(self) -> None:
        """Unknown backends are rejected."""
        with pytest.raises(ValueError, match="Unsupported coordination_backend"):
            create_coordination_client("etcd", config=Settings())
