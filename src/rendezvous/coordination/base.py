"""Coordination service client interface.

A coordination service is a hierarchical store of nodes (ZooKeeper style).
The barrier only needs a small subset of it:
- create a path with all its ancestors
- create ephemeral + sequential children
- list children with a one-shot change watch
- read node data

Implementations must deliver watch callbacks on the event loop that issued
the listing, so barrier state is never touched from another thread.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class CoordinationError(Exception):
    """Raised when the coordination service rejects an operation."""


class SessionError(CoordinationError):
    """Raised when no usable session to the service can be established."""


class NodeNotFoundError(CoordinationError):
    """Raised when an operation targets a node that does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Node not found: {path}")


class NodeExistsError(CoordinationError):
    """Raised when a non-sequential create targets an existing node."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Node already exists: {path}")


class WatchEventType(str, Enum):
    """Kind of change that fired a watch."""

    CHILD = "child"
    DELETED = "deleted"
    CHANGED = "changed"
    CREATED = "created"
    NONE = "none"


@dataclass(frozen=True)
class WatchEvent:
    """A fired one-shot watch."""

    type: WatchEventType
    path: str


WatchCallback = Callable[[WatchEvent], None]


def join_path(parent: str, child: str) -> str:
    """Join a parent path and a child name."""
    return f"{parent.rstrip('/')}/{child}"


def node_name(path: str) -> str:
    """Return the last component of a node path."""
    return path.rstrip("/").rsplit("/", 1)[-1]


class CoordinationClient(ABC):
    """Abstract session-oriented client to a coordination service."""

    @abstractmethod
    async def start(self) -> None:
        """Open the session and wait until it is connected."""
        pass

    @abstractmethod
    async def ensure_path(self, path: str) -> None:
        """Create ``path`` and any missing ancestors. Succeeds if present."""
        pass

    @abstractmethod
    async def create_node(
        self,
        path: str,
        data: bytes = b"",
        ephemeral: bool = False,
        sequence: bool = False,
    ) -> str:
        """Create a node and return the path assigned by the service."""
        pass

    @abstractmethod
    async def get_children(
        self, path: str, watch: WatchCallback | None = None
    ) -> list[str]:
        """List child names, optionally arming a one-shot child watch."""
        pass

    @abstractmethod
    async def get_data(self, path: str) -> bytes:
        """Read the data stored at ``path``."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """End the session. Ephemeral nodes it created are removed."""
        pass
