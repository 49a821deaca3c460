"""In-memory coordination service.

Suitable for single-process runs and tests. Several clients can share one
InMemoryCoordinationService; each client is a separate session with its own
ephemeral nodes, exactly as separate processes would be against ZooKeeper.

Semantics kept from ZooKeeper:
- Sequential nodes get a per-parent, zero padded 10 digit counter suffix
- Ephemeral nodes are removed when the owning session closes
- Child watches are one-shot and fire asynchronously on the event loop
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field

from rendezvous.coordination.base import (
    CoordinationClient,
    NodeExistsError,
    NodeNotFoundError,
    SessionError,
    WatchCallback,
    WatchEvent,
    WatchEventType,
    join_path,
)

logger = logging.getLogger(__name__)

SEQUENCE_WIDTH = 10


@dataclass
class _Node:
    data: bytes = b""
    owner: int | None = None
    children: set[str] = field(default_factory=set)
    sequence: int = 0


@dataclass(frozen=True)
class _Watch:
    session_id: int
    loop: asyncio.AbstractEventLoop
    callback: WatchCallback


def _parent_of(path: str) -> str:
    parent = path.rsplit("/", 1)[0]
    return parent or "/"


def _normalize(path: str) -> str:
    if not path.startswith("/"):
        raise ValueError(f"Path must be absolute: {path!r}")
    return path.rstrip("/") or "/"


class InMemoryCoordinationService:
    """Shared node tree that InMemoryCoordinationClient sessions talk to."""

    def __init__(self) -> None:
        self._nodes: dict[str, _Node] = {"/": _Node()}
        self._child_watches: dict[str, list[_Watch]] = {}
        self._session_ids = itertools.count(1)

    def client(self) -> InMemoryCoordinationClient:
        """Create a new session-bound client."""
        return InMemoryCoordinationClient(self)

    def new_session(self) -> int:
        return next(self._session_ids)

    def exists(self, path: str) -> bool:
        return _normalize(path) in self._nodes

    def ensure_path(self, path: str) -> None:
        path = _normalize(path)
        if path in self._nodes:
            return
        self.ensure_path(_parent_of(path))
        self._add(path, _Node())

    def create(
        self,
        path: str,
        data: bytes,
        owner: int | None,
        sequence: bool,
    ) -> str:
        path = _normalize(path)
        parent_path = _parent_of(path)
        parent = self._nodes.get(parent_path)
        if parent is None:
            raise NodeNotFoundError(parent_path)

        if sequence:
            path = f"{path}{parent.sequence:0{SEQUENCE_WIDTH}d}"
        if path in self._nodes:
            raise NodeExistsError(path)

        # The counter advances on every create under the parent
        parent.sequence += 1
        self._add(path, _Node(data=data, owner=owner))
        return path

    def delete(self, path: str) -> None:
        path = _normalize(path)
        node = self._nodes.pop(path, None)
        if node is None:
            raise NodeNotFoundError(path)
        parent_path = _parent_of(path)
        self._nodes[parent_path].children.discard(path.rsplit("/", 1)[1])
        self._fire_child_watches(parent_path)

    def get_children(
        self, path: str, watch: WatchCallback | None = None, session_id: int = 0
    ) -> list[str]:
        path = _normalize(path)
        node = self._nodes.get(path)
        if node is None:
            raise NodeNotFoundError(path)
        if watch is not None:
            self._child_watches.setdefault(path, []).append(
                _Watch(session_id, asyncio.get_running_loop(), watch)
            )
        return list(node.children)

    def get_data(self, path: str) -> bytes:
        path = _normalize(path)
        node = self._nodes.get(path)
        if node is None:
            raise NodeNotFoundError(path)
        return node.data

    def expire_session(self, session_id: int) -> None:
        """Drop the session's watches and remove its ephemeral nodes."""
        for watches in self._child_watches.values():
            watches[:] = [w for w in watches if w.session_id != session_id]

        owned = [path for path, node in self._nodes.items() if node.owner == session_id]
        for path in owned:
            self.delete(path)
        if owned:
            logger.debug("Session %d expired, removed %d ephemeral node(s)", session_id, len(owned))

    def _add(self, path: str, node: _Node) -> None:
        self._nodes[path] = node
        parent_path = _parent_of(path)
        self._nodes[parent_path].children.add(path.rsplit("/", 1)[1])
        self._fire_child_watches(parent_path)

    def _fire_child_watches(self, path: str) -> None:
        watches = self._child_watches.pop(path, [])
        event = WatchEvent(type=WatchEventType.CHILD, path=path)
        for watch in watches:
            watch.loop.call_soon(watch.callback, event)


class InMemoryCoordinationClient(CoordinationClient):
    """A session against an InMemoryCoordinationService."""

    def __init__(self, service: InMemoryCoordinationService) -> None:
        self.service = service
        self.session_id: int | None = None
        self._closed = False

    @property
    def connected(self) -> bool:
        return self.session_id is not None and not self._closed

    def _require_session(self) -> int:
        if not self.connected:
            raise SessionError("Session is not connected")
        assert self.session_id is not None
        return self.session_id

    async def start(self) -> None:
        if self._closed:
            raise SessionError("Session already closed")
        if self.session_id is None:
            self.session_id = self.service.new_session()
            logger.debug("In-memory session %d connected", self.session_id)

    async def ensure_path(self, path: str) -> None:
        self._require_session()
        self.service.ensure_path(path)

    async def create_node(
        self,
        path: str,
        data: bytes = b"",
        ephemeral: bool = False,
        sequence: bool = False,
    ) -> str:
        session_id = self._require_session()
        return self.service.create(
            path,
            data,
            owner=session_id if ephemeral else None,
            sequence=sequence,
        )

    async def get_children(
        self, path: str, watch: WatchCallback | None = None
    ) -> list[str]:
        session_id = self._require_session()
        return self.service.get_children(path, watch, session_id=session_id)

    async def get_data(self, path: str) -> bytes:
        self._require_session()
        return self.service.get_data(path)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.session_id is not None:
            self.service.expire_session(self.session_id)
