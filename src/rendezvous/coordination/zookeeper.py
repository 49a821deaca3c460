"""ZooKeeper coordination backend.

Uses kazoo with asyncio.to_thread for non-blocking calls. kazoo delivers
watch and connection-state callbacks on its own threads; both are marshalled
back onto the event loop with call_soon_threadsafe, so callers only ever see
them on the loop that started the client.

The initial connect is started with start_async and awaited as a future that
the CONNECTED state resolves, so cancelling start() leaves no executor thread
behind for asyncio.run to join.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Any

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

if TYPE_CHECKING:
    from kazoo.client import KazooClient

logger = logging.getLogger(__name__)


def _translate(exc: Exception, path: str) -> CoordinationError:
    """Map a kazoo exception onto the coordination error hierarchy."""
    from kazoo.exceptions import NodeExistsError as KazooNodeExistsError
    from kazoo.exceptions import NoNodeError

    if isinstance(exc, NoNodeError):
        return NodeNotFoundError(path)
    if isinstance(exc, KazooNodeExistsError):
        return NodeExistsError(path)
    return CoordinationError(f"{type(exc).__name__} on {path}: {exc}")


def _shutdown(client: KazooClient) -> None:
    client.stop()
    client.close()


class ZooKeeperCoordinationClient(CoordinationClient):
    """Coordination client backed by a kazoo session.

    Args:
        hosts: Comma separated host:port list
        session_timeout: ZooKeeper session timeout in seconds
        connect_timeout: How long start() waits for the first connection
    """

    def __init__(
        self,
        hosts: str,
        session_timeout: float = 10.0,
        connect_timeout: float = 15.0,
    ) -> None:
        self.hosts = hosts
        self.session_timeout = session_timeout
        self.connect_timeout = connect_timeout
        self._client: KazooClient | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._connected: asyncio.Future[None] | None = None

    def _get_client(self) -> KazooClient:
        if self._client is None:
            raise SessionError("Client not started")
        return self._client

    @property
    def connected(self) -> bool:
        return (
            self._connected is not None
            and self._connected.done()
            and not self._connected.cancelled()
        )

    async def start(self) -> None:
        if self._client is not None:
            return

        try:
            from kazoo.client import KazooClient
        except ImportError as exc:
            raise RuntimeError("kazoo is required for the ZooKeeper backend") from exc

        self._loop = asyncio.get_running_loop()
        self._connected = self._loop.create_future()
        self._client = KazooClient(hosts=self.hosts, timeout=self.session_timeout)
        self._client.add_listener(self._state_listener)
        self._client.start_async()

        try:
            await asyncio.wait_for(self._connected, self.connect_timeout)
        except asyncio.TimeoutError as exc:
            await self.close()
            raise SessionError(
                f"Could not connect to ZooKeeper at {self.hosts} "
                f"within {self.connect_timeout}s"
            ) from exc

        logger.info(f"Connected to ZooKeeper at {self.hosts}")

    def _state_listener(self, state: Any) -> None:
        # Runs on a kazoo thread
        loop = self._loop
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(self._on_state, str(state))

    def _on_state(self, state: str) -> None:
        if state == "CONNECTED":
            if self._connected is not None and not self._connected.done():
                self._connected.set_result(None)
            logger.debug("ZooKeeper session connected")
        else:
            logger.warning(f"ZooKeeper session state changed to {state}")

    async def _call(self, path: str, func: Any, *args: Any, **kwargs: Any) -> Any:
        from kazoo.exceptions import KazooException

        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except KazooException as exc:
            raise _translate(exc, path) from exc

    async def ensure_path(self, path: str) -> None:
        client = self._get_client()
        await self._call(path, client.ensure_path, path)

    async def create_node(
        self,
        path: str,
        data: bytes = b"",
        ephemeral: bool = False,
        sequence: bool = False,
    ) -> str:
        client = self._get_client()
        created: str = await self._call(
            path, client.create, path, data, ephemeral=ephemeral, sequence=sequence
        )
        return created

    async def get_children(
        self, path: str, watch: WatchCallback | None = None
    ) -> list[str]:
        client = self._get_client()
        kazoo_watch = self._wrap_watch(watch) if watch is not None else None
        children: list[str] = await self._call(
            path, client.get_children, path, watch=kazoo_watch
        )
        return children

    async def get_data(self, path: str) -> bytes:
        client = self._get_client()
        data, _stat = await self._call(path, client.get, path)
        return data or b""

    async def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        if not self.connected:
            # kazoo may still be dialling; nothing waits for it to give up
            threading.Thread(
                target=_shutdown, args=(client,), name="kazoo-shutdown", daemon=True
            ).start()
            logger.info("ZooKeeper connect abandoned")
            return
        await asyncio.to_thread(_shutdown, client)
        logger.info("ZooKeeper session closed")

    def _wrap_watch(self, watch: WatchCallback) -> Any:
        loop = self._loop
        assert loop is not None

        def on_event(event: Any) -> None:
            # Runs on a kazoo thread
            try:
                event_type = WatchEventType(str(event.type).lower())
            except ValueError:
                event_type = WatchEventType.NONE
            loop.call_soon_threadsafe(watch, WatchEvent(type=event_type, path=event.path))

        return on_event
