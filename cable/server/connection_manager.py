import asyncio
from typing import Final

from cable.logger import get_logger
from cable.server.connection import CableConnection

log = get_logger(__name__)


class CableConnectionManager:
    """
    Registry of live client connections.

    Unregistering a connection tears down all of its channel subscriptions
    and closes its socket. All operations modifying the internal state are
    protected by an asyncio.Lock.
    """

    def __init__(self) -> None:
        self._connections: dict[str, CableConnection] = {}
        self._lock: Final = asyncio.Lock()

    async def register(self, connection: CableConnection) -> None:
        async with self._lock:
            self._connections[connection.id] = connection
        log.debug(f"Connection registered: {connection.id}")

    async def unregister(self, connection_id: str, *, close_socket: bool = False) -> None:
        """
        Remove a connection, unsubscribing its channels.

        Args:
            connection_id: The id of the connection to remove.
            close_socket: Also close the underlying WebSocket.
        """
        async with self._lock:
            connection = self._connections.pop(connection_id, None)
        if connection is None:
            return

        await connection.close()
        if close_socket:
            await self._safe_close(connection)
        log.debug(f"Connection unregistered: {connection_id}")

    async def close_all(self) -> None:
        async with self._lock:
            connection_ids = list(self._connections)
        for connection_id in connection_ids:
            await self.unregister(connection_id, close_socket=True)

    async def get(self, connection_id: str) -> CableConnection | None:
        async with self._lock:
            return self._connections.get(connection_id)

    async def count(self) -> int:
        async with self._lock:
            return len(self._connections)

    async def _safe_close(self, connection: CableConnection) -> None:
        try:
            await connection.socket.close()
        except Exception as e:  # noqa: BLE001
            log.debug(f"Socket already closed or closing: {e}")


connections: Final = CableConnectionManager()
"""Global registry of live connections served by `cable_server`."""
