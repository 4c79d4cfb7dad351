# server.py
"""
FastAPI application serving Cable channels.

Exposes a root HTTP endpoint and the channel WebSocket endpoint (path from
`cable_config.server.path`). Each socket becomes a `CableConnection`; the
receive loop feeds it decoded frames until the client goes away.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

import cable.channels  # noqa: F401  registers the bundled channels
from cable.config import cable_config
from cable.logger import get_logger
from cable.server.connection import CableConnection
from cable.server.connection_manager import connections

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await connections.close_all()


cable_server = FastAPI(
    title="Cable Server",
    version="1.0.0",
    description="WebSocket channel server with typed message envelopes.",
    lifespan=lifespan,
)
"""The main FastAPI application instance for the Cable server."""


@cable_server.get("/")
async def root():
    """Confirms the server is running."""
    return {"message": "Cable server is running!"}


@cable_server.websocket(cable_config.server.path)
async def ws_endpoint(ws: WebSocket):
    """
    Channel WebSocket endpoint.

    1. Accepts the socket, registers a connection and sends the welcome frame.
    2. Hands every JSON frame to the connection. Frames that are not valid
       JSON or fail validation are logged and skipped.
    3. On disconnect or error, unregisters the connection, which
       unsubscribes all of its channels.
    """
    await ws.accept()
    connection = CableConnection(ws)
    await connections.register(connection)
    await connection.welcome()
    log.info(f"WebSocket connection opened: {connection.id}")

    try:
        while True:
            try:
                frame = await ws.receive_json()
            except ValueError as e:
                log.warning(f"Non-JSON frame on connection {connection.id}: {e}")
                continue
            try:
                await connection.handle(frame)
            except Exception as e:  # noqa: BLE001
                log.error(
                    f"Error processing frame on connection {connection.id}: {e}",
                    exc_info=e,
                )
    except WebSocketDisconnect:
        log.info(f"WebSocket disconnected: {connection.id}")
    except Exception as e:  # noqa: BLE001
        log.error(f"WebSocket error for connection {connection.id}: {e}")
    finally:
        await connections.unregister(connection.id)
