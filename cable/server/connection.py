from __future__ import annotations

import asyncio
import json
from typing import Any, Final
from uuid import uuid4

from fastapi import WebSocket
from pydantic import ValidationError

from cable.exceptions import UnknownChannelError
from cable.logger import get_logger
from cable.models import CableCommand, CableCommandType, CableIdentifier
from cable.server.channel import CableChannel
from cable.server.pubsub import CablePubSub, pubsub
from cable.server.registry import CableChannelRegistry, channels

log = get_logger(__name__)

WELCOME: Final = {"type": "welcome"}
CONFIRM_SUBSCRIPTION: Final = "confirm_subscription"
REJECT_SUBSCRIPTION: Final = "reject_subscription"


class CableConnection:
    """
    One client WebSocket and the channel subscriptions made over it.

    Frames from the client are handled one at a time by the server's receive
    loop. Outgoing frames may come from concurrent broadcasts, so sends are
    serialized with a lock.
    """

    def __init__(
        self,
        socket: WebSocket,
        *,
        registry: CableChannelRegistry = channels,
        bus: CablePubSub = pubsub,
        current_user: Any = None,
    ) -> None:
        self.id = str(uuid4())
        self.socket = socket
        self.current_user = current_user
        self._registry = registry
        self._bus = bus
        self._subscriptions: dict[str, CableChannel] = {}
        self._send_lock = asyncio.Lock()

    @property
    def identifiers(self) -> list[str]:
        return list(self._subscriptions)

    async def welcome(self) -> None:
        await self._send(WELCOME)

    async def transmit(self, identifier: str, message: dict[str, Any]) -> None:
        await self._send({"identifier": identifier, "message": message})

    async def handle(self, raw: Any) -> None:
        """Handle one decoded frame from the client. Malformed frames are logged and skipped."""
        try:
            command = CableCommand.model_validate(raw)
            identifier = command.parsed_identifier()
        except (ValidationError, ValueError) as e:
            log.warning(f"Invalid command on connection {self.id}: {e}. Raw: {raw}")
            return

        if command.command is CableCommandType.SUBSCRIBE:
            await self.subscribe(identifier)
        elif command.command is CableCommandType.UNSUBSCRIBE:
            await self.unsubscribe(identifier)
        else:
            try:
                data = command.parsed_data()
            except ValueError as e:
                log.warning(f"Invalid message data on connection {self.id}: {e}")
                return
            await self.perform(identifier, data)

    async def subscribe(self, identifier: CableIdentifier) -> bool:
        key = identifier.dumps()
        if key in self._subscriptions:
            log.debug(f"Already subscribed to {key} on connection {self.id}")
            return True

        try:
            channel_cls = self._registry.get(identifier.channel)
        except UnknownChannelError as e:
            log.warning(f"{e}")
            await self._send({"identifier": key, "type": REJECT_SUBSCRIPTION})
            return False

        subscription = channel_cls(self, identifier, bus=self._bus)
        self._subscriptions[key] = subscription
        if not await subscription.subscribe_to_channel():
            self._subscriptions.pop(key, None)
            await self._send({"identifier": key, "type": REJECT_SUBSCRIPTION})
            return False

        await self._send({"identifier": key, "type": CONFIRM_SUBSCRIPTION})
        log.debug(f"Connection {self.id} subscribed to {key}")
        return True

    async def unsubscribe(self, identifier: CableIdentifier) -> None:
        subscription = self._subscriptions.pop(identifier.dumps(), None)
        if subscription is None:
            log.debug(f"Unsubscribe for unknown identifier on connection {self.id}")
            return
        await subscription.unsubscribe_from_channel()

    async def perform(self, identifier: CableIdentifier, data: dict[str, Any]) -> None:
        subscription = self._subscriptions.get(identifier.dumps())
        if subscription is None:
            log.warning(
                f"Message for unsubscribed channel {identifier.channel} "
                f"on connection {self.id}"
            )
            return
        await subscription.perform_action(data)

    async def close(self) -> None:
        """Unsubscribe every channel held by this connection."""
        for key in list(self._subscriptions):
            subscription = self._subscriptions.pop(key)
            await subscription.unsubscribe_from_channel()

    async def _send(self, frame: dict[str, Any]) -> None:
        async with self._send_lock:
            try:
                await self.socket.send_text(json.dumps(frame))
            except Exception as e:  # noqa: BLE001
                log.error(f"Failed to send frame on connection {self.id}: {e}")
