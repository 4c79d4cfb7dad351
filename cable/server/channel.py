from __future__ import annotations

import inspect
import re
from collections.abc import Mapping
from typing import Any, ClassVar, Protocol

from cable.constants import CABLE_SYSTEM_ERROR_TYPE
from cable.exceptions import EnvelopeError, SubscriptionRejected
from cable.logger import get_logger
from cable.models import CableEnvelope, CableIdentifier
from cable.server.errors import build_error_envelope
from cable.server.pubsub import CablePubSub, pubsub

log = get_logger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


class CableChannelConnection(Protocol):
    """What a channel needs from the connection it is subscribed on."""

    id: str

    async def transmit(self, identifier: str, message: dict[str, Any]) -> None: ...


def underscore(name: str) -> str:
    """`ProfileChatSession` -> `profile_chat_session`."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def envelope_to_dict(data: Mapping[str, Any] | CableEnvelope) -> dict[str, Any]:
    """
    Validate an outgoing envelope and return it as a plain dict.

    Raises:
        EnvelopeError: If *data* is not a mapping or lacks a non-empty string `type`.
    """
    if isinstance(data, CableEnvelope):
        return data.model_dump(mode="json")
    if not isinstance(data, Mapping):
        raise EnvelopeError(f"must be an object, got {type(data).__name__}", data)
    message_type = data.get("type")
    if not isinstance(message_type, str) or not message_type:
        raise EnvelopeError("missing 'type' field", data)
    return dict(data)


async def broadcast(
    stream: str,
    data: Mapping[str, Any] | CableEnvelope,
    *,
    bus: CablePubSub = pubsub,
) -> int:
    """
    Broadcast an application envelope to every subscriber of *stream*.

    The error sentinel type is reserved for errors sent to a single
    connection and is refused here.
    """
    message = envelope_to_dict(data)
    if message["type"] == CABLE_SYSTEM_ERROR_TYPE:
        raise EnvelopeError(f"'{CABLE_SYSTEM_ERROR_TYPE}' is a reserved type", data)
    return await bus.broadcast(stream, message)


class CableChannel:
    """
    Base class for server-side channels.

    Subclasses override `subscribed` / `unsubscribed` and define public
    methods as actions callable by the client. Any exception raised by a
    hook or an action is converted into a `system-error` envelope and
    transmitted to the connection that caused it.

    Example:
        @channel()
        class AlertChannel(CableChannel):
            async def subscribed(self):
                await self.stream_from(f"alerts_{self.params['room']}")

            async def send_alert(self, data):
                await self.broadcast(
                    f"alerts_{self.params['room']}",
                    {"type": "new-alert", "text": data["text"]},
                )
    """

    channel_name: ClassVar[str] = "CableChannel"
    _actions: ClassVar[frozenset[str]] = frozenset()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "channel_name" not in cls.__dict__:
            cls.channel_name = cls.__name__
        base_names = set(dir(CableChannel))
        cls._actions = frozenset(
            name
            for name in dir(cls)
            if not name.startswith("_")
            and name not in base_names
            and callable(getattr(cls, name))
        )

    def __init__(
        self,
        connection: CableChannelConnection,
        identifier: CableIdentifier,
        *,
        bus: CablePubSub = pubsub,
    ) -> None:
        self.connection = connection
        self.identifier = identifier
        self.params: dict[str, Any] = dict(identifier.params)
        self._identifier_key = identifier.dumps()
        self._bus = bus
        self._streams: set[str] = set()

    # --- Overridable hooks ---

    def subscribed(self) -> Any:
        """Called once the subscription is requested. Call `reject()` to refuse it."""

    def unsubscribed(self) -> Any:
        """Called when the client unsubscribes or the connection goes away."""

    # --- Helpers available to subclasses ---

    @classmethod
    def broadcasting_for(cls, record: Any) -> str:
        """Stream name for a record: `<snake_case class name>_<id>`."""
        if record is None:
            raise ValueError("Record cannot be None")
        return f"{underscore(type(record).__name__)}_{record.id}"

    @classmethod
    def action_methods(cls) -> frozenset[str]:
        return cls._actions

    @property
    def subscriber_id(self) -> str:
        return f"{self.connection.id}:{self._identifier_key}"

    @property
    def current_user(self) -> Any:
        return getattr(self.connection, "current_user", None)

    @property
    def streams(self) -> frozenset[str]:
        return frozenset(self._streams)

    def reject(self, reason: str | None = None) -> None:
        raise SubscriptionRejected(self.channel_name, reason)

    async def stream_from(self, stream: str) -> None:
        """Forward every broadcast on *stream* to this subscription's connection."""

        async def _forward(message: dict[str, Any]) -> None:
            await self.connection.transmit(self._identifier_key, message)

        await self._bus.subscribe(stream, _forward, subscriber_id=self.subscriber_id)
        self._streams.add(stream)
        log.debug(f"{self.channel_name} streaming from [{stream}]")

    async def stop_all_streams(self) -> None:
        await self._bus.drop_subscriber(self.subscriber_id)
        self._streams.clear()

    async def transmit(self, data: Mapping[str, Any] | CableEnvelope) -> None:
        """Send an envelope to this connection only."""
        await self.connection.transmit(self._identifier_key, envelope_to_dict(data))

    async def broadcast(
        self, stream: str, data: Mapping[str, Any] | CableEnvelope
    ) -> int:
        return await broadcast(stream, data, bus=self._bus)

    # --- Lifecycle driven by the connection ---

    async def subscribe_to_channel(self) -> bool:
        """
        Run the `subscribed` hook.

        Returns:
            True if the subscription is confirmed, False if it was rejected
            or the hook raised.
        """
        try:
            await _call(self.subscribed)
        except SubscriptionRejected as e:
            log.info(f"{e}")
            await self.stop_all_streams()
            return False
        except Exception as e:  # noqa: BLE001
            await self.handle_channel_error(e, action="subscribed")
            await self.stop_all_streams()
            return False
        return True

    async def unsubscribe_from_channel(self) -> None:
        try:
            await _call(self.unsubscribed)
        except Exception as e:  # noqa: BLE001
            await self.handle_channel_error(e, action="unsubscribed")
        finally:
            await self.stop_all_streams()

    async def perform_action(self, data: dict[str, Any]) -> None:
        """Invoke the action named by `data["action"]` with *data*."""
        action = data.get("action")
        if not isinstance(action, str) or action not in self._actions:
            log.error(
                f"Unable to process {self.channel_name}#{action!r} "
                f"(available: {sorted(self._actions)})"
            )
            return

        try:
            await _call(getattr(self, action), data)
        except Exception as e:  # noqa: BLE001
            await self.handle_channel_error(e, action=action)

    async def handle_channel_error(
        self, exception: Exception, action: str | None = None
    ) -> None:
        """Log *exception* and report it to this connection as a `system-error` envelope."""
        log.error(
            f"Channel Error in {self.channel_name}: {exception}", exc_info=exception
        )
        envelope = build_error_envelope(exception, self.channel_name, action=action)
        try:
            await self.connection.transmit(
                self._identifier_key, envelope.model_dump(mode="json")
            )
        except Exception as e:  # noqa: BLE001
            log.error(f"Failed to transmit error envelope for {self.channel_name}: {e}")


async def _call(function, *args: Any) -> Any:
    result = function(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
