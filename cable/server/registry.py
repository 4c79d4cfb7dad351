from typing import Final

from cable.exceptions import UnknownChannelError
from cable.logger import get_logger
from cable.server.channel import CableChannel

log = get_logger(__name__)


class CableChannelRegistry:
    """Maps channel names, as sent by clients, to channel classes."""

    def __init__(self) -> None:
        self._channels: dict[str, type[CableChannel]] = {}

    def register(
        self, channel_cls: type[CableChannel], name: str | None = None
    ) -> type[CableChannel]:
        if not (isinstance(channel_cls, type) and issubclass(channel_cls, CableChannel)):
            raise TypeError(f"Expected a CableChannel subclass, got {channel_cls!r}")

        name = name or channel_cls.channel_name
        existing = self._channels.get(name)
        if existing is not None and existing is not channel_cls:
            log.warning(
                f"Channel '{name}' re-registered: {existing.__qualname__} "
                f"replaced by {channel_cls.__qualname__}"
            )
        self._channels[name] = channel_cls
        return channel_cls

    def unregister(self, name: str) -> None:
        self._channels.pop(name, None)

    def get(self, name: str) -> type[CableChannel]:
        try:
            return self._channels[name]
        except KeyError:
            raise UnknownChannelError(name) from None

    def names(self) -> list[str]:
        return sorted(self._channels)

    def __contains__(self, name: object) -> bool:
        return name in self._channels


channels: Final = CableChannelRegistry()
"""Global channel registry used by the WebSocket server."""


def channel(name: str | None = None, *, registry: CableChannelRegistry = channels):
    """
    Class decorator registering a channel under *name* (defaults to its class name).

    Example:
        @channel()
        class ChatChannel(CableChannel):
            ...
    """

    def _decorator(channel_cls: type[CableChannel]) -> type[CableChannel]:
        return registry.register(channel_cls, name)

    return _decorator
