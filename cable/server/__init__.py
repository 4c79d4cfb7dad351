from cable.server.channel import CableChannel, broadcast
from cable.server.errors import build_error_envelope, extract_action
from cable.server.pubsub import CablePubSub, pubsub
from cable.server.registry import CableChannelRegistry, channel, channels

__all__ = (
    "CableChannel",
    "CableChannelRegistry",
    "CablePubSub",
    "broadcast",
    "build_error_envelope",
    "channel",
    "channels",
    "extract_action",
    "pubsub",
)
