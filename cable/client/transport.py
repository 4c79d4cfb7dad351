"""
Interfaces of the client-side transport collaborator.

The pub/sub connection itself (socket handling, framing, reconnection) is
provided by the host application; controllers only talk to it through
these protocols.
"""

from dataclasses import dataclass
from typing import Any, Callable, Protocol


@dataclass(frozen=True)
class CableCallbacks:
    connected: Callable[[], Any]
    disconnected: Callable[[], Any]
    received: Callable[[Any], Any]


class CableSubscriptionHandle(Protocol):
    def perform(self, action: str, data: dict[str, Any]) -> Any: ...

    def unsubscribe(self) -> Any: ...


class CableTransport(Protocol):
    def create(
        self, topic: dict[str, Any], callbacks: CableCallbacks
    ) -> CableSubscriptionHandle:
        """
        Open a subscription.

        Args:
            topic: `{"channel": <channel name>, **params}`.
            callbacks: Invoked by the transport on connect, disconnect and
                for every inbound message.
        """
        ...
