import asyncio
import inspect
from collections import defaultdict
from typing import Any, Final

from cable.logger import get_logger
from cable.models import CableStreamCallback

log = get_logger(__name__)


class CablePubSub:
    """
    In-process broadcast primitive backing channel streams.

    Internal Structure:
        _by_stream: Maps stream name to a dict of {subscriber_id: callback}.
        _by_subscriber: Maps subscriber_id to the set of streams it listens on.
    All operations modifying the registry are protected by an asyncio.Lock.
    """

    def __init__(self) -> None:
        self._by_stream: defaultdict[str, dict[str, CableStreamCallback]] = (
            defaultdict(dict)
        )
        self._by_subscriber: defaultdict[str, set[str]] = defaultdict(set)
        self._lock: Final = asyncio.Lock()

    async def subscribe(
        self, stream: str, callback: CableStreamCallback, *, subscriber_id: str
    ) -> None:
        """
        Attach *callback* to *stream* on behalf of *subscriber_id*.

        A subscriber has at most one callback per stream; subscribing again
        replaces the previous callback.
        """
        if not stream:
            raise ValueError("stream must be a non-empty string")
        async with self._lock:
            self._by_stream[stream][subscriber_id] = callback
            self._by_subscriber[subscriber_id].add(stream)

    async def unsubscribe(self, stream: str, subscriber_id: str) -> None:
        async with self._lock:
            self._unsafe_unsubscribe(stream, subscriber_id)

    async def drop_subscriber(self, subscriber_id: str) -> None:
        """Remove every stream subscription held by *subscriber_id*."""
        async with self._lock:
            for stream in list(self._by_subscriber.get(subscriber_id, ())):
                self._unsafe_unsubscribe(stream, subscriber_id)
            self._by_subscriber.pop(subscriber_id, None)

    async def broadcast(self, stream: str, message: dict[str, Any]) -> int:
        """
        Deliver *message* to every subscriber of *stream*.

        Callbacks run concurrently. A failing callback is logged and does not
        prevent delivery to the others.

        Returns:
            The number of successful deliveries.
        """
        async with self._lock:
            callbacks = list(self._by_stream.get(stream, {}).values())

        if not callbacks:
            log.debug(f"Broadcast to [{stream}] has no subscribers")
            return 0

        results = await asyncio.gather(
            *(self._deliver(callback, message) for callback in callbacks),
            return_exceptions=True,
        )

        delivered = 0
        for i, result in enumerate(results):
            if isinstance(result, Exception):
                log.error(
                    f"Stream callback error for [{stream}] "
                    f"(subscriber {i + 1}/{len(callbacks)}): {result}"
                )
            else:
                delivered += 1
        return delivered

    async def streams_for(self, subscriber_id: str) -> set[str]:
        async with self._lock:
            return set(self._by_subscriber.get(subscriber_id, ()))

    async def subscriber_count(self, stream: str) -> int:
        async with self._lock:
            return len(self._by_stream.get(stream, {}))

    async def _deliver(self, callback: CableStreamCallback, message: dict[str, Any]):
        result = callback(message)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _unsafe_unsubscribe(self, stream: str, subscriber_id: str) -> None:
        """Assumes the lock is held."""
        subscribers = self._by_stream.get(stream)
        if subscribers is not None:
            subscribers.pop(subscriber_id, None)
            if not subscribers:
                del self._by_stream[stream]

        streams = self._by_subscriber.get(subscriber_id)
        if streams is not None:
            streams.discard(stream)
            if not streams:
                del self._by_subscriber[subscriber_id]


pubsub: Final = CablePubSub()
"""Process-wide broadcast primitive used by channels and the server."""
