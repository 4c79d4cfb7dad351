from __future__ import annotations

from typing import Any, ClassVar

from cable.client import diagnostics
from cable.client.diagnostics import DiagnosticsSink
from cable.client.dispatcher import CableDispatcher, bind_handlers, collect_handlers
from cable.client.recovery import restore_controls
from cable.client.transport import CableCallbacks, CableSubscriptionHandle, CableTransport
from cable.logger import get_logger
from cable.models import CableSubscriptionState

log = get_logger(__name__)


class CableChannelController:
    """
    Base class for client-side channel controllers.

    Owns at most one transport subscription, tracks its connection state and
    routes inbound envelopes to `handle_*` methods (or methods decorated
    with `@handles`). `system-error` envelopes go to the diagnostics sink.

    Usage:
        class ChatController(CableChannelController):
            identifier = "chat"

            def start(self):
                self.subscribe("ChatChannel", {"session_id": "123"})

            def handle_user_message(self, data):
                ...

            def channel_connected(self):
                ...
    """

    identifier: ClassVar[str] = "cable"
    _handlers: ClassVar[dict[str, str]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._handlers = collect_handlers(cls)

    def __init__(
        self,
        transport: CableTransport,
        *,
        diagnostics_sink: DiagnosticsSink | None = None,
    ) -> None:
        self.transport = transport
        self.diagnostics_sink = diagnostics_sink
        self.subscription: CableSubscriptionHandle | None = None
        self.state = CableSubscriptionState.UNSUBSCRIBED
        self._generation = 0
        self._dispatcher = CableDispatcher(
            bind_handlers(self, self._handlers),
            name=self.identifier,
            report_error=self.report_error,
        )

    @property
    def connected(self) -> bool:
        return self.state is CableSubscriptionState.CONNECTED

    @property
    def subscribed(self) -> bool:
        return self.subscription is not None

    # --- Subscription lifecycle ---

    def subscribe(self, channel_name: str, params: dict[str, Any] | None = None) -> None:
        """Open the transport subscription. Does nothing if already subscribed."""
        if self.subscription is not None:
            return

        self._generation += 1
        generation = self._generation
        self.state = CableSubscriptionState.CONNECTING
        self.subscription = self.transport.create(
            {"channel": channel_name, **(params or {})},
            CableCallbacks(
                connected=lambda: self._on_connected(generation),
                disconnected=lambda: self._on_disconnected(generation),
                received=lambda data: self._on_received(generation, data),
            ),
        )

    def unsubscribe(self) -> None:
        """Tear down the subscription. Safe to call when not subscribed."""
        if self.subscription is None:
            return

        subscription = self.subscription
        self.subscription = None
        self._generation += 1
        self.state = CableSubscriptionState.UNSUBSCRIBED
        subscription.unsubscribe()

    def perform(self, action: str, data: dict[str, Any] | None = None) -> None:
        """Call a server-side channel action."""
        if self.subscription is None:
            log.error(f"[{self.identifier}] Cannot perform action: not subscribed")
            return

        if not self.connected:
            log.warning(f"[{self.identifier}] Performing action while disconnected")

        self.subscription.perform(action, data or {})

    def received(self, data: Any) -> None:
        """Dispatch an inbound envelope."""
        self._dispatcher.dispatch(data)

    def report_error(self, error_data: dict[str, Any]) -> None:
        """Forward an error record, tagged with this controller, to the diagnostics sink."""
        diagnostics.report(
            {**error_data, "controller_name": self.identifier},
            sink=self.diagnostics_sink,
        )

    # --- Overridable hooks ---

    def channel_connected(self) -> None:
        """Called after the channel connects."""

    def channel_disconnected(self) -> None:
        """Called after the channel disconnects."""

    # --- Transport callbacks ---

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _on_connected(self, generation: int) -> None:
        if not self._is_current(generation):
            return
        log.info(f"[{self.identifier}] Connected to channel")
        self.state = CableSubscriptionState.CONNECTED
        restore_controls()
        self.channel_connected()

    def _on_disconnected(self, generation: int) -> None:
        if not self._is_current(generation):
            return
        log.info(f"[{self.identifier}] Disconnected from channel")
        self.state = CableSubscriptionState.DISCONNECTED
        self.channel_disconnected()

    def _on_received(self, generation: int, data: Any) -> None:
        if not self._is_current(generation):
            log.debug(f"[{self.identifier}] Dropped message for a closed subscription")
            return
        self.received(data)
