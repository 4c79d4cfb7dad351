"""
Client-side routing of inbound envelopes.

Envelopes are routed by their `type`. The type is turned into a handler key
by splitting on `-` / `_`, capitalizing each segment and prefixing `handle`:

    "status-update"  -> handleStatusUpdate
    "assistant_done" -> handleAssistantDone

Controllers declare handlers either with `@handles("status-update")` or by
naming a method `handle_status_update`. The table mapping keys to methods
is built once per class.
"""

from __future__ import annotations

import inspect
import re
from collections.abc import Mapping
from typing import Any, Callable

from cable.client.recovery import restore_controls
from cable.constants import (
    CABLE_ERROR_REPORT_TYPE,
    CABLE_HANDLER_PREFIX,
    CABLE_SYSTEM_ERROR_TYPE,
)
from cable.logger import get_logger

log = get_logger(__name__)

_SEPARATORS = re.compile(r"[-_]")
_HANDLES_ATTR = "__cable_handles__"
_METHOD_PREFIX = f"{CABLE_HANDLER_PREFIX}_"

Handler = Callable[[dict[str, Any]], Any]


def derive_handler_name(message_type: str) -> str:
    """`"status-update"` -> `"handleStatusUpdate"`."""
    segments = _SEPARATORS.split(message_type)
    return CABLE_HANDLER_PREFIX + "".join(s[:1].upper() + s[1:] for s in segments)


def python_handler_name(message_type: str) -> str:
    """`"status-update"` -> `"handle_status_update"`, the method routed to *message_type*."""
    segments = [s[:1].lower() + s[1:] for s in _SEPARATORS.split(message_type) if s]
    return "_".join([CABLE_HANDLER_PREFIX, *segments])


def handles(*message_types: str):
    """
    Mark a method as the handler for one or more envelope types.

    Example:
        class ChatController(CableChannelController):
            @handles("assistant-chunk")
            def on_chunk(self, data):
                ...
    """
    if not message_types:
        raise ValueError("handles() needs at least one message type")

    def _decorator(function):
        existing = getattr(function, _HANDLES_ATTR, ())
        setattr(function, _HANDLES_ATTR, (*existing, *message_types))
        return function

    return _decorator


def collect_handlers(cls: type) -> dict[str, str]:
    """
    Build the handler table of *cls*: derived handler key -> method name.

    Subclasses override entries of their bases.
    """
    table: dict[str, str] = {}
    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if not inspect.isfunction(attr):
                continue
            message_types = getattr(attr, _HANDLES_ATTR, None)
            if message_types:
                for message_type in message_types:
                    table[derive_handler_name(message_type)] = name
            elif name.startswith(_METHOD_PREFIX) and len(name) > len(_METHOD_PREFIX):
                table[derive_handler_name(name[len(_METHOD_PREFIX) :])] = name
    return table


def bind_handlers(target: Any, table: Mapping[str, str] | None = None) -> dict[str, Handler]:
    """Resolve a handler table against *target*, returning key -> bound method."""
    if table is None:
        table = collect_handlers(type(target))
    return {key: getattr(target, name) for key, name in table.items()}


class CableDispatcher:
    """
    Validates inbound envelopes and routes them to handlers.

    Args:
        routes: Handler key (see `derive_handler_name`) -> callable.
        name: Name used in log lines and error reports.
        report_error: Receives `system-error` envelopes, retagged as
            `actioncable`, and handler failures.
        restore: Recovery hook run before every dispatch.
    """

    def __init__(
        self,
        routes: Mapping[str, Handler],
        *,
        name: str,
        report_error: Callable[[dict[str, Any]], Any],
        restore: Callable[[], Any] = restore_controls,
    ) -> None:
        self._routes = dict(routes)
        self._name = name
        self._report_error = report_error
        self._restore = restore

    @property
    def routes(self) -> dict[str, Handler]:
        return dict(self._routes)

    def dispatch(self, raw: Any) -> None:
        """Route *raw* to its handler. Never raises."""
        self._restore()

        if not isinstance(raw, Mapping):
            log.error(
                f"[{self._name}] REJECTED: Message must be object, got {type(raw).__name__}"
            )
            return

        message_type = raw.get("type")
        if not isinstance(message_type, str) or not message_type:
            log.error(f"[{self._name}] REJECTED: Missing 'type' field: {dict(raw)}")
            return

        envelope = dict(raw)

        if message_type == CABLE_SYSTEM_ERROR_TYPE:
            self._report_error({**envelope, "type": CABLE_ERROR_REPORT_TYPE})
            return

        handler_name = derive_handler_name(message_type)
        handler = self._routes.get(handler_name)
        if handler is None:
            log.error(
                f"[{self._name}] UNHANDLED MESSAGE TYPE: '{message_type}'\n"
                f"You must implement: def {python_handler_name(message_type)}(self, data) "
                f"(handler key: {handler_name})"
            )
            return

        try:
            handler(envelope)
        except Exception as e:  # noqa: BLE001
            log.error(f"[{self._name}] Handler {handler_name} failed: {e}", exc_info=e)
            self._report_error(
                {
                    "type": CABLE_ERROR_REPORT_TYPE,
                    "message": str(e) or type(e).__name__,
                    "channel": self._name,
                    "action": handler_name,
                }
            )
