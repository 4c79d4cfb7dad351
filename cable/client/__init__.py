from cable.client.controller import CableChannelController
from cable.client.diagnostics import CableErrorReporter, install_sink
from cable.client.dispatcher import CableDispatcher, derive_handler_name, handles
from cable.client.recovery import restore_controls, set_recovery_hook
from cable.client.transport import CableCallbacks, CableTransport

__all__ = (
    "CableCallbacks",
    "CableChannelController",
    "CableDispatcher",
    "CableErrorReporter",
    "CableTransport",
    "derive_handler_name",
    "handles",
    "install_sink",
    "restore_controls",
    "set_recovery_hook",
)
