"""
Process-wide UI recovery hook.

The hook re-enables controls left disabled by an in-flight action. It takes
no arguments, must be idempotent and is called after every connect event and
before every dispatched message.
"""

from cable.logger import get_logger
from cable.models import CableRecoveryHook

log = get_logger(__name__)

_hook: CableRecoveryHook | None = None


def set_recovery_hook(hook: CableRecoveryHook | None) -> None:
    """Install *hook* as the process-wide recovery hook, or clear it with None."""
    global _hook
    if hook is not None and not callable(hook):
        raise ValueError(f"Recovery hook must be callable, got {type(hook)}")
    _hook = hook


def get_recovery_hook() -> CableRecoveryHook | None:
    return _hook


def restore_controls() -> None:
    """Run the recovery hook if one is installed. Never raises."""
    if _hook is None:
        return
    try:
        _hook()
    except Exception as e:  # noqa: BLE001
        log.error(f"Recovery hook failed: {e}")
