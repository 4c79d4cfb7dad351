"""
Conversion of server-side channel failures into `system-error` envelopes.

The originating action is normally passed in by the caller that ran it.
Only when it is not known do we fall back to scanning the traceback for the
innermost frame that lives in channel code.
"""

from __future__ import annotations

import re
import traceback
from typing import Iterable

from cable.config import cable_config
from cable.constants import CABLE_UNKNOWN_ACTION
from cable.models import CableErrorEnvelope

_FRAME_LINE = re.compile(r'File "(?P<filename>[^"]+)", line \d+, in (?P<name>\S+)')


def is_development(development: bool | None = None) -> bool:
    """Resolve the development-like flag, defaulting to the active configuration."""
    if development is None:
        return cable_config.is_development
    return development


def backtrace_frames(exception: BaseException) -> list[traceback.FrameSummary]:
    """Return the frames of *exception*'s traceback, innermost first."""
    frames = traceback.extract_tb(exception.__traceback__)
    return list(reversed(frames))


def _split_frame(frame: traceback.FrameSummary | str) -> tuple[str, str] | None:
    if isinstance(frame, traceback.FrameSummary):
        return frame.filename, frame.name
    match = _FRAME_LINE.search(frame)
    if not match:
        return None
    return match.group("filename"), match.group("name")


def _in_channel_code(filename: str, marker: str) -> bool:
    parts = filename.replace("\\", "/").split("/")
    return marker in parts[:-1]


def extract_action(
    frames: Iterable[traceback.FrameSummary | str],
    *,
    path_marker: str | None = None,
    internal_actions: Iterable[str] | None = None,
) -> str:
    """
    Best-effort name of the channel action a failure originated in.

    Frames are scanned in the given order (innermost first). A frame
    qualifies when its file sits under a directory named *path_marker* and
    it names a function that is not part of the channel plumbing itself.

    Args:
        frames: `FrameSummary` objects or traceback text lines
            (`File "...", line N, in name`).
        path_marker: Directory name identifying channel code.
        internal_actions: Function names to skip.

    Returns:
        The first qualifying function name, or "unknown".
    """
    marker = path_marker or cable_config.channels.path_marker
    skipped = set(
        internal_actions
        if internal_actions is not None
        else cable_config.channels.internal_actions
    )

    try:
        for frame in frames:
            parsed = _split_frame(frame)
            if parsed is None:
                continue
            filename, name = parsed
            if not name or name.startswith("<"):
                continue
            if _in_channel_code(filename, marker) and name not in skipped:
                return name
    except Exception:  # noqa: BLE001
        return CABLE_UNKNOWN_ACTION
    return CABLE_UNKNOWN_ACTION


def build_error_envelope(
    exception: BaseException,
    context_name: str,
    *,
    action: str | None = None,
    development: bool | None = None,
) -> CableErrorEnvelope:
    """
    Build the envelope reporting *exception* to the connection that raised it.

    Args:
        exception: The failure caught at the channel boundary.
        context_name: Name of the channel the failure happened in.
        action: Originating action, when the caller knows it.
        development: Override for the development-like flag. Outside
            development-like environments the message is always redacted.
    """
    if is_development(development):
        message = str(exception) or type(exception).__name__
    else:
        message = cable_config.errors.generic_message

    if not action:
        action = extract_action(backtrace_frames(exception))

    return CableErrorEnvelope(message=message, channel=context_name, action=action)
