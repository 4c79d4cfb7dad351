import traceback

import pytest

from cable.config import cable_config
from cable.models import CableErrorEnvelope
from cable.server.errors import (
    backtrace_frames,
    build_error_envelope,
    extract_action,
    is_development,
)


def _raise_from_send_alert() -> BaseException:
    def send_alert():
        raise ValueError("smtp credentials rejected")

    try:
        send_alert()
    except ValueError as e:
        return e
    raise AssertionError("unreachable")


# --- extract_action --- #


def test_extract_action_only_internal_frames_returns_unknown():
    frames = [
        'File "/srv/app/cable/channels/alert_channel.py", line 40, in transmit',
        'File "/srv/app/cable/channels/alert_channel.py", line 31, in handle_channel_error',
        'File "/srv/app/cable/channels/alert_channel.py", line 12, in rescue_from',
        'File "/srv/app/cable/channels/alert_channel.py", line 9, in perform_action',
    ]
    assert extract_action(frames) == "unknown"


def test_extract_action_returns_qualifying_frame():
    frames = [
        'File "/usr/lib/python3.12/json/encoder.py", line 200, in encode',
        'File "/srv/app/cable/channels/alert_channel.py", line 15, in send_alert',
        'File "/srv/app/cable/server/channel.py", line 210, in perform_action',
    ]
    assert extract_action(frames) == "send_alert"


def test_extract_action_takes_first_qualifying_frame():
    frames = [
        traceback.FrameSummary(
            "/srv/app/channels/alert_channel.py", 30, "format_alert", lookup_line=False
        ),
        traceback.FrameSummary(
            "/srv/app/channels/alert_channel.py", 15, "send_alert", lookup_line=False
        ),
    ]
    assert extract_action(frames) == "format_alert"


def test_extract_action_ignores_files_outside_channel_code():
    frames = [
        'File "/srv/app/services/mailer.py", line 3, in deliver',
        'File "/srv/app/channels_helpers.py", line 3, in send_alert',
    ]
    assert extract_action(frames) == "unknown"


def test_extract_action_skips_unparseable_lines():
    frames = ["garbage", "", 'File "/srv/app/channels/a.py", line 1, in notify']
    assert extract_action(frames) == "notify"


def test_extract_action_custom_marker_and_exclusions():
    frames = [
        'File "/srv/app/realtime/alerts.py", line 5, in wrapper',
        'File "/srv/app/realtime/alerts.py", line 9, in send_alert',
    ]
    assert (
        extract_action(frames, path_marker="realtime", internal_actions=["wrapper"])
        == "send_alert"
    )


def test_extract_action_never_raises_on_bad_input():
    assert extract_action([None, 42]) == "unknown"  # type: ignore[list-item]


def test_backtrace_frames_innermost_first():
    exc = _raise_from_send_alert()
    frames = backtrace_frames(exc)
    assert frames[0].name == "send_alert"
    assert frames[-1].name == "_raise_from_send_alert"


def test_extract_action_from_real_traceback():
    exc = _raise_from_send_alert()
    assert extract_action(backtrace_frames(exc), path_marker="server") == "send_alert"


# --- build_error_envelope --- #


def test_build_error_envelope_redacts_outside_development():
    exc = ValueError("password=hunter2 for db at 10.0.0.3")
    envelope = build_error_envelope(
        exc, "AlertChannel", action="send_alert", development=False
    )

    assert isinstance(envelope, CableErrorEnvelope)
    assert envelope.type == "system-error"
    assert envelope.message == "An error occurred"
    assert envelope.channel == "AlertChannel"
    assert envelope.action == "send_alert"


@pytest.mark.parametrize("text", ["", "boom", "secret token 123"])
def test_build_error_envelope_redaction_ignores_exception_message(text):
    envelope = build_error_envelope(RuntimeError(text), "C", development=False)
    assert envelope.message == "An error occurred"


def test_build_error_envelope_keeps_message_in_development():
    envelope = build_error_envelope(
        KeyError("profile_id"), "ChatChannel", action="subscribed", development=True
    )
    assert envelope.message == "'profile_id'"


def test_build_error_envelope_uses_exception_name_for_empty_message():
    envelope = build_error_envelope(RuntimeError(), "ChatChannel", development=True)
    assert envelope.message == "RuntimeError"


def test_build_error_envelope_falls_back_to_unknown_action():
    envelope = build_error_envelope(RuntimeError("x"), "ChatChannel", development=True)
    assert envelope.action == "unknown"


def test_build_error_envelope_follows_configured_environment(monkeypatch):
    monkeypatch.setattr(cable_config, "dev_mode", False)
    monkeypatch.setattr(cable_config, "env", "production")
    assert is_development() is False
    envelope = build_error_envelope(ValueError("internal detail"), "ChatChannel")
    assert envelope.message == "An error occurred"

    monkeypatch.setattr(cable_config, "env", "development")
    assert is_development() is True
    envelope = build_error_envelope(ValueError("internal detail"), "ChatChannel")
    assert envelope.message == "internal detail"
