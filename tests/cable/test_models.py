import json

import pytest
from pydantic import ValidationError

from cable.models import (
    CableCommand,
    CableCommandType,
    CableEnvelope,
    CableErrorEnvelope,
    CableIdentifier,
)


def test_envelope_keeps_payload():
    envelope = CableEnvelope.model_validate(
        {"type": "status-update", "status": "done", "progress": 1.0}
    )
    assert envelope.type == "status-update"
    assert envelope.payload == {"status": "done", "progress": 1.0}
    assert envelope.model_dump() == {
        "type": "status-update",
        "status": "done",
        "progress": 1.0,
    }


@pytest.mark.parametrize("data", [{}, {"type": ""}, {"type": None}, {"type": 3}])
def test_envelope_requires_type(data):
    with pytest.raises(ValidationError):
        CableEnvelope.model_validate(data)


def test_error_envelope_defaults():
    envelope = CableErrorEnvelope(message="An error occurred", channel="ChatChannel")
    assert envelope.model_dump() == {
        "type": "system-error",
        "message": "An error occurred",
        "channel": "ChatChannel",
        "action": "unknown",
    }


def test_error_envelope_type_is_fixed():
    with pytest.raises(ValidationError):
        CableErrorEnvelope(type="user-message", message="x", channel="c")


def test_identifier_is_canonical():
    a = CableIdentifier(channel="ChatChannel", params={"b": 2, "a": 1})
    b = CableIdentifier.loads('{"a": 1, "channel": "ChatChannel", "b": 2}')

    assert a.dumps() == b.dumps()
    assert json.loads(a.dumps()) == {"channel": "ChatChannel", "a": 1, "b": 2}
    assert b.params == {"a": 1, "b": 2}


@pytest.mark.parametrize("raw", ["[]", '"ChatChannel"', "{}", '{"channel": ""}'])
def test_identifier_rejects_invalid(raw):
    with pytest.raises(ValueError):
        CableIdentifier.loads(raw)


def test_command_parsing():
    command = CableCommand.model_validate(
        {
            "command": "message",
            "identifier": '{"channel": "ChatChannel"}',
            "data": '{"action": "send_message", "content": "hi"}',
        }
    )
    assert command.command is CableCommandType.MESSAGE
    assert command.parsed_identifier().channel == "ChatChannel"
    assert command.parsed_data() == {"action": "send_message", "content": "hi"}


def test_command_data_must_be_object():
    command = CableCommand(command="message", identifier="{}", data="[1]")
    with pytest.raises(ValueError):
        command.parsed_data()
    assert CableCommand(command="subscribe", identifier="{}").parsed_data() == {}
