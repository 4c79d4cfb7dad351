from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cable.constants import (
    CABLE_ERROR_REPORT_TYPE,
    CABLE_SYSTEM_ERROR_TYPE,
    CABLE_UNKNOWN_ACTION,
)


class CableSubscriptionState(str, Enum):
    UNSUBSCRIBED = "unsubscribed"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class CableCommandType(str, Enum):
    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"
    MESSAGE = "message"


class CableEnvelope(BaseModel):
    """
    A message exchanged over a channel.

    `type` selects the receiving handler; every other field is payload and is
    kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    type: str

    @field_validator("type")
    @classmethod
    def _validate_type(cls, value: str) -> str:
        if not value:
            raise ValueError("type must be a non-empty string")
        return value

    @property
    def payload(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class CableErrorEnvelope(CableEnvelope):
    """Envelope carrying a server-side failure back to the connection that raised it."""

    type: Literal["system-error"] = CABLE_SYSTEM_ERROR_TYPE
    message: str
    channel: str
    action: str = CABLE_UNKNOWN_ACTION


class CableErrorReport(BaseModel):
    """Record handed to a diagnostics sink for a server-reported error."""

    type: Literal["actioncable"] = CABLE_ERROR_REPORT_TYPE
    message: str = "ActionCable error occurred"
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    channel: str = CABLE_UNKNOWN_ACTION
    action: str = CABLE_UNKNOWN_ACTION
    controller_name: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> CableErrorReport:
        return cls(
            message=record.get("message") or "ActionCable error occurred",
            channel=record.get("channel") or CABLE_UNKNOWN_ACTION,
            action=record.get("action") or CABLE_UNKNOWN_ACTION,
            controller_name=record.get("controller_name"),
            details=dict(record),
        )


class CableIdentifier(BaseModel):
    """Channel name plus subscription params, serialized as canonical JSON."""

    channel: str
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("channel")
    @classmethod
    def _validate_channel(cls, value: str) -> str:
        if not value or len(value) > 200:
            raise ValueError("channel must be 1-200 characters")
        return value

    def dumps(self) -> str:
        return json.dumps({"channel": self.channel, **self.params}, sort_keys=True)

    @classmethod
    def loads(cls, raw: str) -> CableIdentifier:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("identifier must be a JSON object")
        channel = data.pop("channel", None)
        return cls(channel=channel, params=data)


class CableCommand(BaseModel):
    """Inbound transport frame."""

    command: CableCommandType
    identifier: str
    data: str | None = None

    def parsed_identifier(self) -> CableIdentifier:
        return CableIdentifier.loads(self.identifier)

    def parsed_data(self) -> dict[str, Any]:
        if not self.data:
            return {}
        data = json.loads(self.data)
        if not isinstance(data, dict):
            raise ValueError("data must be a JSON object")
        return data


CableStreamCallback: TypeAlias = Callable[[dict[str, Any]], Awaitable[Any] | Any]
CableRecoveryHook: TypeAlias = Callable[[], Any]
