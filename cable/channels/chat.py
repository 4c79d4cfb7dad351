from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from cable.logger import get_logger
from cable.server.channel import CableChannel
from cable.server.registry import channel

log = get_logger(__name__)


@channel()
class ChatChannel(CableChannel):
    """
    Visitor chat over a per-session stream.

    Params:
        session_id: Chat session to join; a new one is started when omitted.
        visitor_name: Display name, "Anonymous" by default.
    """

    @property
    def stream(self) -> str:
        return f"chat_{self.params['session_id']}"

    async def subscribed(self) -> None:
        session_id = self.params.get("session_id")
        if session_id is not None and not str(session_id).strip():
            self.reject("session_id cannot be blank")
        if session_id is None:
            self.params["session_id"] = str(uuid4())
        self.params.setdefault("visitor_name", "Anonymous")

        await self.stream_from(self.stream)
        await self.transmit(
            {
                "type": "session-started",
                "session_id": self.params["session_id"],
                "visitor_name": self.params["visitor_name"],
            }
        )

    async def unsubscribed(self) -> None:
        log.debug(f"Visitor left chat session {self.params.get('session_id')}")

    async def send_message(self, data: dict[str, Any]) -> None:
        content = str(data.get("content") or "").strip()
        if not content:
            return

        await self.broadcast(
            self.stream,
            {
                "type": "user-message",
                "id": str(uuid4()),
                "content": content,
                "visitor_name": self.params["visitor_name"],
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
        )
