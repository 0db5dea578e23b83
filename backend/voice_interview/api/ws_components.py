from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from voice_core.logger import log_event

logger = logging.getLogger("voice_interview.api.ws_components")

SendFn = Callable[[dict], Awaitable[None]]

# high-volume message types are not logged per send
_QUIET_TYPES = {"tts_audio", "ack", "transcript"}


@dataclass
class SafeSender:
    """
    Serializes JSON frames onto one websocket. Send failures and sends after
    disconnect are logged and dropped; they never propagate into session logic.
    """

    websocket: WebSocket
    component: str
    session_id: str
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    sent: int = 0

    @property
    def connected(self) -> bool:
        return self.websocket.client_state == WebSocketState.CONNECTED

    async def send(self, payload: dict) -> None:
        if not self.connected:
            return
        try:
            encoded = json.dumps(payload)
        except Exception as exc:
            logger.warning("ws payload encode failed | session_id=%s err=%s", self.session_id, exc)
            return
        try:
            async with self._lock:
                await self.websocket.send_text(encoded)
            self.sent += 1
            message_type = str((payload or {}).get("type") or "unknown")
            if message_type not in _QUIET_TYPES:
                log_event(
                    self.component,
                    "message_sent",
                    self.session_id,
                    message_type=message_type,
                    bytes=len(encoded.encode("utf-8")),
                )
        except Exception as exc:
            logger.warning("ws send failed | session_id=%s err=%s", self.session_id, exc)


def parse_control_frame(message: dict) -> Optional[dict]:
    """
    Returns the JSON control payload carried by a websocket message, if any.

    Text frames starting with ``{`` and binary frames whose first byte is
    ``{`` are treated as control messages; everything else is audio.
    """
    text = message.get("text")
    if text is not None:
        text = str(text)
        if not text.startswith("{"):
            return None
        try:
            payload = json.loads(text)
        except ValueError:
            logger.warning("ignoring malformed text control frame")
            return None
        return payload if isinstance(payload, dict) else None

    data = message.get("bytes")
    if data and data[:1] == b"{":
        try:
            payload = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            return None
        if isinstance(payload, dict) and payload.get("type"):
            return payload
    return None
