# routers/_base.py
"""
Shared utilities for WebSocket translation routes.

Provides message parsing and response formatting on top of glossa.protocol.
"""

from typing import Any

from fastapi import WebSocket

from glossa.protocol import ProtocolError, build_ack, decode


async def parse_websocket_message(ws: WebSocket) -> dict[str, Any]:
    """
    Receive and decode the next WebSocket message.

    Returns:
        dict with either:
        - the decoded JSON message (always has a string "type")
        - {"type": "disconnect"} when the client went away
        - {"type": "unknown"} for frames without text

    Raises:
        ProtocolError: If a text frame is not a valid message
    """
    message = await ws.receive()

    if message.get("type") == "websocket.disconnect":
        return {"type": "disconnect"}

    if message.get("text") is not None:
        return decode(message["text"])

    elif message.get("bytes") is not None:
        try:
            return decode(message["bytes"].decode("utf-8"))
        except UnicodeDecodeError as e:
            raise ProtocolError(f"Binary frame is not UTF-8: {e}") from e

    return {"type": "unknown"}


async def send_ack(ws: WebSocket, count: int) -> None:
    """
    Acknowledge receipt of a translation_request batch.

    Args:
        ws: WebSocket connection
        count: Number of items received
    """
    await ws.send_json(build_ack(count))
