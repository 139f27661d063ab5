"""
Log WebSocket Module
====================

Real-time log streaming for the tracking server. Every call to log_event()
prints a tagged console line and, when monitoring clients are connected to
the /logs WebSocket, publishes the same line to them.

Message Format:
--------------
    {
        "msg_type": "log" | "error" | "warning",
        "message": "[INGEST] Accepted sample 42 from gps-1",
        "timestamp": "2025-12-01T10:30:00Z"
    }

Usage Example:
-------------
    from src.Core.log_ws import log_event

    log_event("[STORE] Purged 12 samples of gps-1")
    log_event("[STORE] Insert failed: disk I/O error", "error")

Thread Safety:
-------------
log_event() may be called from any thread: the underlying BroadcastChannel
never blocks and wakes asyncio consumers thread-safely.
"""

from datetime import datetime, timezone
from fastapi import WebSocket
from src.Core.broadcast import BroadcastChannel
from src.Core.config import settings
from .wsBase import WebSocketManager


# ============================================================
# GLOBAL LOG CHANNEL
# ============================================================
log_channel = BroadcastChannel(queue_size=settings.SUBSCRIBER_QUEUE_SIZE, name="LOG-WS")


def log_event(message: str, msg_type: str = "log"):
    """
    Print a log line and forward it to connected /logs clients.

    Args:
        message: Log message, conventionally prefixed with a [TAG]
        msg_type: "log", "warning" or "error"
    """
    print(message)

    if log_channel.has_subscribers:
        log_channel.publish({
            "msg_type": msg_type,
            "message": str(message),
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        })


class LogWebSocketManager(WebSocketManager):
    """
    Streams log_channel to /logs clients.

    Incoming messages from log clients are informational only.
    """

    tag = "LOG-WS"

    async def handle_message(self, ws: WebSocket, message: str):
        print(f"[LOG-WS] Received message from client: {message}")


log_ws_manager = LogWebSocketManager(log_channel)
