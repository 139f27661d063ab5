# src/Core/location_ws.py

"""
Location WebSocket Manager

Streams every accepted location sample to connected dashboards.

Features:
- One independent queue per client (slow clients only lose their own updates)
- Samples arrive in the order they were accepted (sample_id order)
- No replay: clients call GET /api/locations/latest for state-on-connect

Message Format:
    {
        "event": "location_update",
        "data": {
            "sample_id": 2,
            "device_id": "gps-1",
            "latitude": 37.1,
            "longitude": -122.1,
            "speed": 0.0,
            "accuracy": null,
            "altitude": null,
            "heading": null,
            "battery_level": 87,
            "timestamp": "2025-10-27T06:59:20.123456Z"
        }
    }

Frontend Connection Example:
    const ws = new WebSocket('ws://localhost:8000/ws/locations');
    ws.onmessage = (event) => {
        const { event: kind, data } = JSON.parse(event.data);
        if (kind === 'location_update') moveMarker(data);
    };
"""

from typing import Any, Dict
from fastapi import WebSocket
from .wsBase import WebSocketManager


LOCATION_UPDATE_EVENT = "location_update"


class LocationWebSocketManager(WebSocketManager):
    """
    Specialized WebSocket manager for live location updates.

    Wraps each published sample in a {"event", "data"} envelope.
    """

    tag = "LOCATION-WS"

    def format(self, message: Any) -> Dict[str, Any]:
        return {"event": LOCATION_UPDATE_EVENT, "data": message}

    async def handle_message(self, ws: WebSocket, message: str):
        """
        Clients may send "ping" as a keep-alive; anything else is logged.
        """
        if message.strip().lower() == "ping":
            await ws.send_json({"event": "pong"})
            return
        print(f"[LOCATION-WS] Received message: {message}")
