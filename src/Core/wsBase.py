"""
WebSocket Base Manager Module
==============================

Bridges a BroadcastChannel to WebSocket clients. Each connected client gets
its own Subscription (independent bounded queue) and its own sender task, so
a slow or stuck client never delays the others or the publisher.

Connection Lifecycle:
--------------------
1. subscribe to the channel BEFORE accept(), so nothing published after the
   handshake completes can be missed
2. accept() the WebSocket handshake
3. sender task: await Subscription.next() -> ws.send_json()
4. receive loop: incoming text goes to handle_message() until disconnect
5. finally: unsubscribe (closes the queue, pending messages are dropped)
   and cancel the sender task

Design Patterns:
---------------
- Manager Pattern: one manager per channel / endpoint type
- Template Method: format() and handle_message() are overridden by subclasses

Usage Example:
-------------
    class CustomWebSocketManager(WebSocketManager):
        def format(self, message):
            return {"event": "update", "data": message}

    manager = CustomWebSocketManager(channel)

    @app.websocket("/custom")
    async def websocket_endpoint(ws: WebSocket):
        await manager.serve(ws)
"""

import asyncio
from typing import Any, Dict, Optional
from fastapi import WebSocket, WebSocketDisconnect
from src.Core.broadcast import BroadcastChannel, Subscription


class WebSocketManager:
    """
    Base WebSocket manager streaming a BroadcastChannel to clients.

    Attributes:
        channel (BroadcastChannel): Source of the messages sent to clients
        tag (str): Prefix used in console log lines
    """

    tag = "WSBase"

    def __init__(self, channel: BroadcastChannel):
        self.channel = channel

    def format(self, message: Any) -> Dict[str, Any]:
        """
        Convert a channel message into the JSON object sent to clients.
        """
        return message

    async def handle_message(self, ws: WebSocket, message: str):
        """
        Handle incoming text from a client. Default: log only.
        """
        print(f"[{self.tag}] Received message from client: {message}")

    async def serve(self, ws: WebSocket):
        """
        Run the full lifecycle of one client connection.
        """
        subscription = self.channel.subscribe(loop=asyncio.get_running_loop())
        sender: Optional[asyncio.Task] = None

        try:
            await ws.accept()
            print(f"[{self.tag}] Client registered. Total clients: {self.channel.subscriber_count}")

            sender = asyncio.create_task(self._pump(ws, subscription))

            while True:
                message = await ws.receive_text()
                await self.handle_message(ws, message)

        except WebSocketDisconnect as e:
            print(f"[{self.tag}] Connection closed: code={e.code}")

        finally:
            self.channel.unsubscribe(subscription)
            if sender is not None:
                sender.cancel()
                try:
                    await sender
                except asyncio.CancelledError:
                    pass

    async def _pump(self, ws: WebSocket, subscription: Subscription):
        """
        Forward queued messages to one client, in publish order.
        """
        while True:
            message = await subscription.next()
            if message is None:
                return

            try:
                await ws.send_json(self.format(message))
            except Exception as e:
                # Send failures only affect this client
                print(f"[{self.tag}] Send failed for subscriber {subscription.id}: {e}")
                self.channel.unsubscribe(subscription)
                return
