"""
Broadcast Channel Module
========================

Thread-safe publish/subscribe primitive used to fan out accepted location
samples (and server log lines) to live observers.

Architecture:
------------
- Each Subscription owns an independent bounded queue
- publish() never blocks: a full or closed queue drops the message for that
  subscriber only, every other subscriber still receives it
- Per-subscriber order equals publish order (publish holds the channel lock
  while offering a message to every subscriber)
- No persistence: a subscriber only sees messages published after it joined

Consumers:
---------
- Synchronous code (tests, background threads): Subscription.get(timeout)
- asyncio code (WebSocket endpoints): await Subscription.next()
  The subscription remembers the event loop it was created on and is woken
  with loop.call_soon_threadsafe(), so publish() may run on any thread
  (FastAPI runs sync endpoints in a worker thread pool).

Usage Example:
-------------
    channel = BroadcastChannel(queue_size=100)

    sub = channel.subscribe()
    channel.publish({"event": "location_update", "data": {...}})
    message = sub.get(timeout=1.0)
    channel.unsubscribe(sub)
"""

import asyncio
import queue
import threading
import uuid
from typing import Any, List, Optional


class Subscription:
    """
    Handle returned by BroadcastChannel.subscribe().

    Attributes:
        id: Random identifier used in log lines
        dropped: Messages discarded because the queue was full
        closed: True once unsubscribed; no further deliveries happen
    """

    def __init__(self, maxsize: int, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.id = uuid.uuid4().hex[:12]
        self.dropped = 0
        self.closed = False
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._loop = loop
        self._ready = asyncio.Event() if loop is not None else None

    def offer(self, message: Any) -> bool:
        """
        Non-blocking enqueue. Returns False when the message was dropped.
        """
        if self.closed:
            return False

        try:
            self._queue.put_nowait(message)
        except queue.Full:
            self.dropped += 1
            return False

        self._wake()
        return True

    def _wake(self):
        if self._loop is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._ready.set)
        except RuntimeError:
            # Event loop already closed: the consumer is gone
            self.closed = True

    def get(self, timeout: Optional[float] = None) -> Any:
        """
        Blocking read for synchronous consumers.

        Returns None on timeout or when the subscription is closed.
        """
        if self.closed:
            return None
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def get_nowait(self) -> Any:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    async def next(self) -> Any:
        """
        Await the next message on the subscription's event loop.

        Returns None once the subscription is closed.
        """
        if self._ready is None:
            raise RuntimeError("Subscription was not created with an event loop")

        while not self.closed:
            message = self.get_nowait()
            if message is not None:
                return message

            self._ready.clear()
            # A publish may have landed between the read and clear()
            message = self.get_nowait()
            if message is not None:
                return message

            await self._ready.wait()

        return None

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self):
        self.closed = True
        self._wake()


class BroadcastChannel:
    """
    Fan-out of messages to every currently subscribed observer.

    Thread Safety:
        The subscriber list is protected by a threading.Lock. publish() only
        performs non-blocking puts while holding it, so a slow observer can
        never stall the publisher or the other observers.
    """

    def __init__(self, queue_size: int = 100, name: str = "BROADCAST"):
        self.queue_size = queue_size
        self.name = name
        self._subscribers: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> Subscription:
        """
        Register a new observer.

        Args:
            loop: Event loop of an asyncio consumer (enables Subscription.next())
        """
        subscription = Subscription(self.queue_size, loop=loop)
        with self._lock:
            self._subscribers.append(subscription)
            total = len(self._subscribers)
        print(f"[{self.name}] Subscriber {subscription.id} joined. Total: {total}")
        return subscription

    def unsubscribe(self, subscription: Subscription):
        """
        Remove an observer and close its queue. Idempotent.
        """
        subscription.close()
        with self._lock:
            if subscription not in self._subscribers:
                return
            self._subscribers.remove(subscription)
            total = len(self._subscribers)
        print(
            f"[{self.name}] Subscriber {subscription.id} left "
            f"(dropped {subscription.dropped}). Total: {total}"
        )

    def publish(self, message: Any) -> int:
        """
        Offer a message to every subscriber without blocking.

        Returns:
            int: Number of subscribers that accepted the message
        """
        if message is None:
            return 0

        delivered = 0
        closed = []

        with self._lock:
            for subscription in self._subscribers:
                if subscription.offer(message):
                    delivered += 1
                elif subscription.closed:
                    closed.append(subscription)

            for subscription in closed:
                self._subscribers.remove(subscription)

        return delivered

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @property
    def has_subscribers(self) -> bool:
        return self.subscriber_count > 0
