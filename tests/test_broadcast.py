"""
Tests for the BroadcastChannel fan-out and the log stream built on it.
"""
import asyncio
import threading

import pytest

from src.Core.broadcast import BroadcastChannel
from src.Core.log_ws import log_channel, log_event


@pytest.mark.unit
class TestPublish:

    def test_publish_without_subscribers_delivers_nothing(self):
        channel = BroadcastChannel()
        assert channel.publish({"n": 1}) == 0
        assert channel.has_subscribers is False

    def test_publish_none_is_ignored(self):
        channel = BroadcastChannel()
        sub = channel.subscribe()

        assert channel.publish(None) == 0
        assert sub.get(timeout=0.05) is None

    def test_every_subscriber_receives_every_message_in_order(self):
        channel = BroadcastChannel(queue_size=100)
        first = channel.subscribe()
        second = channel.subscribe()

        for n in range(50):
            assert channel.publish({"n": n}) == 2

        assert [first.get_nowait()["n"] for _ in range(50)] == list(range(50))
        assert [second.get_nowait()["n"] for _ in range(50)] == list(range(50))

    def test_full_queue_drops_only_for_the_slow_subscriber(self):
        channel = BroadcastChannel(queue_size=2)
        slow = channel.subscribe()
        fast = channel.subscribe()

        received = []
        for n in range(3):
            channel.publish({"n": n})
            received.append(fast.get(timeout=1)["n"])

        assert received == [0, 1, 2]
        assert slow.dropped == 1
        assert fast.dropped == 0
        assert [slow.get_nowait()["n"], slow.get_nowait()["n"]] == [0, 1]
        assert slow.get_nowait() is None

    def test_subscriber_only_sees_messages_published_after_joining(self):
        channel = BroadcastChannel()
        early = channel.subscribe()
        channel.publish({"n": 1})
        late = channel.subscribe()
        channel.publish({"n": 2})

        assert early.get_nowait() == {"n": 1}
        assert late.get_nowait() == {"n": 2}
        assert late.get_nowait() is None


@pytest.mark.unit
class TestUnsubscribe:

    def test_unsubscribed_observer_gets_no_further_messages(self):
        channel = BroadcastChannel()
        sub = channel.subscribe()
        channel.unsubscribe(sub)

        assert channel.publish({"n": 1}) == 0
        assert sub.closed is True
        assert sub.get(timeout=0.05) is None
        assert channel.subscriber_count == 0

    def test_unsubscribe_is_idempotent(self):
        channel = BroadcastChannel()
        sub = channel.subscribe()
        other = channel.subscribe()

        channel.unsubscribe(sub)
        channel.unsubscribe(sub)

        assert channel.subscriber_count == 1
        assert channel.publish({"n": 1}) == 1
        assert other.get_nowait() == {"n": 1}


@pytest.mark.unit
class TestAsyncConsumer:

    def test_next_is_woken_by_publish_from_another_thread(self):
        async def scenario():
            channel = BroadcastChannel()
            sub = channel.subscribe(loop=asyncio.get_running_loop())
            threading.Thread(target=channel.publish, args=({"n": 7},)).start()
            return await asyncio.wait_for(sub.next(), timeout=2)

        assert asyncio.run(scenario()) == {"n": 7}

    def test_next_returns_none_after_unsubscribe(self):
        async def scenario():
            channel = BroadcastChannel()
            sub = channel.subscribe(loop=asyncio.get_running_loop())
            waiter = asyncio.create_task(sub.next())
            await asyncio.sleep(0)
            channel.unsubscribe(sub)
            return await asyncio.wait_for(waiter, timeout=2)

        assert asyncio.run(scenario()) is None

    def test_next_requires_an_event_loop(self):
        sub = BroadcastChannel().subscribe()

        with pytest.raises(RuntimeError):
            asyncio.run(sub.next())


@pytest.mark.unit
class TestLogStream:

    def test_log_event_is_published_to_log_subscribers(self):
        sub = log_channel.subscribe()
        try:
            log_event("[TEST] disk almost full", "warning")
            message = sub.get(timeout=1)
        finally:
            log_channel.unsubscribe(sub)

        assert message["msg_type"] == "warning"
        assert message["message"] == "[TEST] disk almost full"
        assert message["timestamp"].endswith("Z")
