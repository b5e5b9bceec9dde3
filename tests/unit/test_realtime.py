"""
Tests for the in-process change feed and the timer queue.
"""
import asyncio

import pytest

from app.services.realtime import ChangeEvent, ChangeFeed
from app.services.scheduler import AsyncioScheduler, ManualScheduler


def _event(conversation_id, record="payload", event="INSERT"):
    return ChangeEvent(event=event, table="chat_messages", conversation_id=conversation_id, record=record)


@pytest.mark.unit
class TestChangeFeed:
    def test_publish_reaches_only_matching_conversation(self):
        feed = ChangeFeed()
        first = feed.subscribe(1)
        second = feed.subscribe(2)

        feed.publish(_event(1, "a"))

        assert [c.record for c in first.drain()] == ["a"]
        assert second.drain() == []

    def test_event_type_filter(self):
        feed = ChangeFeed()
        subscription = feed.subscribe(1)

        feed.publish(_event(1, event="UPDATE"))

        assert subscription.drain() == []

    def test_close_detaches_subscription(self):
        feed = ChangeFeed()
        subscription = feed.subscribe(1)
        assert feed.subscriber_count(1) == 1

        subscription.close()
        feed.publish(_event(1))

        assert feed.subscriber_count(1) == 0
        assert subscription.drain() == []

    def test_feed_close_closes_every_subscription(self):
        feed = ChangeFeed()
        subscriptions = [feed.subscribe(1), feed.subscribe(2)]

        feed.close()

        assert all(s.closed for s in subscriptions)
        assert feed.subscriber_count(1) == 0

    @pytest.mark.asyncio
    async def test_get_waits_for_event(self):
        feed = ChangeFeed()
        subscription = feed.subscribe(1)

        waiter = asyncio.create_task(subscription.get())
        await asyncio.sleep(0)
        feed.publish(_event(1, "late"))

        change = await asyncio.wait_for(waiter, timeout=1)
        assert change.record == "late"

    @pytest.mark.asyncio
    async def test_close_wakes_waiter(self):
        feed = ChangeFeed()
        subscription = feed.subscribe(1)

        waiter = asyncio.create_task(subscription.get())
        await asyncio.sleep(0)
        subscription.close()

        assert await asyncio.wait_for(waiter, timeout=1) is None
        assert await subscription.get() is None


@pytest.mark.unit
class TestManualScheduler:
    def test_callbacks_run_in_due_order(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_later(2.0, lambda: calls.append("late"))
        scheduler.call_later(1.0, lambda: calls.append("early"))

        assert scheduler.advance(1.5) == 1
        assert calls == ["early"]
        assert scheduler.time() == 1.5

        scheduler.advance(1.0)
        assert calls == ["early", "late"]

    def test_cancelled_callback_never_runs(self):
        scheduler = ManualScheduler()
        calls = []
        task = scheduler.call_later(1.0, lambda: calls.append("x"))

        task.cancel()

        assert scheduler.pending == 0
        assert scheduler.advance(5.0) == 0
        assert calls == []

    def test_failing_callback_does_not_stop_others(self):
        scheduler = ManualScheduler()
        calls = []

        def boom():
            raise RuntimeError("boom")

        scheduler.call_later(1.0, boom)
        scheduler.call_later(1.0, lambda: calls.append("after"))

        assert scheduler.advance(1.0) == 2
        assert calls == ["after"]

    def test_callback_can_schedule_within_same_advance(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_later(1.0, lambda: scheduler.call_later(1.0, lambda: calls.append("chained")))

        scheduler.advance(3.0)
        assert calls == ["chained"]


@pytest.mark.unit
@pytest.mark.asyncio
class TestAsyncioScheduler:
    async def test_callback_runs_on_loop(self):
        scheduler = AsyncioScheduler()
        fired = asyncio.Event()

        scheduler.call_later(0.01, fired.set)

        await asyncio.wait_for(fired.wait(), timeout=1)

    async def test_cancel(self):
        scheduler = AsyncioScheduler()
        calls = []

        task = scheduler.call_later(0.01, lambda: calls.append("x"))
        task.cancel()
        await asyncio.sleep(0.05)

        assert calls == []
