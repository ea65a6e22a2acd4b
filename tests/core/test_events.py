"""Tests for event bus."""

from critterforge.core.events import EventBus, EventType


def test_subscribe_publish():
    bus = EventBus()
    received = []
    bus.subscribe(EventType.FRAME_UPDATE, lambda **kw: received.append(kw))
    bus.publish(EventType.FRAME_UPDATE, frame=3)
    assert received == [{"frame": 3}]


def test_unsubscribe():
    bus = EventBus()
    received = []
    handler = lambda **kw: received.append(kw)
    bus.subscribe(EventType.STEP_STARTED, handler)
    bus.unsubscribe(EventType.STEP_STARTED, handler)
    bus.publish(EventType.STEP_STARTED, reason="overreach")
    assert len(received) == 0


def test_unsubscribe_unknown_handler():
    bus = EventBus()
    # Should not raise
    bus.unsubscribe(EventType.STEP_LANDED, lambda **kw: None)


def test_different_events_independent():
    bus = EventBus()
    received = []
    bus.subscribe(EventType.STEP_LANDED, lambda **kw: received.append("landed"))
    bus.publish(EventType.STEP_STARTED, reason="wrong_side")
    assert len(received) == 0


def test_clear():
    bus = EventBus()
    bus.subscribe(EventType.FRAME_UPDATE, lambda **kw: None)
    bus.clear()
    # Should not raise
    bus.publish(EventType.FRAME_UPDATE)
