from innerquest.core.bus import EventBus


def test_publish_reaches_subscribers_in_order():
    bus = EventBus()
    received = []
    bus.subscribe("day:start", lambda payload: received.append(("first", payload["day"])))
    bus.subscribe("day:start", lambda payload: received.append(("second", payload["day"])))

    bus.publish("day:start", {"day": 3})

    assert received == [("first", 3), ("second", 3)]


def test_unsubscribe():
    bus = EventBus()
    received = []
    handler = received.append
    bus.subscribe("saved", handler)

    assert bus.unsubscribe("saved", handler)
    assert not bus.unsubscribe("saved", handler)
    bus.publish("saved", {})

    assert received == []


def test_failing_handler_is_isolated():
    bus = EventBus()
    received = []

    def broken(payload):
        raise RuntimeError("boom")

    bus.subscribe("choice:made", broken)
    bus.subscribe("choice:made", received.append)

    bus.publish("choice:made", {"x": 1})

    assert received == [{"x": 1}]
    errors = bus.last_publish_errors()
    assert len(errors) == 1
    assert isinstance(errors[0], RuntimeError)
