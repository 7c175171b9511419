# tests/test_events.py
from storefront.events import EventBus


def test_handlers_run_in_subscription_order():
    bus = EventBus()
    calls = []
    bus.on("ping", lambda d: calls.append(("a", d)))
    bus.on("ping", lambda d: calls.append(("b", d)))
    bus.emit("ping", 1)
    assert calls == [("a", 1), ("b", 1)]


def test_unsubscribe():
    bus = EventBus()
    calls = []
    unsubscribe = bus.on("ping", calls.append)
    unsubscribe()
    bus.emit("ping", 1)
    assert calls == []
    assert bus.listener_count("ping") == 0


def test_failing_handler_does_not_stop_delivery(caplog):
    bus = EventBus()
    calls = []

    def boom(detail):
        raise RuntimeError("boom")

    bus.on("ping", boom)
    bus.on("ping", calls.append)
    bus.emit("ping", "x")
    assert calls == ["x"]
    assert "Handler for ping failed" in caplog.text


def test_handler_may_unsubscribe_itself():
    bus = EventBus()
    calls = []

    def once(detail):
        calls.append(detail)
        bus.off("ping", once)

    bus.on("ping", once)
    bus.emit("ping", 1)
    bus.emit("ping", 2)
    assert calls == [1]
