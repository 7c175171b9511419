# tests/test_countdown.py
import threading
import time
from datetime import datetime, timedelta, timezone

from storefront.countdown import EXPIRED, PaymentCountdown

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def fixed(now=NOW):
    return lambda: now


def test_display_minutes_and_seconds():
    countdown = PaymentCountdown(NOW + timedelta(minutes=29, seconds=5), clock=fixed())
    assert countdown.display() == "29:05"
    assert countdown.can_submit()
    assert countdown.remaining() == timedelta(minutes=29, seconds=5)


def test_display_counts_total_minutes_past_an_hour():
    countdown = PaymentCountdown(NOW + timedelta(minutes=75, seconds=30), clock=fixed())
    assert countdown.display() == "75:30"


def test_expired_at_or_after_the_deadline():
    countdown = PaymentCountdown(NOW, clock=fixed())
    assert countdown.is_expired()
    assert countdown.display() == EXPIRED
    assert not countdown.can_submit()
    assert countdown.remaining() == timedelta(0)

    later = PaymentCountdown(NOW - timedelta(seconds=1), clock=fixed())
    assert later.display() == "Expired"


def test_parses_iso_strings():
    countdown = PaymentCountdown("2024-05-01T12:01:00Z", clock=fixed())
    assert countdown.display() == "1:00"
    naive = PaymentCountdown("2024-05-01T12:00:30", clock=fixed())
    assert naive.display() == "0:30"


def test_start_ticks_until_expired():
    ticks = []
    done = threading.Event()

    def on_tick(text):
        ticks.append(text)
        if text == EXPIRED:
            done.set()

    countdown = PaymentCountdown(NOW - timedelta(seconds=5), clock=fixed())
    countdown.start(on_tick, interval=0.01)
    assert done.wait(2)
    countdown.stop()
    assert ticks == [EXPIRED]


def test_stop_ends_a_running_countdown():
    ticks = []
    ticked = threading.Event()

    def on_tick(text):
        ticks.append(text)
        ticked.set()

    countdown = PaymentCountdown(NOW + timedelta(minutes=30), clock=fixed())
    countdown.start(on_tick, interval=0.01)
    assert ticked.wait(2)
    countdown.stop()
    count = len(ticks)
    assert ticks[0] == "30:00"
    time.sleep(0.05)
    assert len(ticks) == count
