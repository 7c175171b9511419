# storefront/countdown.py
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

EXPIRED = "Expired"


def _parse(expires_at: Union[str, datetime]) -> datetime:
    if isinstance(expires_at, datetime):
        value = expires_at
    else:
        value = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class PaymentCountdown:
    """Wall-clock countdown for the pay button.

    Display only. The API enforces the real expiry, and this clock may drift
    from the server's.
    """

    def __init__(self, expires_at: Union[str, datetime],
                 clock: Optional[Callable[[], datetime]] = None):
        self.expires_at = _parse(expires_at)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def remaining(self) -> timedelta:
        left = self.expires_at - self.clock()
        return left if left > timedelta(0) else timedelta(0)

    def is_expired(self) -> bool:
        return self.clock() >= self.expires_at

    def display(self) -> str:
        if self.is_expired():
            return EXPIRED
        total = int(self.remaining().total_seconds())
        minutes, seconds = divmod(total, 60)
        return f"{minutes}:{seconds:02d}"

    def can_submit(self) -> bool:
        return not self.is_expired()

    def start(self, on_tick: Callable[[str], None], interval: float = 1.0) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()

        def _run():
            while True:
                text = self.display()
                on_tick(text)
                if text == EXPIRED or self._stop.wait(interval):
                    return

        self._thread = threading.Thread(target=_run, name="payment-countdown", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=1)
        self._thread = None
