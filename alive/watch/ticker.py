# alive/watch/ticker.py
import math
import time


class Ticker:
    """
    Periodic ticker polled by the scheduler loop.

    The first tick is due one period after creation and ticks stay on that
    grid. At most one tick is ever pending: ticks that fall due while the
    owner is busy collapse into one, and the next one is the first grid point
    after the moment the pending tick was consumed.
    An infinite period never ticks.
    """

    def __init__(self, period: float, clock=time.monotonic):
        if not period > 0:
            raise ValueError(f"non-positive interval for ticker: {period!r}")
        self.period = period
        self.clock = clock
        self.start = clock()
        self.next = self.start + period

    def ready(self, now: float | None = None) -> bool:
        """Consume the pending tick, if any."""
        if now is None:
            now = self.clock()
        if now < self.next:
            return False
        if not math.isinf(self.period):
            ticks = math.floor((now - self.start) / self.period) + 1
            self.next = self.start + ticks * self.period
        return True

    def remaining(self, now: float) -> float:
        return self.next - now
