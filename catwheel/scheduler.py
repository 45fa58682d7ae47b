from __future__ import annotations

import heapq
import itertools
from typing import Callable, List, Optional, Tuple

from .util import now_s


class TimerHandle:
    """A pending delayed callback. Cancelling is idempotent."""
    __slots__ = ("deadline", "callback", "cancelled", "fired")

    def __init__(self, deadline: float, callback: Callable[[], None]):
        self.deadline = deadline
        self.callback = callback
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self):
        self.cancelled = True


class Scheduler:
    """Single-threaded timer queue.

    Timers are only fired from `run_due()`, which the controller loop calls
    between events, so callbacks never race with pulse handling. The clock is
    injectable; tests drive it with a fake clock instead of sleeping."""
    def __init__(self, clock: Callable[[], float] = now_s):
        self.clock = clock
        self._heap: List[Tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self.clock()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule `callback` to run `delay_s` seconds from now."""
        handle = TimerHandle(self.clock() + max(0.0, float(delay_s)), callback)
        heapq.heappush(self._heap, (handle.deadline, next(self._seq), handle))
        return handle

    def cancel(self, handle: Optional[TimerHandle]):
        if handle is not None:
            handle.cancel()

    def _drop_cancelled(self):
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)

    def next_deadline(self) -> Optional[float]:
        """Deadline of the earliest pending timer, or None."""
        self._drop_cancelled()
        return self._heap[0][0] if self._heap else None

    def time_until_next(self, cap_s: float) -> float:
        deadline = self.next_deadline()
        if deadline is None:
            return cap_s
        return max(0.0, min(cap_s, deadline - self.clock()))

    def run_due(self) -> int:
        """Fire every timer whose deadline has passed, in deadline order.

        Returns the number of callbacks run. Timers scheduled by a callback
        with a deadline already in the past are fired in the same pass."""
        ran = 0
        now = self.clock()
        while True:
            self._drop_cancelled()
            if not self._heap or self._heap[0][0] > now:
                return ran
            _, _, handle = heapq.heappop(self._heap)
            handle.fired = True
            handle.callback()
            ran += 1

    def clear(self):
        """Drop all outstanding timers without running them."""
        for _, _, handle in self._heap:
            handle.cancel()
        self._heap.clear()

    def __len__(self) -> int:
        return sum(1 for _, _, h in self._heap if h.pending)
