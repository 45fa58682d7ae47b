from __future__ import annotations

import math
import time


def now_s() -> float:
    """Monotonic clock in seconds."""
    return time.monotonic()


def local_hour() -> int:
    """Wall-clock hour (0-23) in local time. Used for the operating-hours gate."""
    return time.localtime().tm_hour


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (2.5 -> 3)."""
    return int(math.floor(x + 0.5))
