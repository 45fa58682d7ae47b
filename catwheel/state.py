from __future__ import annotations

import collections
from dataclasses import dataclass, field
from typing import Deque, Optional

from .scheduler import TimerHandle


@dataclass
class ProgressState:
    """Current count and the steps collected towards the next one."""
    count: int = 0
    steps: float = 0.0
    idle_timer: Optional[TimerHandle] = None

    def reset(self):
        self.count = 0
        self.steps = 0.0


@dataclass
class CooldownState:
    active: bool = False
    until_ts: float = 0.0


@dataclass
class FeederState:
    feeding: bool = False
    started_ts: float = 0.0
    done_ts: float = 0.0
    feeds_total: int = 0


@dataclass
class WheelState:
    """Holds all mutable runtime state of the wheel game.

    One instance is owned by the controller and passed to every component. It
    is only mutated from the controller loop (pulse handlers and timer
    callbacks), so no locking is needed."""
    progress: ProgressState = field(default_factory=ProgressState)
    cooldown: CooldownState = field(default_factory=CooldownState)
    feeder: FeederState = field(default_factory=FeederState)

    pulse_window: Deque[float] = field(default_factory=collections.deque)
    rpm: int = 0
    last_rpm_ts: Optional[float] = None

    jackpot_wins: Deque[float] = field(default_factory=collections.deque)

    pulses_total: int = 0
    pulses_accepted: int = 0
    jackpots_total: int = 0

    def snapshot(self) -> dict:
        """Plain-dict view of the state for status output."""
        return {
            "count": self.progress.count,
            "steps": self.progress.steps,
            "rpm": self.rpm,
            "cooldown": self.cooldown.active,
            "feeding": self.feeder.feeding,
            "feeds_total": self.feeder.feeds_total,
            "jackpot_wins": list(self.jackpot_wins),
            "jackpots_total": self.jackpots_total,
            "pulses_total": self.pulses_total,
            "pulses_accepted": self.pulses_accepted,
        }
