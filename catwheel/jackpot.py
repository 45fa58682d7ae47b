from __future__ import annotations

import random
from typing import Optional

from .config import GameConfig
from .constants import CUE_LOSE, CUE_WIN, MAX_CHANCE
from .feeder import FeederActuator
from .logging import JsonLogger
from .scheduler import Scheduler
from .state import WheelState


class JackpotEngine:
    """Decides whether a completed game pays out.

    The win chance starts at 100% and drops by `decrease_per_win` for every win
    recorded within `history_ttl_s`. Every evaluation starts a fixed cooldown
    regardless of the outcome. A win is recorded in the bounded history, plays
    the win cue and runs the feeder."""
    def __init__(
        self,
        state: WheelState,
        config: GameConfig,
        scheduler: Scheduler,
        logger: JsonLogger,
        feeder: FeederActuator,
        cues,
        rng: Optional[random.Random] = None,
        notifier=None,
    ):
        self.state = state
        self.config = config
        self.scheduler = scheduler
        self.logger = logger
        self.feeder = feeder
        self.cues = cues
        self.rng = rng if rng is not None else random.Random()
        self.notifier = notifier

    def recent_wins(self, now: float) -> int:
        """Number of recorded wins newer than the history TTL."""
        cutoff = now - self.config.history_ttl_s
        return sum(1 for ts in self.state.jackpot_wins if ts > cutoff)

    def compute_chance(self, now: float) -> int:
        """Win chance in percent, clamped to [0, 100]."""
        decrease = self.config.decrease_per_win
        if not decrease:
            return MAX_CHANCE
        chance = MAX_CHANCE - decrease * self.recent_wins(now)
        return max(0, int(chance))

    def win_cap_reached(self, now: float) -> bool:
        """True once enough recent wins have pushed the chance down to zero.

        Disabled when `decrease_per_win` is 0."""
        decrease = self.config.decrease_per_win
        if not decrease:
            return False
        return self.recent_wins(now) >= MAX_CHANCE / decrease

    def resolve(self) -> bool:
        """Run one jackpot evaluation. Returns True on a win."""
        now = self.scheduler.now()
        chance = self.compute_chance(now)

        self._start_cooldown(now)

        draw = self.rng.randrange(MAX_CHANCE)
        won = draw <= chance
        self.state.jackpots_total += 1
        self.logger.emit("jackpot", chance=chance, draw=draw, outcome=("win" if won else "lose"))
        if not won:
            self.cues.play(CUE_LOSE)
            return False

        self._record_win(now)
        self.cues.play(CUE_WIN)
        self.feeder.trigger_feed()
        if self.notifier is not None:
            self.notifier.jackpot_won(
                chance=chance,
                draw=draw,
                wins_recent=self.recent_wins(now),
                next_chance=self.compute_chance(now),
                feeds_total=self.state.feeder.feeds_total,
            )
        return True

    def _record_win(self, now: float):
        wins = self.state.jackpot_wins
        wins.append(now)
        while len(wins) > self.config.history_size:
            wins.popleft()

    def _start_cooldown(self, now: float):
        cooldown = self.state.cooldown
        cooldown.active = True
        cooldown.until_ts = now + self.config.cooldown_s
        self.scheduler.call_later(self.config.cooldown_s, self._end_cooldown)

    def _end_cooldown(self):
        self.state.cooldown.active = False
        self.logger.emit("cooldown_cleared")
