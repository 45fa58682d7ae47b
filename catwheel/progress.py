from __future__ import annotations

from typing import Callable, Optional

from .config import GameConfig
from .constants import GATE_CLOSED, GATE_COOLDOWN, GATE_FEEDING, GATE_WIN_CAP
from .counter import CountStateMachine
from .jackpot import JackpotEngine
from .logging import JsonLogger
from .scheduler import Scheduler
from .state import WheelState
from .util import local_hour, round_half_up


class ProgressTracker:
    """Accumulates steps from accepted pulses and drives the count machine.

    Each count needs more steps than the previous one (`growth_rate`), so the
    cats have to keep playing for longer. Any accepted pulse pushes the
    idle-abort deadline forward; if the wheel stays still for `idle_abort_s`
    the game is aborted."""
    def __init__(
        self,
        state: WheelState,
        config: GameConfig,
        scheduler: Scheduler,
        logger: JsonLogger,
        counter: CountStateMachine,
        jackpot: JackpotEngine,
        hour_fn: Callable[[], int] = local_hour,
        verbose: bool = False,
    ):
        self.state = state
        self.config = config
        self.scheduler = scheduler
        self.logger = logger
        self.counter = counter
        self.jackpot = jackpot
        self.hour_fn = hour_fn
        self.verbose = bool(verbose)

    def threshold(self, count: int) -> int:
        """Scaled steps needed to get from `count` to `count + 1`."""
        base = self.config.base_steps_per_count * (self.config.growth_rate ** count)
        return round_half_up(base) * self.config.step_scale

    def increment(self) -> float:
        """Scaled steps added per accepted pulse.

        NOTE: min(0, rpm/100) is always 0 since rpm >= 0, so every pulse adds
        the full step_scale. Kept as-is until the speed falloff is settled."""
        return self.config.step_scale * (1 - min(0.0, self.state.rpm / 100))

    def gate(self, now: float) -> Optional[str]:
        """Reason the pulse is not accepted, or None if it counts."""
        if self.state.feeder.feeding:
            return GATE_FEEDING
        if self.state.cooldown.active:
            return GATE_COOLDOWN
        if self.jackpot.win_cap_reached(now):
            return GATE_WIN_CAP
        if not self.config.is_open(self.hour_fn()):
            return GATE_CLOSED
        return None

    def on_pulse(self, now: Optional[float] = None) -> bool:
        """Handle one rotation pulse. Returns True if it was accepted."""
        if now is None:
            now = self.scheduler.now()
        reason = self.gate(now)
        if reason is not None:
            if self.verbose:
                self.logger.emit("pulse_ignored", reason=reason)
            return False

        self.state.pulses_accepted += 1
        self._rearm_idle_timer()

        progress = self.state.progress
        progress.steps += self.increment()
        if progress.steps >= self.threshold(progress.count):
            if progress.count + 1 >= self.config.target_count:
                # The game is over either way; no abort should follow.
                self._cancel_idle_timer()
            self.counter.advance()
        return True

    def _rearm_idle_timer(self):
        progress = self.state.progress
        self.scheduler.cancel(progress.idle_timer)
        progress.idle_timer = self.scheduler.call_later(self.config.idle_abort_s, self._on_idle)

    def _cancel_idle_timer(self):
        progress = self.state.progress
        self.scheduler.cancel(progress.idle_timer)
        progress.idle_timer = None

    def _on_idle(self):
        self.state.progress.idle_timer = None
        self.counter.abort()

    def reset(self):
        """Forget all progress and the pending idle timer."""
        self._cancel_idle_timer()
        self.state.progress.reset()
