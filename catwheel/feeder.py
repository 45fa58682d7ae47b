from __future__ import annotations

from .config import GameConfig
from .logging import JsonLogger
from .scheduler import Scheduler
from .state import WheelState


class FeederActuator:
    """Drives the food dispenser.

    The dispenser motor is started by a short active pulse on its control line
    (`feed_pulse_s`) and then runs on its own; `feed_duration_s` is how long the
    mechanism is considered busy. While busy, pulses are ignored by the
    progress tracker and further feeds are suppressed.

    `output` is any object with `on()` / `off()`; in production a gpiozero
    DigitalOutputDevice configured active-low so that `off()` is the resting
    high level."""
    def __init__(self, state: WheelState, config: GameConfig, scheduler: Scheduler, logger: JsonLogger, output):
        self.state = state
        self.config = config
        self.scheduler = scheduler
        self.logger = logger
        self.output = output

    def trigger_feed(self) -> bool:
        """Start one feed cycle. Returns False if a cycle is already running."""
        feeder = self.state.feeder
        if feeder.feeding:
            self.logger.emit("feed_suppressed")
            return False
        now = self.scheduler.now()
        feeder.feeding = True
        feeder.started_ts = now
        feeder.done_ts = now + self.config.feed_duration_s
        feeder.feeds_total += 1

        self.output.on()
        self.logger.emit("feed_start", duration_s=self.config.feed_duration_s)
        # Neither timer is ever cancelled; both always run to completion.
        self.scheduler.call_later(self.config.feed_pulse_s, self._release_line)
        self.scheduler.call_later(self.config.feed_duration_s, self._on_feed_done)
        return True

    def _release_line(self):
        self.output.off()

    def _on_feed_done(self):
        self.state.feeder.feeding = False
        self.logger.emit("feed_done", feeds_total=self.state.feeder.feeds_total)
