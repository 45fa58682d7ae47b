from __future__ import annotations

from .config import GameConfig
from .logging import JsonLogger
from .scheduler import Scheduler, TimerHandle
from .state import WheelState
from .util import round_half_up


class RotationSampler:
    """Turns rotation pulses into an RPM estimate.

    Keeps the last `wheel_segments` pulse timestamps (one full revolution) and
    recomputes RPM at most once per `rpm_interval_s`, only once the window is
    full. If no recomputation happens for `rpm_idle_s` the window is cleared and
    RPM drops to 0."""
    def __init__(self, state: WheelState, config: GameConfig, scheduler: Scheduler, logger: JsonLogger):
        self.state = state
        self.config = config
        self.scheduler = scheduler
        self.logger = logger
        self._idle_timer: TimerHandle | None = None

    def record_pulse(self, ts: float):
        """Append a pulse timestamp, evicting the oldest beyond one revolution."""
        window = self.state.pulse_window
        window.append(ts)
        while len(window) > self.config.wheel_segments:
            window.popleft()
        self.state.pulses_total += 1

    def compute_rpm(self, now: float) -> bool:
        """Recompute RPM from the window. Returns True if the estimate changed."""
        window = self.state.pulse_window
        if len(window) < self.config.wheel_segments:
            return False
        last = self.state.last_rpm_ts
        if last is not None and now - last < self.config.rpm_interval_s:
            return False
        self.state.last_rpm_ts = now

        self.scheduler.cancel(self._idle_timer)
        self._idle_timer = self.scheduler.call_later(self.config.rpm_idle_s, self._on_idle)

        intervals = len(window) - 1
        if intervals < 1:
            return False
        mean_interval_ms = (window[-1] - window[0]) * 1000.0 / intervals
        if mean_interval_ms <= 0:
            return False
        rpm = round_half_up(60000.0 / (mean_interval_ms * self.config.wheel_segments))
        if rpm == self.state.rpm:
            return False
        self.state.rpm = rpm
        self.logger.emit("rpm", rpm=rpm)
        return True

    def _on_idle(self):
        self._idle_timer = None
        self.state.pulse_window.clear()
        self.state.rpm = 0
        self.logger.emit("rpm", rpm=0)
