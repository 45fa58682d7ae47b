from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from .gpio import GPIOZeroError, make_input
from .scheduler import Scheduler

PulseCallback = Callable[[float], None]


class RotationSensor:
    """Source of rotation pulses. Calls the attached callback with a timestamp per pulse."""
    def __init__(self):
        self._on_pulse: Optional[PulseCallback] = None

    def attach(self, on_pulse: PulseCallback):
        self._on_pulse = on_pulse

    def _emit(self, ts: float):
        if self._on_pulse is not None:
            self._on_pulse(ts)

    def close(self):
        self._on_pulse = None


class GpioRotationSensor(RotationSensor):
    """IR/reed sensor on a GPIO pin.

    gpiozero debounces the line (`bounce_s`). By default a pulse is the line
    being pulled low as a wheel segment passes, and the release edge is
    ignored. Use `trigger_low=False` for sensors that pulse the line high.

    The pulse is bound to the matching gpiozero edge event, so the edge itself
    decides; the pin level is never re-read after the fact."""
    def __init__(self, pin: int, clock: Callable[[], float], pull_up: bool = True, bounce_s: float = 0.02,
                 trigger_low: bool = True, device_factory=make_input):
        super().__init__()
        self.clock = clock
        self.trigger_low = bool(trigger_low)
        self.device = device_factory(pin, pull_up=pull_up, bounce_s=bounce_s)
        # With a pull-up the device is active while the line is low.
        if self.trigger_low == bool(pull_up):
            self.device.when_activated = self._on_edge
        else:
            self.device.when_deactivated = self._on_edge

    def _on_edge(self, device=None):
        self._emit(self.clock())

    def close(self):
        super().close()
        try:
            self.device.close()
        except GPIOZeroError:
            pass


class ScriptedRotationSensor(RotationSensor):
    """Replays a fixed list of pulse timestamps through a scheduler.

    Used with a virtual clock: each timestamp becomes a timer that fires the
    pulse callback when the clock reaches it."""
    def __init__(self, scheduler: Scheduler, times: Iterable[float] = ()):
        super().__init__()
        self.scheduler = scheduler
        self.times: List[float] = sorted(float(t) for t in times)
        self._handles = []

    def start(self):
        now = self.scheduler.now()
        for ts in self.times:
            self._handles.append(self.scheduler.call_later(ts - now, lambda ts=ts: self._emit(ts)))

    def extend(self, times: Iterable[float]):
        now = self.scheduler.now()
        for ts in sorted(float(t) for t in times):
            self.times.append(ts)
            self._handles.append(self.scheduler.call_later(ts - now, lambda ts=ts: self._emit(ts)))

    def close(self):
        super().close()
        for handle in self._handles:
            handle.cancel()
        self._handles = []
