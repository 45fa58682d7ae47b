import pytest

from catwheel.audio import NullCuePlayer
from catwheel.config import GameConfig
from catwheel.controller import WheelController
from catwheel.scheduler import Scheduler


class CapturingLogger:
    """Minimal logger that matches the .emit(event, **fields) contract."""
    def __init__(self):
        self.events = []

    def emit(self, event: str, **fields):
        self.events.append((event, fields))

    def names(self):
        return [e for e, _ in self.events]

    def of(self, event: str):
        return [f for e, f in self.events if e == event]


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class FakeOutput:
    """Stands in for the feeder's DigitalOutputDevice."""
    def __init__(self, clock=None):
        self.clock = clock
        self.value = 0
        self.history = []

    def _ts(self):
        return self.clock() if self.clock is not None else None

    def on(self):
        self.value = 1
        self.history.append(("on", self._ts()))

    def off(self):
        self.value = 0
        self.history.append(("off", self._ts()))

    def close(self):
        pass


class FixedDraw:
    """rng stand-in returning the same draw every time."""
    def __init__(self, value: int):
        self.value = value
        self.calls = 0

    def randrange(self, stop):
        self.calls += 1
        return self.value


def advance(clock: FakeClock, scheduler: Scheduler, dt: float):
    """Move the fake clock forward, firing timers at their exact deadlines."""
    target = clock.now + dt
    while True:
        deadline = scheduler.next_deadline()
        if deadline is None or deadline > target:
            break
        clock.now = max(clock.now, deadline)
        scheduler.run_due()
    clock.now = target


class Game:
    """A controller on a virtual clock with fake feeder output and cue player."""
    def __init__(self, config=None, rng=None, hour=12, verbose=False, notifier=None):
        self.clock = FakeClock()
        self.scheduler = Scheduler(clock=self.clock)
        self.logger = CapturingLogger()
        self.cues = NullCuePlayer()
        self.output = FakeOutput(self.clock)
        self.hour = hour
        self.controller = WheelController(
            config=config or GameConfig(),
            logger=self.logger,
            sensor=None,
            feeder_output=self.output,
            cues=self.cues,
            scheduler=self.scheduler,
            rng=rng if rng is not None else FixedDraw(0),
            hour_fn=lambda: self.hour,
            notifier=notifier,
            verbose=verbose,
        )
        self.state = self.controller.state

    def advance(self, dt: float):
        advance(self.clock, self.scheduler, dt)

    def spin(self, pulses: int, interval_s: float = 0.1):
        """Deliver `pulses` pulses, one every `interval_s` seconds."""
        accepted = 0
        for _ in range(pulses):
            self.advance(interval_s)
            if self.controller.handle_pulse(self.clock.now):
                accepted += 1
        return accepted


# Pulses needed to reach each count with the default config (18, 19, 20, 21, 22).
PULSES_TO_JACKPOT = 18 + 19 + 20 + 21 + 22


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock=clock)


@pytest.fixture
def logger():
    return CapturingLogger()


@pytest.fixture
def make_game():
    return Game


@pytest.fixture
def mock_pins():
    """Route gpiozero devices to mock pins for the duration of a test."""
    from gpiozero import Device
    from gpiozero.pins.mock import MockFactory

    old = Device.pin_factory
    Device.pin_factory = MockFactory()
    try:
        yield Device.pin_factory
    finally:
        Device.pin_factory.reset()
        Device.pin_factory = old
