from __future__ import annotations

import queue
import random
import threading
from typing import Callable, Optional

from .config import GameConfig
from .counter import CountStateMachine
from .feeder import FeederActuator
from .jackpot import JackpotEngine
from .logging import JsonLogger
from .progress import ProgressTracker
from .sampler import RotationSampler
from .scheduler import Scheduler
from .sensor import RotationSensor
from .state import WheelState
from .util import local_hour


class WheelController:
    """Cat wheel reward controller.

    Wires the rotation sensor to the game: pulses feed the RPM sampler and the
    progress tracker, which advances the count machine, which resolves the
    jackpot, which runs the feeder.

    Sensor callbacks arrive on gpiozero's threads and only enqueue a timestamp.
    A single loop thread drains that queue and fires due timers, so every pulse
    and timer is handled to completion before the next one."""
    def __init__(
        self,
        config: GameConfig,
        logger: JsonLogger,
        sensor: Optional[RotationSensor],
        feeder_output,
        cues,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
        hour_fn: Callable[[], int] = local_hour,
        notifier=None,
        verbose: bool = False,
        state: Optional[WheelState] = None,
    ):
        """
        Build all components around one shared state.

        Construction is side-effect free apart from attaching to the sensor;
        the loop thread is started by start().
        """
        self.config = config.validate()
        self.logger = logger
        self.verbose = bool(verbose)
        self.state = state if state is not None else WheelState()
        self.scheduler = scheduler if scheduler is not None else Scheduler()
        self.cues = cues

        self.sampler = RotationSampler(self.state, self.config, self.scheduler, logger)
        self.feeder = FeederActuator(self.state, self.config, self.scheduler, logger, feeder_output)
        self.jackpot = JackpotEngine(
            self.state, self.config, self.scheduler, logger, self.feeder, cues, rng=rng, notifier=notifier,
        )
        self.counter = CountStateMachine(self.state, self.config, logger, self.jackpot, cues)
        self.progress = ProgressTracker(
            self.state, self.config, self.scheduler, logger, self.counter, self.jackpot,
            hour_fn=hour_fn, verbose=verbose,
        )

        self._events: "queue.Queue[float]" = queue.Queue()
        self._stop_evt = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.sensor = None
        if sensor is not None:
            self.attach_sensor(sensor)

    def attach_sensor(self, sensor: RotationSensor):
        """Route an already-open sensor's pulses into the loop."""
        self.sensor = sensor
        sensor.attach(self._on_sensor_pulse)

    def _on_sensor_pulse(self, ts: float):
        """Sensor callback. May run on a foreign thread; only enqueues."""
        # Ignore late GPIO callbacks once shutdown begins.
        if self._stop_evt.is_set():
            return
        self._events.put(ts)

    def handle_pulse(self, ts: Optional[float] = None) -> bool:
        """Process one pulse on the loop. Returns True if it counted towards progress."""
        if self._stop_evt.is_set():
            return False
        if ts is None:
            ts = self.scheduler.now()
        self.sampler.record_pulse(ts)
        self.sampler.compute_rpm(ts)
        return self.progress.on_pulse(ts)

    def pump(self, timeout_s: float = 0.0) -> int:
        """Handle queued pulses and due timers once. Returns the number of events handled."""
        handled = 0
        try:
            ts = self._events.get(timeout=timeout_s) if timeout_s > 0 else self._events.get_nowait()
        except queue.Empty:
            ts = None
        while ts is not None:
            self.handle_pulse(ts)
            handled += 1
            try:
                ts = self._events.get_nowait()
            except queue.Empty:
                ts = None
        handled += self.scheduler.run_due()
        return handled

    def snapshot(self) -> dict:
        snap = self.state.snapshot()
        snap["phase"] = self.counter.phase.value
        snap["chance"] = self.jackpot.compute_chance(self.scheduler.now())
        return snap

    def start(self):
        """Start the loop thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()

    def stop(self):
        """Stop the loop, drop outstanding timers and release the sensor."""
        if self._stop_evt.is_set():
            return
        self._stop_evt.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)
        self.scheduler.clear()
        if self.sensor is not None:
            self.sensor.close()
        self.logger.emit("shutdown", **self.state.snapshot())

    def run_forever(self, stop: Optional[threading.Event] = None, poll_s: float = 0.2) -> int:
        """Run the loop thread until `stop` is set, then shut down.

        Returns the process exit code: 0 after a requested stop, 3 if the loop
        thread died on its own."""
        if stop is None:
            stop = threading.Event()
        self.start()
        exit_code = 0
        while not stop.is_set():
            if not self.running:
                self.logger.emit("loop_thread_dead")
                exit_code = 3
                break
            stop.wait(poll_s)
        self.stop()
        return exit_code

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self):
        """Main loop. Waits for pulses until the next timer is due."""
        while not self._stop_evt.is_set():
            self.pump(timeout_s=self.scheduler.time_until_next(0.2) or 0.001)
