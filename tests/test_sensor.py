import pytest

from catwheel.gpio import GPIOZeroError, make_output
from catwheel.sensor import GpioRotationSensor, ScriptedRotationSensor

from conftest import advance


def test_gpio_sensor_pulses_on_falling_edge_only(mock_pins, clock):
    sensor = GpioRotationSensor(23, clock=clock, pull_up=True, bounce_s=None)
    seen = []
    sensor.attach(seen.append)
    pin = mock_pins.pin(23)

    for _ in range(3):
        clock.now += 0.1
        pin.drive_low()
        clock.now += 0.1
        pin.drive_high()

    assert seen == pytest.approx([1000.1, 1000.3, 1000.5])
    sensor.close()


def test_gpio_sensor_can_trigger_on_rising_edge(mock_pins, clock):
    sensor = GpioRotationSensor(23, clock=clock, pull_up=True, bounce_s=None, trigger_low=False)
    seen = []
    sensor.attach(seen.append)
    pin = mock_pins.pin(23)
    pin.drive_low()
    clock.now += 0.5
    pin.drive_high()
    assert seen == pytest.approx([1000.5])
    sensor.close()


def test_gpio_sensor_with_pull_down_still_triggers_low(mock_pins, clock):
    sensor = GpioRotationSensor(23, clock=clock, pull_up=False, bounce_s=None)
    seen = []
    sensor.attach(seen.append)
    pin = mock_pins.pin(23)
    pin.drive_high()
    clock.now += 0.25
    pin.drive_low()
    assert seen == pytest.approx([1000.25])
    sensor.close()


class EdgeDevice:
    """Records the edge callbacks the sensor binds; the level is never readable."""
    def __init__(self, pin, **kwargs):
        self.when_activated = None
        self.when_deactivated = None
        self.closed = False

    @property
    def is_active(self):
        raise AssertionError("pin level must not be re-read")

    def close(self):
        self.closed = True
        raise GPIOZeroError("already closed")


def test_pulse_comes_from_the_edge_event(clock):
    sensor = GpioRotationSensor(23, clock=clock, device_factory=EdgeDevice)
    seen = []
    sensor.attach(seen.append)
    assert sensor.device.when_deactivated is None

    # Two activations delivered late, after the line has already been released.
    sensor.device.when_activated()
    clock.now += 0.05
    sensor.device.when_activated(sensor.device)
    assert seen == pytest.approx([1000.0, 1000.05])


def test_close_tolerates_device_errors(clock):
    sensor = GpioRotationSensor(23, clock=clock, device_factory=EdgeDevice)
    sensor.close()
    assert sensor.device.closed is True


def test_closed_sensor_stops_delivering(mock_pins, clock):
    sensor = GpioRotationSensor(23, clock=clock, pull_up=True, bounce_s=None)
    seen = []
    sensor.attach(seen.append)
    sensor.close()
    sensor._emit(1.0)
    assert seen == []


def test_feeder_output_rests_high_and_pulses_low(mock_pins):
    out = make_output(24)
    pin = mock_pins.pin(24)
    assert pin.state == 1
    out.on()
    assert pin.state == 0
    out.off()
    assert pin.state == 1
    out.close()


def test_scripted_sensor_replays_at_exact_times(clock, scheduler):
    sensor = ScriptedRotationSensor(scheduler, [1000.5, 1000.2, 1001.0])
    seen = []
    sensor.attach(lambda ts: seen.append((ts, clock.now)))
    sensor.start()
    advance(clock, scheduler, 2.0)
    assert [ts for ts, _ in seen] == [1000.2, 1000.5, 1001.0]
    assert [at for _, at in seen] == pytest.approx([1000.2, 1000.5, 1001.0])


def test_scripted_sensor_close_cancels_pending(clock, scheduler):
    sensor = ScriptedRotationSensor(scheduler, [1001.0, 1002.0])
    seen = []
    sensor.attach(seen.append)
    sensor.start()
    advance(clock, scheduler, 1.5)
    sensor.close()
    advance(clock, scheduler, 5.0)
    assert seen == [1001.0]
