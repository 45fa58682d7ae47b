from __future__ import annotations

from gpiozero import Device, DigitalInputDevice, DigitalOutputDevice, GPIOZeroError


def use_lgpio_backend() -> bool:
    """Force the lgpio pin backend (Pi 5 / Debian Trixie+) when it is installed.

    Returns False and leaves gpiozero's default pin factory selection in place
    when lgpio is unavailable."""
    try:
        from gpiozero.pins.lgpio import LGPIOFactory
    except ImportError:
        return False
    Device.pin_factory = LGPIOFactory()
    return True


def make_input(pin: int, pull_up: bool = True, bounce_s: float | None = None) -> DigitalInputDevice:
    return DigitalInputDevice(pin, pull_up=pull_up, bounce_time=bounce_s)


def make_output(pin: int, active_high: bool = False) -> DigitalOutputDevice:
    """Output line that rests inactive. Active-low by default: off() holds the pin high."""
    return DigitalOutputDevice(pin, active_high=active_high, initial_value=False)


__all__ = ["GPIOZeroError", "make_input", "make_output", "use_lgpio_backend"]
