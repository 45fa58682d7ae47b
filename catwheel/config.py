from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace


def get_bool_env(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    val = val.lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    return default


def get_notifier_config():
    return {
        "enabled": get_bool_env("CATWHEEL_NOTIFY", False),
        "pushover_token": os.getenv("PUSHOVER_TOKEN"),
        "pushover_user": os.getenv("PUSHOVER_USER"),
    }


def _clamp(value, lo, hi=None):
    if value < lo:
        return lo
    if hi is not None and value > hi:
        return hi
    return value


@dataclass(frozen=True)
class GameConfig:
    """Tuning knobs for the wheel game. All durations are in seconds.

    Defaults reproduce the behaviour of the deployed wheel: a 24 segment wheel,
    five counts to the jackpot and no chance decay between wins."""
    wheel_segments: int = 24
    target_count: int = 5
    base_steps_per_count: float = 24 * 0.75
    growth_rate: float = 1.05
    step_scale: int = 10

    idle_abort_s: float = 10.0
    rpm_idle_s: float = 10.0
    rpm_interval_s: float = 1.0

    decrease_per_win: float = 0.0
    history_ttl_s: float = 5 * 60 * 60
    history_size: int = 10
    cooldown_s: float = 20.0

    feed_pulse_s: float = 0.1
    feed_duration_s: float = 11.0

    open_hour: int = 7
    close_hour: int = 21

    def validate(self) -> "GameConfig":
        """Return a copy with out-of-range values clamped to the nearest valid value."""
        return replace(
            self,
            wheel_segments=int(_clamp(int(self.wheel_segments), 1)),
            target_count=int(_clamp(int(self.target_count), 1)),
            base_steps_per_count=float(_clamp(float(self.base_steps_per_count), 0.0)),
            growth_rate=float(_clamp(float(self.growth_rate), 1.0)),
            step_scale=int(_clamp(int(self.step_scale), 1)),
            idle_abort_s=float(_clamp(float(self.idle_abort_s), 0.0)),
            rpm_idle_s=float(_clamp(float(self.rpm_idle_s), 0.0)),
            rpm_interval_s=float(_clamp(float(self.rpm_interval_s), 0.0)),
            decrease_per_win=float(_clamp(float(self.decrease_per_win), 0.0, 100.0)),
            history_ttl_s=float(_clamp(float(self.history_ttl_s), 0.0)),
            history_size=int(_clamp(int(self.history_size), 1)),
            cooldown_s=float(_clamp(float(self.cooldown_s), 0.0)),
            feed_pulse_s=float(_clamp(float(self.feed_pulse_s), 0.0)),
            feed_duration_s=float(_clamp(float(self.feed_duration_s), 0.0)),
            open_hour=int(_clamp(int(self.open_hour), 0, 24)),
            close_hour=int(_clamp(int(self.close_hour), 0, 24)),
        )

    def is_open(self, hour: int) -> bool:
        """True if `hour` lies in [open_hour, close_hour). Wraps past midnight."""
        if self.open_hour == self.close_hour:
            return True
        if self.open_hour < self.close_hour:
            return self.open_hour <= hour < self.close_hour
        return hour >= self.open_hour or hour < self.close_hour

    @classmethod
    def from_mapping(cls, values: dict) -> "GameConfig":
        """Build a config from a flat dict, ignoring unknown or None values."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in values.items() if k in known and v is not None}
        return cls(**kwargs).validate()
