from __future__ import annotations

import argparse
import time
from argparse import RawDescriptionHelpFormatter

try:
    import tomllib  # py3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib

from .config import GameConfig
from .constants import USAGE_EXAMPLES
from .feeder import FeederActuator
from .gpio import make_output
from .logging import JsonLogger
from .sampler import RotationSampler
from .scheduler import Scheduler
from .sensor import GpioRotationSensor
from .state import WheelState


def run_doctor(args):
    """Count sensor pulses and show the RPM estimate. Never feeds."""
    print("Doctor Mode (safe):")
    print("  - The feeder is never triggered.")
    print("  - Spin the wheel to generate rotation pulses.")
    print("  Ctrl+C to exit.")
    print()

    config = game_config_from_args(args)
    logger = JsonLogger(enable_json=bool(getattr(args, "json", False)))
    scheduler = Scheduler()
    state = WheelState()
    sampler = RotationSampler(state, config, scheduler, logger)
    sensor = GpioRotationSensor(
        args.sensor_gpio,
        clock=scheduler.now,
        pull_up=args.sensor_pull_up,
        bounce_s=args.sensor_bounce,
    )
    pulses = []

    def on_pulse(ts):
        """Collect pulse timestamps; the sampler runs on this loop, not the GPIO thread."""
        pulses.append(ts)

    sensor.attach(on_pulse)

    last_print = time.monotonic()
    try:
        while True:
            while pulses:
                ts = pulses.pop(0)
                sampler.record_pulse(ts)
                sampler.compute_rpm(ts)
            scheduler.run_due()
            if time.monotonic() - last_print >= 0.5:
                print(f"  pulses={state.pulses_total} rpm={state.rpm} window={len(state.pulse_window)}/{config.wheel_segments}")
                last_print = time.monotonic()
            time.sleep(0.01)
    except KeyboardInterrupt:
        pass
    finally:
        sensor.close()


def run_feed_test(args):
    """Run a single feed cycle on the configured feeder pin and wait for it to finish."""
    config = game_config_from_args(args)
    logger = JsonLogger(enable_json=bool(getattr(args, "json", False)))
    scheduler = Scheduler()
    state = WheelState()
    output = make_output(args.feeder_gpio)
    feeder = FeederActuator(state, config, scheduler, logger, output)

    print("Feed Test")
    print(f"  GPIO={args.feeder_gpio} pulse_s={config.feed_pulse_s:.2f} duration_s={config.feed_duration_s:.1f}")
    feeder.trigger_feed()
    try:
        while state.feeder.feeding:
            scheduler.run_due()
            time.sleep(0.01)
    finally:
        output.off()
        output.close()
    print("Feed test complete.")


def load_toml_config(path: str) -> dict:
    """Load TOML configuration from path."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _get_cfg(cfg: dict, section: str, key: str, default=None):
    sec = cfg.get(section, {})
    if not isinstance(sec, dict):
        return default
    return sec.get(key, default)


def config_defaults_from(cfg: dict) -> dict:
    """Map TOML config into argparse defaults."""
    d = GameConfig()
    return {
        "sensor_gpio": _get_cfg(cfg, "gpio", "sensor_gpio", 23),
        "sensor_pull_up": _get_cfg(cfg, "gpio", "sensor_pull_up", True),
        "sensor_bounce": _get_cfg(cfg, "gpio", "sensor_bounce", 0.02),
        "feeder_gpio": _get_cfg(cfg, "gpio", "feeder_gpio", 24),
        "wheel_segments": _get_cfg(cfg, "game", "wheel_segments", d.wheel_segments),
        "target": _get_cfg(cfg, "game", "target", d.target_count),
        "base_steps": _get_cfg(cfg, "game", "base_steps", None),
        "growth": _get_cfg(cfg, "game", "growth", d.growth_rate),
        "idle_abort": _get_cfg(cfg, "game", "idle_abort", d.idle_abort_s),
        "rpm_idle": _get_cfg(cfg, "game", "rpm_idle", d.rpm_idle_s),
        "decrease_per_win": _get_cfg(cfg, "jackpot", "decrease_per_win", d.decrease_per_win),
        "history_ttl": _get_cfg(cfg, "jackpot", "history_ttl", d.history_ttl_s),
        "cooldown": _get_cfg(cfg, "jackpot", "cooldown", d.cooldown_s),
        "seed": _get_cfg(cfg, "jackpot", "seed", None),
        "feed_pulse": _get_cfg(cfg, "feeder", "feed_pulse", d.feed_pulse_s),
        "feed_duration": _get_cfg(cfg, "feeder", "feed_duration", d.feed_duration_s),
        "open_hour": _get_cfg(cfg, "hours", "open", d.open_hour),
        "close_hour": _get_cfg(cfg, "hours", "close", d.close_hour),
        "sound_dir": _get_cfg(cfg, "audio", "sound_dir", "./sounds"),
        "audio": _get_cfg(cfg, "audio", "enabled", True),
        "player": _get_cfg(cfg, "audio", "player", "aplay -q"),
        "verbose": _get_cfg(cfg, "logging", "verbose", False),
        "no_banner": _get_cfg(cfg, "logging", "no_banner", False),
        "json": _get_cfg(cfg, "logging", "json", False),
        "notify": _get_cfg(cfg, "notify", "enabled", False),
    }


def game_config_from_args(args) -> GameConfig:
    """Build the (clamped) game configuration from parsed arguments."""
    segments = args.wheel_segments
    base = args.base_steps if args.base_steps is not None else segments * 0.75
    return GameConfig.from_mapping({
        "wheel_segments": segments,
        "target_count": args.target,
        "base_steps_per_count": base,
        "growth_rate": args.growth,
        "idle_abort_s": args.idle_abort,
        "rpm_idle_s": args.rpm_idle,
        "decrease_per_win": args.decrease_per_win,
        "history_ttl_s": args.history_ttl,
        "cooldown_s": args.cooldown,
        "feed_pulse_s": args.feed_pulse,
        "feed_duration_s": args.feed_duration,
        "open_hour": args.open_hour,
        "close_hour": args.close_hour,
    })


def resolved_config_dict(args) -> dict:
    game = game_config_from_args(args)
    return {
        "gpio": {
            "sensor_gpio": args.sensor_gpio,
            "sensor_pull_up": args.sensor_pull_up,
            "sensor_bounce": args.sensor_bounce,
            "feeder_gpio": args.feeder_gpio,
        },
        "game": {
            "wheel_segments": game.wheel_segments,
            "target": game.target_count,
            "base_steps": game.base_steps_per_count,
            "growth": game.growth_rate,
            "idle_abort": game.idle_abort_s,
            "rpm_idle": game.rpm_idle_s,
        },
        "jackpot": {
            "decrease_per_win": game.decrease_per_win,
            "history_ttl": game.history_ttl_s,
            "cooldown": game.cooldown_s,
            "seed": args.seed,
        },
        "feeder": {
            "feed_pulse": game.feed_pulse_s,
            "feed_duration": game.feed_duration_s,
        },
        "hours": {"open": game.open_hour, "close": game.close_hour},
        "audio": {"enabled": args.audio, "sound_dir": args.sound_dir, "player": args.player},
        "logging": {"verbose": args.verbose, "no_banner": args.no_banner, "json": bool(args.json)},
        "notify": {"enabled": bool(args.notify)},
    }


def build_arg_parser(defaults=None):
    """Construct the CLI argument parser for the daemon."""
    ap = argparse.ArgumentParser(epilog=USAGE_EXAMPLES, formatter_class=RawDescriptionHelpFormatter)
    # Built-in defaults, optionally replaced by TOML values before parsing.
    if defaults is None:
        defaults = config_defaults_from({})
    ap.set_defaults(**defaults)
    ap.add_argument("--config", help="Path to a TOML config file. CLI args override config values.")

    ap.add_argument("--sensor-gpio", type=int, help="BCM GPIO pin of the rotation sensor.")
    ap.add_argument("--sensor-pull-up", dest="sensor_pull_up", action="store_true", help="Enable the internal pull-up on the sensor pin.")
    ap.add_argument("--sensor-pull-down", dest="sensor_pull_up", action="store_false", help="Use a pull-down on the sensor pin.")
    ap.add_argument("--sensor-bounce", type=float, help="Sensor debounce time in seconds (default: 0.02).")
    ap.add_argument("--feeder-gpio", type=int, help="BCM GPIO pin driving the feeder (active-low).")

    ap.add_argument("--wheel-segments", type=int, help="Sensor pulses per wheel revolution.")
    ap.add_argument("--target", type=int, help="Counts needed to reach the jackpot.")
    ap.add_argument("--base-steps", type=float, help="Steps needed for the first count (default: 0.75 x segments).")
    ap.add_argument("--growth", type=float, help="Per-count growth factor of the steps needed.")
    ap.add_argument("--idle-abort", type=float, help="Seconds without pulses before the game aborts.")
    ap.add_argument("--rpm-idle", type=float, help="Seconds without RPM updates before RPM drops to 0.")

    ap.add_argument("--decrease-per-win", type=float, help="Jackpot chance (percent) lost per recent win. 0 disables decay.")
    ap.add_argument("--history-ttl", type=float, help="Seconds a win counts towards chance decay.")
    ap.add_argument("--cooldown", type=float, help="Seconds after a jackpot draw before play counts again.")
    ap.add_argument("--seed", type=int, help="Seed the jackpot draw (reproducible runs).")

    ap.add_argument("--feed-pulse", type=float, help="Seconds the feeder line is held active.")
    ap.add_argument("--feed-duration", type=float, help="Seconds the feeder motor runs; pulses are ignored meanwhile.")

    ap.add_argument("--open-hour", type=int, help="First local hour the game is open.")
    ap.add_argument("--close-hour", type=int, help="Local hour the game closes (exclusive). Equal to --open-hour means always open.")

    ap.add_argument("--sound-dir", help="Directory with count-N.wav, abort.wav, win.wav and lose.wav.")
    ap.add_argument("--player", help="Audio player command (default: 'aplay -q').")
    ap.add_argument("--audio", dest="audio", action="store_true", help="Play audio cues.")
    ap.add_argument("--no-audio", dest="audio", action="store_false", help="Log audio cues instead of playing them.")

    ap.add_argument("--notify", dest="notify", action="store_true", help="Send Pushover notifications on jackpot wins.")
    ap.add_argument("--verbose", dest="verbose", action="store_true", help="Verbose logging (includes ignored pulses).")
    ap.add_argument("--no-verbose", dest="verbose", action="store_false", help="Disable verbose logging.")
    json_group = ap.add_mutually_exclusive_group()
    json_group.add_argument("--json", dest="json", action="store_true", help="Emit JSON log events.")
    json_group.add_argument("--no-json", dest="json", action="store_false", help="Disable JSON log output.")
    ap.add_argument("--no-banner", dest="no_banner", action="store_true", help="Disable the startup banner.")
    ap.add_argument("--banner", dest="no_banner", action="store_false", help="Enable the startup banner.")

    ap.add_argument("--doctor", action="store_true", help="Show sensor pulses and RPM without feeding, then exit on Ctrl+C.")
    ap.add_argument("--feed-test", action="store_true", help="Run the feeder once and exit.")
    ap.add_argument("--print-config", action="store_true", help="Print the resolved configuration and exit.")
    ap.add_argument("--version", action="store_true", help="Print version and exit.")
    return ap
