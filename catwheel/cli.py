from __future__ import annotations

import argparse
import json
import random
import shlex
import signal
import sys
import threading

from . import gpio
from .audio import CuePlayer, NullCuePlayer
from .config import get_notifier_config
from .constants import VERSION
from .controller import WheelController
from .doctor import (
    build_arg_parser,
    config_defaults_from,
    game_config_from_args,
    load_toml_config,
    resolved_config_dict,
    run_doctor,
    run_feed_test,
)
from .logging import JsonLogger
from .notify import Notifier
from .sensor import GpioRotationSensor


def parse_args(argv=None):
    """Parse CLI args on top of built-in defaults and an optional TOML file.

    The TOML file only replaces defaults, so explicit CLI flags always win."""
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config")
    known, _ = pre.parse_known_args(argv)
    cfg = load_toml_config(known.config) if known.config else {}
    ap = build_arg_parser(config_defaults_from(cfg))
    return ap.parse_args(argv)


def build_notifier(args):
    """Pushover notifier if `--notify` or CATWHEEL_NOTIFY asks for one, else None."""
    ncfg = get_notifier_config()
    if not (args.notify or ncfg["enabled"]):
        return None
    return Notifier(True, ncfg["pushover_token"], ncfg["pushover_user"])


def main(argv=None):
    """CLI entry point. Parses args, wires the hardware and runs the game loop."""
    args = parse_args(argv)

    if args.version:
        print(VERSION)
        return 0

    # Print resolved configuration and exit (does not require GPIO).
    if args.print_config:
        print(json.dumps(resolved_config_dict(args), indent=2, sort_keys=True))
        return 0

    gpio.use_lgpio_backend()

    if args.doctor:
        run_doctor(args)
        return 0

    if args.feed_test:
        run_feed_test(args)
        return 0

    config = game_config_from_args(args)
    logger = JsonLogger(enable_json=bool(args.json))
    if args.audio:
        cues = CuePlayer(args.sound_dir, logger, command=shlex.split(args.player))
    else:
        cues = NullCuePlayer(logger)

    notifier = build_notifier(args)

    feeder_output = None
    try:
        feeder_output = gpio.make_output(args.feeder_gpio)
        controller = WheelController(
            config=config,
            logger=logger,
            sensor=None,
            feeder_output=feeder_output,
            cues=cues,
            rng=random.Random(args.seed) if args.seed is not None else None,
            notifier=notifier,
            verbose=args.verbose,
        )
        sensor = GpioRotationSensor(
            args.sensor_gpio,
            clock=controller.scheduler.now,
            pull_up=args.sensor_pull_up,
            bounce_s=args.sensor_bounce,
        )
    except gpio.GPIOZeroError as e:
        print(f"ERROR: GPIO setup failed: {e}", file=sys.stderr)
        if feeder_output is not None:
            feeder_output.close()
        return 2
    controller.attach_sensor(sensor)

    if not args.no_banner:
        print(f"cat-wheel-feeder {VERSION}")
        logger.emit(
            "startup",
            version=VERSION,
            sensor_gpio=args.sensor_gpio,
            feeder_gpio=args.feeder_gpio,
            target=config.target_count,
            growth=config.growth_rate,
            decrease_per_win=config.decrease_per_win,
            open_hour=config.open_hour,
            close_hour=config.close_hour,
            audio=bool(args.audio),
        )

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    try:
        exit_code = controller.run_forever(stop)
    finally:
        controller.stop()
        feeder_output.off()
        feeder_output.close()
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
