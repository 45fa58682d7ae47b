from __future__ import annotations

VERSION = "1.0.0"

# Symbolic audio cue names. Count cues are "count-<n>".
CUE_ABORT = "abort"
CUE_WIN = "win"
CUE_LOSE = "lose"
CUE_COUNT_PREFIX = "count-"

# Reasons reported with `pulse_ignored` (verbose only).
GATE_FEEDING = "feeding"
GATE_COOLDOWN = "cooldown"
GATE_WIN_CAP = "win_cap"
GATE_CLOSED = "closed"

MAX_CHANCE = 100


def count_cue(n: int) -> str:
    return f"{CUE_COUNT_PREFIX}{n}"


USAGE_EXAMPLES = """\
Usage examples:
  # Run normally (sensor on GPIO 23, feeder relay on GPIO 24, BCM numbering)
  python cat-wheel.py --sensor-gpio 23 --feeder-gpio 24 --sound-dir ./sounds

  # Harder game: 7 counts, 10% growth, 20% chance loss per win in the last 5h
  python cat-wheel.py --target 7 --growth 1.1 --decrease-per-win 20 --json

  # Open all day
  python cat-wheel.py --open-hour 0 --close-hour 0

  # Count pulses / show RPM without feeding
  python cat-wheel.py --doctor

  # Run the feeder once and exit
  python cat-wheel.py --feed-test
"""
