#!/usr/bin/env python3
#
# Cat wheel reward controller
#
# Watches a rotation sensor on a cat exercise wheel, turns steady running into
# counts with audio cues, and occasionally rewards a finished game by running
# a food dispenser.
#

from __future__ import annotations

from catwheel.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
