from __future__ import annotations

import json
import sys
import time
from typing import Optional, TextIO


class JsonLogger:
    """Minimal structured logger.

    Emits one line per game event (rpm changes, counts, aborts, jackpot draws,
    feeder cycles) either as plain `key=value` text or as a JSON object so logs
    are easy to grep and machine-parse."""
    def __init__(self, enable_json: bool, stream: Optional[TextIO] = None):
        """Create a logger.

        Args:
            enable_json: Emit JSON objects instead of human-readable lines.
            stream: A file-like object used for output (defaults to stdout).
        """
        self.enable_json = enable_json
        self.stream = stream

    def _out(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stdout

    @staticmethod
    def _ts_iso(t: float) -> str:
        ms = int((t - int(t)) * 1000)
        return time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(t)) + f'.{ms:03d}'

    def emit(self, event: str, **fields):
        """Emit an event with a name and optional key/value fields."""
        t = time.time()
        if self.enable_json:
            payload = {"ts": t, "ts_iso": self._ts_iso(t), "event": event, **fields}
            print(json.dumps(payload, sort_keys=True), file=self._out(), flush=True)
            return
        msg = f"[{self._ts_iso(t)}] {event}"
        if fields:
            msg += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        print(msg, file=self._out(), flush=True)
