from __future__ import annotations

import os
import subprocess
from typing import List, Optional, Sequence

from .logging import JsonLogger


class CuePlayer:
    """Plays audio cues by symbolic name.

    Each cue maps to `<sound_dir>/<name>.wav` and is handed to an external
    player (`aplay` by default). Playback is fire-and-forget: the process is
    not waited on and failures are only logged."""
    def __init__(self, sound_dir: str, logger: JsonLogger, command: Sequence[str] = ("aplay", "-q")):
        self.sound_dir = sound_dir
        self.logger = logger
        self.command = list(command)

    def path_for(self, name: str) -> str:
        return os.path.join(self.sound_dir, f"{name}.wav")

    def play(self, name: str):
        path = self.path_for(name)
        if not os.path.exists(path):
            self.logger.emit("cue_failed", cue=name, error="missing file", path=path)
            return
        try:
            subprocess.Popen(
                self.command + [path],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            self.logger.emit("cue_failed", cue=name, error=str(e))


class NullCuePlayer:
    """Cue player that only records requests (``--no-audio`` and tests)."""
    def __init__(self, logger: Optional[JsonLogger] = None):
        self.logger = logger
        self.played: List[str] = []

    def play(self, name: str):
        self.played.append(name)
        if self.logger is not None:
            self.logger.emit("cue", cue=name)
