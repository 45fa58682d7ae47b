from __future__ import annotations

import enum

from .config import GameConfig
from .constants import CUE_ABORT, count_cue
from .jackpot import JackpotEngine
from .logging import JsonLogger
from .state import WheelState


class CountPhase(enum.Enum):
    IDLE = "idle"
    COUNTING = "counting"
    EVALUATING = "evaluating"


class CountStateMachine:
    """Owns the discrete count (0 .. target-1).

    Intermediate counts play a `count-<n>` cue; reaching the target hands off
    to the jackpot engine and always returns to idle afterwards. An abort
    resets progress and only plays the abort cue if a count had been reached."""
    def __init__(self, state: WheelState, config: GameConfig, logger: JsonLogger, jackpot: JackpotEngine, cues):
        self.state = state
        self.config = config
        self.logger = logger
        self.jackpot = jackpot
        self.cues = cues
        self._evaluating = False

    @property
    def phase(self) -> CountPhase:
        if self._evaluating:
            return CountPhase.EVALUATING
        return CountPhase.COUNTING if self.state.progress.count else CountPhase.IDLE

    def advance(self):
        """Move to the next count; resolves the jackpot when the target is hit."""
        progress = self.state.progress
        next_count = progress.count + 1
        if next_count >= self.config.target_count:
            self._evaluate()
            return
        progress.count = next_count
        progress.steps = 0.0
        self.logger.emit("count", count=next_count)
        self.cues.play(count_cue(next_count))

    def _evaluate(self):
        self._evaluating = True
        try:
            self.jackpot.resolve()
        finally:
            self._evaluating = False
            self.state.progress.reset()

    def abort(self):
        """Drop progress after inactivity."""
        progress = self.state.progress
        if progress.count:
            self.cues.play(CUE_ABORT)
            self.logger.emit(
                "abort",
                count=progress.count,
                steps=progress.steps / self.config.step_scale,
            )
        progress.reset()
