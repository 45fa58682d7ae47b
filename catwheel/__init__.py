"""catwheel package for cat-wheel-feeder."""

from .config import GameConfig
from .controller import WheelController
from .state import WheelState

__all__ = ["GameConfig", "WheelController", "WheelState"]
