from __future__ import annotations

import pandas as pd

from .models import ControllerState, Direction


class CooldownGate:
    """Blocks a change until enough time has passed since the last applied one.

    A single ``last_changed_at`` per resource is compared against a
    direction-specific window.
    """

    def __init__(self, increase_window_seconds: float, decrease_window_seconds: float):
        self.increase_window_seconds = increase_window_seconds
        self.decrease_window_seconds = decrease_window_seconds

    def window(self, direction: Direction) -> float:
        if direction is Direction.INCREASE:
            return self.increase_window_seconds
        if direction is Direction.DECREASE:
            return self.decrease_window_seconds
        return 0.0

    def remaining(self, state: ControllerState, direction: Direction, now: pd.Timestamp) -> float:
        elapsed = (now - state.last_changed_at).total_seconds()
        return max(0.0, self.window(direction) - elapsed)

    def allow(self, state: ControllerState, direction: Direction, now: pd.Timestamp) -> bool:
        if direction is Direction.NOOP:
            return False
        return (now - state.last_changed_at).total_seconds() >= self.window(direction)
