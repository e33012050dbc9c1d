from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Type

from ..models import BandRegion, ControlDecision, ControllerState, Direction


class ControlStrategy(ABC):
    """Interface for pluggable decision strategies.

    A strategy is a pure function of the resource state and one metric
    value; it never talks to collaborators and never touches the clock.
    """

    name: str = "base"
    description: str = ""

    def __init__(self, config: Any):
        self.config = config

    @abstractmethod
    def decide(self, state: ControllerState, value: float) -> ControlDecision:
        """Classify ``value`` and propose the next setpoint for ``state``."""

    def increase(self, current: int, cap: int | None = None) -> int:
        ceiling = self.config.max_value if cap is None else min(cap, self.config.max_value)
        # a value above a partial cap is pulled down to it
        return max(min(current + self.config.step_size, ceiling), self.config.min_value)

    def decrease(self, current: int) -> int:
        return max(current - self.config.step_size, self.config.min_value)

    def _decision(
        self,
        state: ControllerState,
        direction: Direction,
        region: BandRegion,
        next_value: int,
        streak: int,
        reason: str,
    ) -> ControlDecision:
        if direction is not Direction.NOOP and next_value == state.current_value:
            direction = Direction.NOOP
            reason = f"{reason}; clamped at {next_value}"
        return ControlDecision(
            direction=direction,
            region=region,
            current_value=state.current_value,
            next_value=next_value,
            stable_streak=streak,
            reason=reason,
        )


STRATEGY_REGISTRY: Dict[str, Type[ControlStrategy]] = {}


def register_strategy(strategy_cls: Type[ControlStrategy]) -> None:
    STRATEGY_REGISTRY[strategy_cls.name] = strategy_cls


def available_strategies() -> List[str]:
    return sorted(STRATEGY_REGISTRY)


def build_strategy(name: str, config: Any) -> ControlStrategy:
    try:
        strategy_cls = STRATEGY_REGISTRY[name]
    except KeyError as exc:
        raise ValueError(
            f"Unknown strategy '{name}'. Available: {available_strategies()}"
        ) from exc
    return strategy_cls(config)
