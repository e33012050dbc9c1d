from __future__ import annotations

from ..config import HysteresisConfig, RetryConfig
from ..models import BandRegion, ControlDecision, ControllerState, Direction
from .base import ControlStrategy, register_strategy


class HysteresisStrategy(ControlStrategy):
    """Deadband controller with a panic fast path and a stability streak for decreases."""

    name = "hysteresis"
    description = "Error-rate band with panic fast path and slow, streak-gated decreases"

    config: HysteresisConfig

    def classify(self, value: float) -> BandRegion:
        cfg = self.config
        if value >= cfg.panic:
            return BandRegion.PANIC
        if value > cfg.upper:
            return BandRegion.ABOVE_BAND
        if value >= cfg.lower:
            return BandRegion.IN_BAND
        return BandRegion.BELOW_BAND

    def increase_cap(self, region: BandRegion) -> int:
        return self.config.max_value

    def decide(self, state: ControllerState, value: float) -> ControlDecision:
        cfg = self.config
        region = self.classify(value)
        current = state.current_value

        if region in (BandRegion.PANIC, BandRegion.ABOVE_BAND):
            next_value = self.increase(current, self.increase_cap(region))
            threshold = cfg.panic if region is BandRegion.PANIC else cfg.upper
            reason = f"{value:.2f} {'>=' if region is BandRegion.PANIC else '>'} {threshold:.2f}"
            return self._decision(state, Direction.INCREASE, region, next_value, 0, reason)

        if region is BandRegion.IN_BAND:
            reason = f"{value:.2f} within [{cfg.lower:.2f}, {cfg.upper:.2f}]"
            return self._decision(state, Direction.NOOP, region, current, 0, reason)

        streak = state.stable_streak + 1
        if streak < cfg.decrease_stable_periods:
            reason = f"{value:.2f} < {cfg.lower:.2f}, stable {streak}/{cfg.decrease_stable_periods}"
            return self._decision(state, Direction.NOOP, region, current, streak, reason)

        # the streak restarts on every decrease proposal, applied or not
        reason = f"{value:.2f} < {cfg.lower:.2f} for {streak} periods"
        return self._decision(state, Direction.DECREASE, region, self.decrease(current), 0, reason)


class RetryHysteresisStrategy(HysteresisStrategy):
    """Hysteresis for retry budgets: only a panic may raise attempts past the partial cap."""

    name = "retry_hysteresis"
    description = "Hysteresis with a conservative partial increase unless panicking"

    config: RetryConfig

    def increase_cap(self, region: BandRegion) -> int:
        if region is BandRegion.PANIC:
            return self.config.max_value
        return min(self.config.partial_increase_cap, self.config.max_value)


register_strategy(HysteresisStrategy)
register_strategy(RetryHysteresisStrategy)
