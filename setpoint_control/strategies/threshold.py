from __future__ import annotations

from ..config import ConcurrencyConfig
from ..models import BandRegion, ControlDecision, ControllerState, Direction
from .base import ControlStrategy, register_strategy


class RejectionThresholdStrategy(ControlStrategy):
    """Knee-seeking concurrency policy driven by the rejection (429) rate.

    Rejections above ``target_high`` mean the bulkhead is too tight, so the
    limit grows; rejections below ``target_low`` mean there is headroom to
    trim, so it shrinks. ``hard_max`` forces an increase before anything
    else is considered. No deadband or streak is kept.
    """

    name = "rejection_threshold"
    description = "Two-threshold rejection-rate control with a hard escape valve"

    config: ConcurrencyConfig

    def decide(self, state: ControllerState, value: float) -> ControlDecision:
        cfg = self.config
        current = state.current_value

        if value >= cfg.hard_max:
            reason = f"rejection {value:.2f}% >= hard max {cfg.hard_max:.2f}%"
            return self._decision(state, Direction.INCREASE, BandRegion.PANIC, self.increase(current), 0, reason)
        if value > cfg.target_high:
            reason = f"rejection {value:.2f}% > {cfg.target_high:.2f}%"
            return self._decision(
                state, Direction.INCREASE, BandRegion.ABOVE_BAND, self.increase(current), 0, reason
            )
        if value < cfg.target_low:
            reason = f"rejection {value:.2f}% < {cfg.target_low:.2f}%"
            return self._decision(
                state, Direction.DECREASE, BandRegion.BELOW_BAND, self.decrease(current), 0, reason
            )
        reason = f"rejection {value:.2f}% within [{cfg.target_low:.2f}, {cfg.target_high:.2f}]"
        return self._decision(state, Direction.NOOP, BandRegion.IN_BAND, current, 0, reason)


register_strategy(RejectionThresholdStrategy)
