"""
Decision strategy tests

Pure classification and proposal checks, no engine or collaborators.
"""

import pytest

from setpoint_control.config import ConcurrencyConfig, RetryConfig
from setpoint_control.models import BandRegion, ControllerState, Direction
from setpoint_control.strategies import (
    HysteresisStrategy,
    RejectionThresholdStrategy,
    RetryHysteresisStrategy,
    available_strategies,
    build_strategy,
)
from tests.fixtures import T0, timeout_config


def state(value: int, streak: int = 0) -> ControllerState:
    return ControllerState(current_value=value, last_changed_at=T0, stable_streak=streak)


class TestBandArithmetic:
    def test_bounds(self):
        cfg = timeout_config()
        assert cfg.lower == pytest.approx(3.25)
        assert cfg.upper == pytest.approx(4.75)
        assert cfg.panic == pytest.approx(8.0)

    def test_lower_never_negative(self):
        cfg = timeout_config(target=0.5, deadband=0.75)
        assert cfg.lower == 0.0

    @pytest.mark.parametrize("value", [3.25, 3.5, 4.0, 4.75])
    def test_in_band_is_noop_and_resets_streak(self, value):
        strategy = HysteresisStrategy(timeout_config())
        decision = strategy.decide(state(1100, streak=2), value)
        assert decision.region is BandRegion.IN_BAND
        assert decision.direction is Direction.NOOP
        assert decision.stable_streak == 0

    @pytest.mark.parametrize(
        "value,region",
        [
            (9.0, BandRegion.PANIC),
            (8.0, BandRegion.PANIC),
            (7.99, BandRegion.ABOVE_BAND),
            (4.76, BandRegion.ABOVE_BAND),
            (3.24, BandRegion.BELOW_BAND),
            (0.0, BandRegion.BELOW_BAND),
        ],
    )
    def test_classification(self, value, region):
        assert HysteresisStrategy(timeout_config()).classify(value) is region


class TestHysteresisDecisions:
    def test_panic_proposes_increase(self):
        decision = HysteresisStrategy(timeout_config()).decide(state(1200, streak=2), 9.0)
        assert decision.direction is Direction.INCREASE
        assert decision.region is BandRegion.PANIC
        assert decision.next_value == 1300
        assert decision.magnitude == 100
        assert decision.stable_streak == 0

    def test_above_band_proposes_increase(self):
        decision = HysteresisStrategy(timeout_config()).decide(state(1100), 5.0)
        assert decision.direction is Direction.INCREASE
        assert decision.region is BandRegion.ABOVE_BAND
        assert decision.next_value == 1200

    def test_stability_gating(self):
        strategy = HysteresisStrategy(timeout_config(decrease_stable_periods=3))
        current = state(1300)

        first = strategy.decide(current, 0.5)
        assert first.direction is Direction.NOOP
        assert first.stable_streak == 1

        second = strategy.decide(state(1300, first.stable_streak), 0.5)
        assert second.direction is Direction.NOOP
        assert second.stable_streak == 2

        third = strategy.decide(state(1300, second.stable_streak), 0.5)
        assert third.direction is Direction.DECREASE
        assert third.next_value == 1200
        assert third.stable_streak == 0

    def test_increase_clamped_to_max(self):
        decision = HysteresisStrategy(timeout_config()).decide(state(1450), 9.0)
        assert decision.next_value == 1500

    def test_increase_at_max_degenerates_to_noop(self):
        decision = HysteresisStrategy(timeout_config()).decide(state(1500), 9.0)
        assert decision.direction is Direction.NOOP
        assert decision.is_noop
        assert decision.next_value == 1500

    def test_decrease_at_min_degenerates_to_noop_and_resets_streak(self):
        strategy = HysteresisStrategy(timeout_config(decrease_stable_periods=1))
        decision = strategy.decide(state(700), 0.1)
        assert decision.direction is Direction.NOOP
        assert decision.stable_streak == 0


class TestRetryHysteresis:
    def test_non_panic_increase_capped_at_partial(self):
        strategy = RetryHysteresisStrategy(RetryConfig(max_value=5))
        assert strategy.decide(state(1), 2.0).next_value == 2
        assert strategy.decide(state(2), 2.0).is_noop

    def test_panic_increase_uses_max(self):
        strategy = RetryHysteresisStrategy(RetryConfig(max_value=5))
        decision = strategy.decide(state(2), 3.5)
        assert decision.region is BandRegion.PANIC
        assert decision.next_value == 3

    def test_partial_cap_respects_max(self):
        strategy = RetryHysteresisStrategy(RetryConfig(min_value=1, max_value=1))
        assert strategy.decide(state(1), 2.0).is_noop

    def test_value_above_partial_cap_is_pulled_to_cap(self):
        strategy = RetryHysteresisStrategy(RetryConfig(max_value=3))
        decision = strategy.decide(state(3), 2.0)
        assert decision.direction is Direction.INCREASE
        assert decision.region is BandRegion.ABOVE_BAND
        assert decision.next_value == 2
        assert decision.magnitude == -1

    def test_panic_above_partial_cap_holds_at_max(self):
        strategy = RetryHysteresisStrategy(RetryConfig(max_value=3))
        assert strategy.decide(state(3), 3.5).is_noop


class TestRejectionThreshold:
    def test_escape_valve_overrides_thresholds(self):
        cfg = ConcurrencyConfig(target_low=1.0, target_high=50.0, hard_max=8.0)
        decision = RejectionThresholdStrategy(cfg).decide(state(25), 9.0)
        assert decision.direction is Direction.INCREASE
        assert decision.region is BandRegion.PANIC
        assert decision.next_value == 26

    @pytest.mark.parametrize(
        "value,direction",
        [(4.5, Direction.INCREASE), (0.5, Direction.DECREASE), (2.0, Direction.NOOP), (4.0, Direction.NOOP)],
    )
    def test_thresholds(self, value, direction):
        decision = RejectionThresholdStrategy(ConcurrencyConfig()).decide(state(25), value)
        assert decision.direction is direction
        assert decision.stable_streak == 0

    def test_every_low_sample_proposes_decrease(self):
        strategy = RejectionThresholdStrategy(ConcurrencyConfig())
        assert strategy.decide(state(25), 0.0).next_value == 24


def test_registry_lists_builtin_strategies():
    assert available_strategies() == ["hysteresis", "rejection_threshold", "retry_hysteresis"]


def test_build_unknown_strategy():
    with pytest.raises(ValueError, match="Unknown strategy"):
        build_strategy("pid", timeout_config())
