import pandas as pd
import pytest

from setpoint_control.gate import CooldownGate
from setpoint_control.models import ControllerState, Direction
from setpoint_control.state import StateStore
from tests.fixtures import T0


class TestStateStore:
    def test_seed_clamps_and_resets(self):
        store = StateStore(700, 1500)
        store.seed({"a": 500, "b": 1000, "c": 9000}, T0)
        assert [store.get(k).current_value for k in "abc"] == [700, 1000, 1500]
        assert all(state.stable_streak == 0 for _, state in store)
        assert len(store) == 3

    def test_unknown_key(self):
        store = StateStore(1, 3)
        store.seed({"a": 1}, T0)
        assert store.get("b") is None
        assert "b" not in store

    def test_record_change_resets_streak(self):
        store = StateStore(700, 1500)
        store.seed({"a": 1000}, T0)
        store.set_streak("a", 2)
        later = T0 + pd.Timedelta(seconds=30)
        state = store.record_change("a", 1100, later)
        assert state == ControllerState(current_value=1100, last_changed_at=later, stable_streak=0)

    def test_record_change_rejects_out_of_range(self):
        store = StateStore(700, 1500)
        store.seed({"a": 1000}, T0)
        with pytest.raises(ValueError):
            store.record_change("a", 1600, T0)
        assert store.get("a").current_value == 1000

    def test_snapshot_is_a_copy(self):
        store = StateStore(1, 3)
        store.seed({"a": 1}, T0)
        snapshot = store.snapshot()
        store.set_streak("a", 4)
        assert snapshot["a"].stable_streak == 0
        assert store.get("a").stable_streak == 4


class TestCooldownGate:
    state = ControllerState(current_value=1000, last_changed_at=T0)

    @pytest.mark.parametrize(
        "direction,elapsed,allowed",
        [
            (Direction.INCREASE, 59, False),
            (Direction.INCREASE, 60, True),
            (Direction.DECREASE, 179, False),
            (Direction.DECREASE, 180, True),
            (Direction.NOOP, 1000, False),
        ],
    )
    def test_windows_by_direction(self, direction, elapsed, allowed):
        gate = CooldownGate(60, 180)
        now = T0 + pd.Timedelta(seconds=elapsed)
        assert gate.allow(self.state, direction, now) is allowed

    def test_remaining(self):
        gate = CooldownGate(60, 180)
        now = T0 + pd.Timedelta(seconds=100)
        assert gate.remaining(self.state, Direction.INCREASE, now) == 0.0
        assert gate.remaining(self.state, Direction.DECREASE, now) == 80.0
