"""Shared builders for controller tests."""

from typing import Dict, List, Optional

import pandas as pd

from setpoint_control.appliers import RecordingApplier, StaticBaseline
from setpoint_control.config import HysteresisConfig
from setpoint_control.engine import ControlEngine
from setpoint_control.errors import MetricUnavailable
from setpoint_control.sources import MetricSource
from setpoint_control.strategies import build_strategy

T0 = pd.Timestamp("2024-05-01T12:00:00Z")


def series(route: Optional[str], value, ts: float = 1714564800.0) -> Dict:
    labels = {} if route is None else {"routeId": route}
    return {"metric": labels, "value": [ts, value]}


class FakeSource(MetricSource):
    """Returns queued responses in order; an exception instance is raised instead."""

    def __init__(self):
        self.responses: List = []
        self.queries: List[str] = []

    def push(self, *items) -> None:
        self.responses.append(list(items))

    def fail(self, message: str = "down") -> None:
        self.responses.append(MetricUnavailable(message))

    def query(self, descriptor: str):
        self.queries.append(descriptor)
        response = self.responses.pop(0) if self.responses else []
        if isinstance(response, Exception):
            raise response
        return response


def timeout_config(**overrides) -> HysteresisConfig:
    values = dict(
        target=4.0,
        deadband=0.75,
        panic_multiplier=2.0,
        decrease_stable_periods=3,
        increase_cooldown_seconds=60,
        decrease_cooldown_seconds=180,
        step_size=100,
        min_value=700,
        max_value=1500,
    )
    values.update(overrides)
    return HysteresisConfig(**values)


def make_engine(config, strategy: str, baseline: Dict[str, int], source=None, applier=None) -> ControlEngine:
    return ControlEngine(
        "test",
        config,
        build_strategy(strategy, config),
        source or FakeSource(),
        applier or RecordingApplier(),
        StaticBaseline(baseline),
        query="q",
    )
