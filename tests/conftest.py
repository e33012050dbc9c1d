import pytest

from setpoint_control.appliers import RecordingApplier
from setpoint_control.config import ConcurrencyConfig, RetryConfig
from setpoint_control.engine import ControlEngine
from tests.fixtures import T0, FakeSource, make_engine, timeout_config


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def applier() -> RecordingApplier:
    return RecordingApplier()


@pytest.fixture
def timeout_engine(source, applier) -> ControlEngine:
    engine = make_engine(timeout_config(), "hysteresis", {"customers_route": 1200}, source, applier)
    engine.initialize(now=T0)
    return engine


@pytest.fixture
def retry_engine(source, applier) -> ControlEngine:
    engine = make_engine(RetryConfig(), "retry_hysteresis", {"customers_route": 1}, source, applier)
    engine.initialize(now=T0)
    return engine


@pytest.fixture
def concurrency_engine(source, applier) -> ControlEngine:
    engine = make_engine(ConcurrencyConfig(), "rejection_threshold", {"customers_route": 25}, source, applier)
    engine.initialize(now=T0)
    return engine
