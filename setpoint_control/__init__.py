from .appliers import (
    BaselineProvider,
    BulkheadGateway,
    RecordingApplier,
    RetryGateway,
    SetpointApplier,
    StaticBaseline,
    TimeoutGateway,
)
from .config import (
    ConcurrencyConfig,
    ControllerSettings,
    HysteresisConfig,
    RetryConfig,
    RuntimeConfig,
    load_config,
)
from .data import actions_to_frame, format_action, format_actions, load_samples
from .engine import ControlEngine
from .errors import (
    ApplyFailure,
    BaselineUnavailable,
    ConfigError,
    InitializationError,
    MetricMalformed,
    MetricUnavailable,
    SetpointControlError,
    UnknownResource,
)
from .gate import CooldownGate
from .gateway import GatewayClient
from .models import (
    BandRegion,
    ControlAction,
    ControlDecision,
    ControllerState,
    Direction,
    Lifecycle,
    MetricSample,
    TickReport,
)
from .runtime import ControlRuntime, build_engines
from .scheduling import Ticker
from .sources import MetricSource, PrometheusMetricSource, ReplayMetricSource, parse_series, parse_value
from .state import StateStore
from .strategies import (
    HysteresisStrategy,
    RejectionThresholdStrategy,
    RetryHysteresisStrategy,
    available_strategies,
    build_strategy,
    register_strategy,
)

__all__ = [
    "ApplyFailure",
    "BandRegion",
    "BaselineProvider",
    "BaselineUnavailable",
    "BulkheadGateway",
    "ConcurrencyConfig",
    "ConfigError",
    "ControlAction",
    "ControlDecision",
    "ControlEngine",
    "ControlRuntime",
    "ControllerSettings",
    "ControllerState",
    "CooldownGate",
    "Direction",
    "GatewayClient",
    "HysteresisConfig",
    "HysteresisStrategy",
    "InitializationError",
    "Lifecycle",
    "MetricMalformed",
    "MetricSample",
    "MetricSource",
    "MetricUnavailable",
    "PrometheusMetricSource",
    "RecordingApplier",
    "RejectionThresholdStrategy",
    "ReplayMetricSource",
    "RetryConfig",
    "RetryGateway",
    "RetryHysteresisStrategy",
    "RuntimeConfig",
    "SetpointApplier",
    "SetpointControlError",
    "StateStore",
    "StaticBaseline",
    "Ticker",
    "TickReport",
    "TimeoutGateway",
    "UnknownResource",
    "actions_to_frame",
    "available_strategies",
    "build_engines",
    "build_strategy",
    "format_action",
    "format_actions",
    "load_config",
    "load_samples",
    "parse_series",
    "parse_value",
    "register_strategy",
]
