from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError


TIMEOUT_RATE_QUERY = (
    "100 * (sum by (routeId) (increase(spring_cloud_gateway_requests_seconds_count"
    '{httpStatusCode="504"}[1m])) / sum by (routeId) '
    "(increase(spring_cloud_gateway_requests_seconds_count[1m])))"
)
RETRY_RATE_QUERY = (
    "100 * (sum by (routeId) (increase(spring_cloud_gateway_requests_seconds_count"
    '{httpStatusCode=~"502|503"}[1m])) / sum by (routeId) '
    "(increase(spring_cloud_gateway_requests_seconds_count[1m])))"
)
REJECTION_RATE_QUERY = (
    "100 * (sum by (routeId) (increase(spring_cloud_gateway_requests_seconds_count"
    '{httpStatusCode="429"}[1m])) / sum by (routeId) '
    "(increase(spring_cloud_gateway_requests_seconds_count[1m])))"
)


@dataclass
class HysteresisConfig:
    """Band, panic and cooldown parameters for the error-rate controllers."""

    target: float = 4.0
    deadband: float = 0.75
    panic_multiplier: float = 2.0
    decrease_stable_periods: int = 3
    increase_cooldown_seconds: float = 60.0
    decrease_cooldown_seconds: float = 180.0
    step_size: int = 50
    min_value: int = 700
    max_value: int = 1500

    @property
    def lower(self) -> float:
        return max(0.0, self.target - self.deadband)

    @property
    def upper(self) -> float:
        return self.target + self.deadband

    @property
    def panic(self) -> float:
        return self.target * self.panic_multiplier

    @property
    def seed_window_seconds(self) -> float:
        return max(self.increase_cooldown_seconds, self.decrease_cooldown_seconds)

    def cooldown_windows(self) -> Tuple[float, float]:
        return self.increase_cooldown_seconds, self.decrease_cooldown_seconds

    def validate(self) -> None:
        _check_bounds(self.min_value, self.max_value, self.step_size)
        if self.target < 0 or self.deadband < 0:
            raise ConfigError("target and deadband must be non-negative")
        if self.panic_multiplier < 1:
            raise ConfigError("panic_multiplier must be >= 1")
        if self.decrease_stable_periods < 1:
            raise ConfigError("decrease_stable_periods must be >= 1")
        _check_windows(self.increase_cooldown_seconds, self.decrease_cooldown_seconds)


@dataclass
class RetryConfig(HysteresisConfig):
    """Hysteresis parameters for the retry budget plus the pushed backoff policy."""

    target: float = 1.0
    deadband: float = 0.3
    panic_multiplier: float = 3.0
    decrease_stable_periods: int = 10
    increase_cooldown_seconds: float = 60.0
    decrease_cooldown_seconds: float = 600.0
    step_size: int = 1
    min_value: int = 1
    max_value: int = 3
    partial_increase_cap: int = 2  # ceiling for non-panic increases
    first_backoff_ms: int = 50
    max_backoff_ms: int = 250
    backoff_factor: int = 2
    retry_statuses: Tuple[int, ...] = (502, 503)
    retry_methods: Tuple[str, ...] = ("GET",)

    def validate(self) -> None:
        super().validate()
        if self.min_value < 1:
            raise ConfigError("retry min_value must be >= 1")
        if self.partial_increase_cap < 1:
            raise ConfigError("partial_increase_cap must be >= 1")
        if self.first_backoff_ms < 0 or self.max_backoff_ms < 0:
            raise ConfigError("backoff durations must be non-negative")
        if self.backoff_factor < 1:
            raise ConfigError("backoff_factor must be >= 1")
        if not self.retry_statuses or not self.retry_methods:
            raise ConfigError("retry_statuses and retry_methods must not be empty")


@dataclass
class ConcurrencyConfig:
    """Rejection-rate thresholds for the bulkhead concurrency limit."""

    target_low: float = 1.0
    target_high: float = 4.0
    hard_max: float = 8.0
    min_change_window_seconds: float = 60.0
    step_size: int = 1
    min_value: int = 20
    max_value: int = 30
    max_wait_ms: int = 0  # fail fast

    @property
    def seed_window_seconds(self) -> float:
        return self.min_change_window_seconds

    def cooldown_windows(self) -> Tuple[float, float]:
        return self.min_change_window_seconds, self.min_change_window_seconds

    def validate(self) -> None:
        _check_bounds(self.min_value, self.max_value, self.step_size)
        if self.target_low > self.target_high:
            raise ConfigError("target_low must not exceed target_high")
        if self.max_wait_ms < 0:
            raise ConfigError("max_wait_ms must be non-negative")
        _check_windows(self.min_change_window_seconds)


@dataclass
class RuntimeConfig:
    """Transport endpoints, scheduling and metric queries for the running service."""

    prometheus_url: str = "http://127.0.0.1:9091"
    gateway_url: str = "http://127.0.0.1:8080"
    tick_seconds: float = 30.0
    startup_grace_seconds: float = 5.0
    request_timeout_seconds: float = 5.0
    timeout_query: str = TIMEOUT_RATE_QUERY
    retry_query: str = RETRY_RATE_QUERY
    concurrency_query: str = REJECTION_RATE_QUERY
    resource_label: str = "routeId"
    enable_timeout: bool = True
    enable_retry: bool = True
    enable_concurrency: bool = False

    def validate(self) -> None:
        if self.tick_seconds <= 0:
            raise ConfigError("tick_seconds must be positive")
        if self.request_timeout_seconds <= 0:
            raise ConfigError("request_timeout_seconds must be positive")
        if self.request_timeout_seconds >= self.tick_seconds:
            raise ConfigError("request_timeout_seconds must be shorter than tick_seconds")
        if self.startup_grace_seconds < 0:
            raise ConfigError("startup_grace_seconds must be non-negative")


@dataclass
class ControllerSettings:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    timeout: HysteresisConfig = field(default_factory=HysteresisConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    concurrency: ConcurrencyConfig = field(default_factory=ConcurrencyConfig)

    def validate(self) -> "ControllerSettings":
        self.runtime.validate()
        self.timeout.validate()
        self.retry.validate()
        self.concurrency.validate()
        return self

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ControllerSettings":
        data = dict(data or {})
        unknown = set(data) - {"runtime", "timeout", "retry", "concurrency"}
        if unknown:
            raise ConfigError(f"Unknown config sections: {sorted(unknown)}")
        settings = cls(
            runtime=_build(RuntimeConfig, data.get("runtime")),
            timeout=_build(HysteresisConfig, data.get("timeout")),
            retry=_build(RetryConfig, data.get("retry")),
            concurrency=_build(ConcurrencyConfig, data.get("concurrency")),
        )
        return settings.validate()


def load_config(path: str) -> ControllerSettings:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return ControllerSettings.from_dict(data)


def _build(cls, section: Optional[Mapping[str, Any]]):
    section = dict(section or {})
    names = {f.name for f in fields(cls)}
    unknown = set(section) - names
    if unknown:
        raise ConfigError(f"Unknown {cls.__name__} keys: {sorted(unknown)}")
    for key in ("retry_statuses", "retry_methods"):
        if key in section:
            section[key] = tuple(section[key])
    return cls(**section)


def _check_bounds(min_value: int, max_value: int, step_size: int) -> None:
    if min_value > max_value:
        raise ConfigError(f"min_value {min_value} exceeds max_value {max_value}")
    if step_size <= 0:
        raise ConfigError("step_size must be positive")


def _check_windows(*windows: float) -> None:
    if any(w < 0 for w in windows):
        raise ConfigError("cooldown windows must be non-negative")
