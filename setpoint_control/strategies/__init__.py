from .base import ControlStrategy, available_strategies, build_strategy, register_strategy
from .hysteresis import HysteresisStrategy, RetryHysteresisStrategy
from .threshold import RejectionThresholdStrategy

__all__ = [
    "ControlStrategy",
    "available_strategies",
    "build_strategy",
    "register_strategy",
    "HysteresisStrategy",
    "RetryHysteresisStrategy",
    "RejectionThresholdStrategy",
]
