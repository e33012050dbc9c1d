from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import pandas as pd


ResourceKey = str


class Direction(str, Enum):
    NOOP = "noop"
    INCREASE = "increase"
    DECREASE = "decrease"


class BandRegion(str, Enum):
    """Where a metric value falls relative to the configured thresholds."""

    PANIC = "panic"
    ABOVE_BAND = "above_band"
    IN_BAND = "in_band"
    BELOW_BAND = "below_band"


class Lifecycle(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


@dataclass(frozen=True)
class ControllerState:
    """Per-resource record; replaced as a whole, never mutated in place."""

    current_value: int
    last_changed_at: pd.Timestamp
    stable_streak: int = 0


@dataclass(frozen=True)
class MetricSample:
    resource_key: ResourceKey
    value: float
    timestamp: Optional[pd.Timestamp] = None


@dataclass(frozen=True)
class ControlDecision:
    """Strategy output for a single sample.

    ``stable_streak`` is the streak the resource must carry after this
    sample, whether or not the proposed change is eventually applied.
    """

    direction: Direction
    region: BandRegion
    current_value: int
    next_value: int
    stable_streak: int
    reason: str

    @property
    def magnitude(self) -> int:
        return self.next_value - self.current_value

    @property
    def is_noop(self) -> bool:
        return self.direction is Direction.NOOP or self.next_value == self.current_value


@dataclass
class ControlAction:
    """Represents a single applied setpoint change."""

    time: pd.Timestamp
    resource_key: ResourceKey
    previous_value: int
    new_value: int
    delta: int
    region: BandRegion
    metric_value: float
    reason: str


@dataclass
class TickReport:
    """Outcome of one evaluation tick."""

    time: pd.Timestamp
    actions: List[ControlAction] = field(default_factory=list)
    suppressed: List[ResourceKey] = field(default_factory=list)
    failed: List[ResourceKey] = field(default_factory=list)
    unknown: List[ResourceKey] = field(default_factory=list)
    malformed: int = 0
    samples: int = 0
    skipped_reason: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None
