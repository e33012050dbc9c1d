from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Dict, Iterator, Mapping, Optional, Tuple

import pandas as pd

from .models import ControllerState, ResourceKey

logger = logging.getLogger(__name__)


class StateStore:
    """Holds one ``ControllerState`` per known resource.

    Keys are fixed by ``seed``; later writes only replace existing records.
    Each write swaps in a new frozen record under a lock so a concurrent
    reader sees either the old or the new triple, never a mix.
    """

    def __init__(self, min_value: int, max_value: int):
        self.min_value = min_value
        self.max_value = max_value
        self._states: Dict[ResourceKey, ControllerState] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, key: object) -> bool:
        return key in self._states

    def __iter__(self) -> Iterator[Tuple[ResourceKey, ControllerState]]:
        return iter(self.snapshot().items())

    def snapshot(self) -> Dict[ResourceKey, ControllerState]:
        with self._lock:
            return dict(self._states)

    def get(self, key: ResourceKey) -> Optional[ControllerState]:
        return self._states.get(key)

    def seed(self, baseline: Mapping[ResourceKey, int], last_changed_at: pd.Timestamp) -> None:
        states: Dict[ResourceKey, ControllerState] = {}
        for key, value in baseline.items():
            clamped = self.clamp(int(value))
            if clamped != value:
                logger.warning(
                    "Baseline for %s (%s) outside [%s, %s], clamped to %s",
                    key,
                    value,
                    self.min_value,
                    self.max_value,
                    clamped,
                )
            states[key] = ControllerState(current_value=clamped, last_changed_at=last_changed_at)
        with self._lock:
            self._states = states

    def set_streak(self, key: ResourceKey, streak: int) -> ControllerState:
        with self._lock:
            state = replace(self._states[key], stable_streak=max(0, streak))
            self._states[key] = state
            return state

    def record_change(self, key: ResourceKey, value: int, now: pd.Timestamp) -> ControllerState:
        if not self.min_value <= value <= self.max_value:
            raise ValueError(f"{value} outside [{self.min_value}, {self.max_value}] for {key}")
        with self._lock:
            state = ControllerState(current_value=value, last_changed_at=now, stable_streak=0)
            self._states[key] = state
            return state

    def clamp(self, value: int) -> int:
        return max(self.min_value, min(self.max_value, value))
