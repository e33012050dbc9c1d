from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

import pandas as pd

from .appliers import BaselineProvider, SetpointApplier
from .errors import (
    ApplyFailure,
    BaselineUnavailable,
    InitializationError,
    MetricMalformed,
    MetricUnavailable,
    UnknownResource,
)
from .gate import CooldownGate
from .models import ControlAction, ControlDecision, Lifecycle, MetricSample, TickReport
from .sources import MetricSource, parse_series
from .state import StateStore
from .strategies import ControlStrategy

logger = logging.getLogger(__name__)

# extra margin so the first tick after seeding is clear of both windows
SEED_MARGIN = pd.Timedelta(seconds=1)


def utc_now() -> pd.Timestamp:
    return pd.Timestamp.now(tz="UTC")


class ControlEngine:
    """Runs evaluation ticks for one controlled parameter.

    Each tick pulls one metric query, routes every sample to its resource
    state, asks the strategy for a decision, gates it on cooldown, pushes
    the change and records it. Bad samples and failed pushes are isolated
    to their resource; the tick always runs to completion.
    """

    def __init__(
        self,
        name: str,
        config: Any,
        strategy: ControlStrategy,
        source: MetricSource,
        applier: SetpointApplier,
        baseline: BaselineProvider,
        query: str,
        resource_label: str = "routeId",
        clock: Callable[[], pd.Timestamp] = utc_now,
    ):
        self.name = name
        self.config = config
        self.strategy = strategy
        self.source = source
        self.applier = applier
        self.baseline = baseline
        self.query = query
        self.resource_label = resource_label
        self.clock = clock
        self.store = StateStore(config.min_value, config.max_value)
        self.gate = CooldownGate(*config.cooldown_windows())
        self.lifecycle = Lifecycle.UNINITIALIZED
        self._tick_lock = threading.Lock()

    @property
    def ready(self) -> bool:
        return self.lifecycle is Lifecycle.READY

    def initialize(self, now: Optional[pd.Timestamp] = None) -> None:
        now = now if now is not None else self.clock()
        try:
            baseline = self.baseline.fetch()
        except BaselineUnavailable as exc:
            logger.error("[%s] baseline fetch failed: %s", self.name, exc)
            raise InitializationError(f"{self.name}: {exc}") from exc

        seeded_at = now - pd.Timedelta(seconds=self.config.seed_window_seconds) - SEED_MARGIN
        self.store.seed(baseline, seeded_at)
        self.lifecycle = Lifecycle.READY
        logger.info("[%s] initialized %d resources: %s", self.name, len(self.store), baseline)

    def evaluate(self, now: Optional[pd.Timestamp] = None) -> TickReport:
        now = now if now is not None else self.clock()
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("[%s] previous tick still running, skipping", self.name)
            return TickReport(time=now, skipped_reason="tick_in_progress")
        try:
            return self._evaluate(now)
        finally:
            self._tick_lock.release()

    def _evaluate(self, now: pd.Timestamp) -> TickReport:
        report = TickReport(time=now)
        if not self.ready or len(self.store) == 0:
            logger.info("[%s] no resources tracked, skipping tick", self.name)
            report.skipped_reason = "uninitialized"
            return report

        try:
            series = self.source.query(self.query)
        except MetricUnavailable as exc:
            logger.warning("[%s] metrics unavailable, skipping tick: %s", self.name, exc)
            report.skipped_reason = "metrics_unavailable"
            return report

        for item in series:
            report.samples += 1
            try:
                sample = parse_series(item, self.resource_label)
                self._process(sample, now, report)
            except MetricMalformed as exc:
                logger.debug("[%s] dropping malformed sample: %s", self.name, exc)
                report.malformed += 1
            except UnknownResource as exc:
                logger.debug("[%s] %s", self.name, exc)
                report.unknown.append(exc.resource_key)

        return report

    def _process(self, sample: MetricSample, now: pd.Timestamp, report: TickReport) -> None:
        key = sample.resource_key
        state = self.store.get(key)
        if state is None:
            raise UnknownResource(key)

        decision = self.strategy.decide(state, sample.value)
        logger.debug(
            "[%s] route=%s value=%s current=%s region=%s -> %s",
            self.name,
            key,
            round(sample.value, 2),
            state.current_value,
            decision.region.value,
            decision.direction.value,
        )
        if decision.stable_streak != state.stable_streak:
            state = self.store.set_streak(key, decision.stable_streak)

        if decision.is_noop:
            return

        if not self.gate.allow(state, decision.direction, now):
            logger.info(
                "[%s] %s for %s suppressed by cooldown (%.0fs left)",
                self.name,
                decision.direction.value.upper(),
                key,
                self.gate.remaining(state, decision.direction, now),
            )
            report.suppressed.append(key)
            return

        try:
            self.applier.apply(key, decision.next_value)
        except ApplyFailure as exc:
            logger.warning("[%s] %s", self.name, exc)
            report.failed.append(key)
            return

        self.store.record_change(key, decision.next_value, now)
        report.actions.append(self._action(now, key, decision, sample.value))
        logger.info(
            "[%s] %s route=%s %s -> %s (value=%s)",
            self.name,
            decision.direction.value.upper(),
            key,
            decision.current_value,
            decision.next_value,
            round(sample.value, 2),
        )

    @staticmethod
    def _action(now: pd.Timestamp, key: str, decision: ControlDecision, value: float) -> ControlAction:
        return ControlAction(
            time=now,
            resource_key=key,
            previous_value=decision.current_value,
            new_value=decision.next_value,
            delta=decision.magnitude,
            region=decision.region,
            metric_value=value,
            reason=decision.reason,
        )
