from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional

from .appliers import BulkheadGateway, RetryGateway, TimeoutGateway
from .config import ControllerSettings
from .engine import ControlEngine
from .errors import InitializationError
from .gateway import GatewayClient
from .scheduling import Ticker
from .sources import MetricSource, PrometheusMetricSource
from .strategies import build_strategy

logger = logging.getLogger(__name__)


def build_engines(
    settings: ControllerSettings,
    source: MetricSource,
    gateway: GatewayClient,
) -> Dict[str, ControlEngine]:
    """Wire one engine per enabled parameter type."""
    rt = settings.runtime
    engines: Dict[str, ControlEngine] = {}
    if rt.enable_timeout:
        applier = TimeoutGateway(gateway)
        engines["timeout"] = ControlEngine(
            "timeout",
            settings.timeout,
            build_strategy("hysteresis", settings.timeout),
            source,
            applier,
            applier,
            rt.timeout_query,
            rt.resource_label,
        )
    if rt.enable_retry:
        applier = RetryGateway(gateway, settings.retry)
        engines["retry"] = ControlEngine(
            "retry",
            settings.retry,
            build_strategy("retry_hysteresis", settings.retry),
            source,
            applier,
            applier,
            rt.retry_query,
            rt.resource_label,
        )
    if rt.enable_concurrency:
        applier = BulkheadGateway(gateway, settings.concurrency)
        engines["concurrency"] = ControlEngine(
            "concurrency",
            settings.concurrency,
            build_strategy("rejection_threshold", settings.concurrency),
            source,
            applier,
            applier,
            rt.concurrency_query,
            rt.resource_label,
        )
    return engines


class ControlRuntime:
    """Owns the engines, their tickers and the HTTP clients for one process."""

    def __init__(
        self,
        settings: ControllerSettings,
        source: Optional[MetricSource] = None,
        gateway: Optional[GatewayClient] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        rt = settings.runtime
        self.settings = settings
        self.source = source or PrometheusMetricSource(rt.prometheus_url, rt.request_timeout_seconds)
        self.gateway = gateway or GatewayClient(rt.gateway_url, rt.request_timeout_seconds)
        self.engines = build_engines(settings, self.source, self.gateway)
        self.tickers: List[Ticker] = []
        self._sleep = sleep

    def initialize(self) -> List[str]:
        """Initialize every engine after the grace delay; return the names that failed."""
        self._sleep(self.settings.runtime.startup_grace_seconds)
        failed = []
        for name, engine in self.engines.items():
            try:
                engine.initialize()
            except InitializationError:
                failed.append(name)
        return failed

    def start(self) -> None:
        for name, engine in self.engines.items():
            if not engine.ready:
                continue
            ticker = Ticker(name, engine.evaluate, self.settings.runtime.tick_seconds)
            ticker.start()
            self.tickers.append(ticker)
        logger.info("Started controllers: %s", [t.name for t in self.tickers])

    def stop(self) -> None:
        for ticker in self.tickers:
            ticker.stop()
        self.tickers = []
        for client in (self.source, self.gateway):
            close = getattr(client, "close", None)
            if close is not None:
                close()
        logger.info("Controllers stopped")

