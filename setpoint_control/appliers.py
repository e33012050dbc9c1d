from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import httpx

from .config import ConcurrencyConfig, RetryConfig
from .errors import ApplyFailure, BaselineUnavailable
from .gateway import GatewayClient
from .models import ResourceKey

logger = logging.getLogger(__name__)


class SetpointApplier(ABC):
    """Collaborator that pushes a new setpoint to the controlled tier."""

    @abstractmethod
    def apply(self, resource_key: ResourceKey, value: int) -> None:
        """Push ``value`` or raise ``ApplyFailure``."""


class BaselineProvider(ABC):
    """Collaborator returning the currently effective setpoint per resource."""

    @abstractmethod
    def fetch(self) -> Dict[ResourceKey, int]:
        """Return the baseline or raise ``BaselineUnavailable``."""


def _coerce_baseline(raw: Mapping[str, Any], extract: Callable[[Any], Any]) -> Dict[ResourceKey, int]:
    baseline: Dict[ResourceKey, int] = {}
    for key, entry in raw.items():
        try:
            baseline[str(key)] = int(extract(entry))
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring unreadable baseline entry for %s: %r", key, entry)
    return baseline


class _GatewayParameter(SetpointApplier, BaselineProvider):
    def __init__(self, client: GatewayClient):
        self.client = client

    def fetch(self) -> Dict[ResourceKey, int]:
        try:
            raw = self._fetch_raw()
        except (httpx.HTTPError, ValueError) as exc:
            raise BaselineUnavailable(f"{type(self).__name__}: {exc}") from exc
        return _coerce_baseline(raw, self._extract)

    def apply(self, resource_key: ResourceKey, value: int) -> None:
        try:
            self._push(resource_key, value)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ApplyFailure(resource_key, value, str(exc)) from exc

    @abstractmethod
    def _fetch_raw(self) -> Mapping[str, Any]:
        ...

    @abstractmethod
    def _push(self, resource_key: ResourceKey, value: int) -> None:
        ...

    @staticmethod
    def _extract(entry: Any) -> Any:
        return entry


class TimeoutGateway(_GatewayParameter):
    """Route timeouts in milliseconds."""

    def _fetch_raw(self) -> Mapping[str, Any]:
        return self.client.get_timeouts()

    def _push(self, resource_key: ResourceKey, value: int) -> None:
        self.client.change_timeout(resource_key, value)


class RetryGateway(_GatewayParameter):
    """Retry attempt budgets, pushed together with the configured backoff policy."""

    def __init__(self, client: GatewayClient, config: RetryConfig):
        super().__init__(client)
        self.config = config

    def _fetch_raw(self) -> Mapping[str, Any]:
        return self.client.get_retry_policies()

    @staticmethod
    def _extract(entry: Any) -> Any:
        return entry["maxAttempts"]

    def _push(self, resource_key: ResourceKey, value: int) -> None:
        cfg = self.config
        self.client.change_retry(
            resource_key,
            value,
            first_backoff_ms=cfg.first_backoff_ms,
            max_backoff_ms=cfg.max_backoff_ms,
            factor=cfg.backoff_factor,
            statuses=cfg.retry_statuses,
            methods=cfg.retry_methods,
        )


class BulkheadGateway(_GatewayParameter):
    """Bulkhead max concurrent calls per route."""

    def __init__(self, client: GatewayClient, config: ConcurrencyConfig):
        super().__init__(client)
        self.config = config

    def _fetch_raw(self) -> Mapping[str, Any]:
        return self.client.get_bulkheads()

    @staticmethod
    def _extract(entry: Any) -> Any:
        return entry["maxConcurrentCalls"]

    def _push(self, resource_key: ResourceKey, value: int) -> None:
        self.client.change_bulkhead(resource_key, value, self.config.max_wait_ms)


class StaticBaseline(BaselineProvider):
    def __init__(self, values: Mapping[ResourceKey, int]):
        self.values = dict(values)

    def fetch(self) -> Dict[ResourceKey, int]:
        return dict(self.values)


class RecordingApplier(SetpointApplier):
    """Accepts every change and remembers it; used for offline replay."""

    def __init__(self, fail_for: Optional[set] = None):
        self.calls: List[Tuple[ResourceKey, int]] = []
        self.fail_for = set(fail_for or ())

    def apply(self, resource_key: ResourceKey, value: int) -> None:
        if resource_key in self.fail_for:
            raise ApplyFailure(resource_key, value, "rejected")
        self.calls.append((resource_key, value))
