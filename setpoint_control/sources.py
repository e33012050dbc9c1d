from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

import httpx
import pandas as pd

from .errors import MetricMalformed, MetricUnavailable
from .models import MetricSample

logger = logging.getLogger(__name__)

Series = Mapping[str, Any]

QUERY_PATH = "/api/v1/query"


def parse_value(raw: Any) -> float:
    """Strict finite-float parse; ``NaN``, ``Inf`` and overflow are rejected."""
    if isinstance(raw, bool) or raw is None:
        raise MetricMalformed(f"not a number: {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise MetricMalformed(f"not a number: {raw!r}") from exc
    if not math.isfinite(value):
        raise MetricMalformed(f"non-finite value: {raw!r}")
    return value


def _parse_timestamp(raw: Any) -> Optional[pd.Timestamp]:
    try:
        return pd.Timestamp(float(raw), unit="s", tz="UTC")
    except (TypeError, ValueError, OverflowError):
        return None


def parse_series(series: Series, label: str) -> MetricSample:
    """Turn one instant-vector series into a ``MetricSample``."""
    labels = series.get("metric") if isinstance(series, Mapping) else None
    if not isinstance(labels, Mapping) or not labels.get(label):
        raise MetricMalformed(f"missing '{label}' label")
    point = series.get("value")
    if not isinstance(point, (list, tuple)) or len(point) < 2:
        raise MetricMalformed(f"missing or short value tuple for {labels[label]}")
    return MetricSample(
        resource_key=str(labels[label]),
        value=parse_value(point[1]),
        timestamp=_parse_timestamp(point[0]),
    )


def extract_series(payload: Any) -> List[Series]:
    """Unwrap a Prometheus instant-query response body into its result list."""
    if not isinstance(payload, Mapping):
        raise MetricUnavailable("response body is not an object")
    status = payload.get("status")
    if status != "success":
        raise MetricUnavailable(f"query status {status!r}: {payload.get('error', '')}")
    data = payload.get("data") or {}
    result = data.get("result") if isinstance(data, Mapping) else None
    if not isinstance(result, list):
        return []
    return result


class MetricSource(ABC):
    """Collaborator returning the raw series for one metric query."""

    @abstractmethod
    def query(self, descriptor: str) -> List[Series]:
        """Return series for ``descriptor`` or raise ``MetricUnavailable``."""


class PrometheusMetricSource(MetricSource):
    """Instant queries against a Prometheus-compatible HTTP API."""

    def __init__(self, base_url: str, timeout: float = 5.0, client: Optional[httpx.Client] = None):
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def query(self, descriptor: str) -> List[Series]:
        try:
            response = self._client.get(QUERY_PATH, params={"query": descriptor})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise MetricUnavailable(f"metric query failed: {exc}") from exc
        except ValueError as exc:
            raise MetricUnavailable(f"metric response is not JSON: {exc}") from exc
        return extract_series(payload)

    def close(self) -> None:
        self._client.close()


class ReplayMetricSource(MetricSource):
    """Serves recorded samples one timestamp at a time.

    Expects columns ``time``, ``resource`` and ``value``; ``at`` selects
    the rows the next ``query`` returns.
    """

    def __init__(self, samples: pd.DataFrame, label: str = "routeId"):
        frame = samples.copy()
        frame["time"] = pd.to_datetime(frame["time"], utc=True)
        self.samples = frame.sort_values("time", kind="stable")
        self.label = label
        self._cursor: Optional[pd.Timestamp] = None

    def times(self) -> List[pd.Timestamp]:
        return list(self.samples["time"].drop_duplicates())

    def at(self, time: pd.Timestamp) -> None:
        self._cursor = time

    def query(self, descriptor: str) -> List[Series]:
        if self._cursor is None:
            raise MetricUnavailable("replay cursor not positioned")
        rows = self.samples[self.samples["time"] == self._cursor]
        series: List[Dict[str, Any]] = []
        for row in rows.itertuples(index=False):
            labels = {} if pd.isna(row.resource) else {self.label: str(row.resource)}
            series.append({"metric": labels, "value": [row.time.timestamp(), str(row.value)]})
        return series
