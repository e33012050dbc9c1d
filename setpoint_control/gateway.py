from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

TIMEOUTS_PATH = "/internal/timelimiters"
CHANGE_TIMEOUT_PATH = "/dynamic-timeouts"
RETRY_PATH = "/internal/resilience/retry"
BULKHEAD_PATH = "/internal/resilience/bulkhead"


def iso_duration(millis: int) -> str:
    return f"PT{millis / 1000:g}S"


def route_path(prefix: str, route_id: str) -> str:
    return f"{prefix}/{quote(route_id, safe='')}"


class GatewayClient:
    """Thin HTTP client for the gateway's resilience admin endpoints.

    Every method raises ``httpx.HTTPError`` on transport or status errors;
    callers translate those into controller errors.
    """

    def __init__(self, base_url: str, timeout: float = 5.0, client: Optional[httpx.Client] = None):
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def _get(self, path: str) -> Dict[str, Any]:
        response = self._client.get(path)
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise httpx.DecodingError(f"{path}: expected a JSON object", request=response.request)
        return body

    def _post(self, path: str, body: Dict[str, Any]) -> None:
        logger.debug("POST %s %s", path, body)
        response = self._client.post(path, json=body)
        response.raise_for_status()

    def get_timeouts(self) -> Dict[str, Any]:
        return self._get(TIMEOUTS_PATH)

    def change_timeout(self, route_id: str, timeout_millis: int) -> None:
        self._post(CHANGE_TIMEOUT_PATH, {"routeId": route_id, "timeoutMillis": timeout_millis})

    def get_retry_policies(self) -> Dict[str, Any]:
        return self._get(RETRY_PATH)

    def change_retry(
        self,
        route_id: str,
        max_attempts: int,
        first_backoff_ms: int,
        max_backoff_ms: int,
        factor: int,
        statuses: Iterable[int],
        methods: Iterable[str],
    ) -> None:
        body = {
            "maxAttempts": max_attempts,
            "firstBackoff": iso_duration(first_backoff_ms),
            "maxBackoff": iso_duration(max_backoff_ms),
            "factor": factor,
            "basedOnPreviousValue": True,
            "statuses": sorted(statuses),
            "methods": sorted(methods),
        }
        self._post(route_path(RETRY_PATH, route_id), body)

    def get_bulkheads(self) -> Dict[str, Any]:
        return self._get(BULKHEAD_PATH)

    def change_bulkhead(self, route_id: str, max_concurrent_calls: int, max_wait_ms: int) -> None:
        body = {"maxConcurrentCalls": max_concurrent_calls, "maxWaitMs": max_wait_ms}
        self._post(route_path(BULKHEAD_PATH, route_id), body)

    def close(self) -> None:
        self._client.close()
