from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Ticker:
    """Calls ``tick`` every ``interval`` seconds on a dedicated daemon thread.

    Ticks never overlap: the next wait starts only after the previous tick
    returned. Exceptions are logged and the loop carries on.
    """

    def __init__(self, name: str, tick: Callable[[], object], interval: float, initial_delay: float = 0.0):
        self.name = name
        self.tick = tick
        self.interval = interval
        self.initial_delay = initial_delay
        self.ticks = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=f"ticker-{self.name}", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop after the current tick finishes."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def run_once(self) -> None:
        try:
            self.tick()
        except Exception:
            logger.exception("Tick %s failed", self.name)
        finally:
            self.ticks += 1

    def _run(self) -> None:
        if self._stop.wait(self.initial_delay):
            return
        while not self._stop.is_set():
            self.run_once()
            if self._stop.wait(self.interval):
                break
