"""Write throughput reporting for the snapshot writer.

The writer increments a shared counter once per node/edge write; a single
observer thread samples it every interval and logs the delta. The observer
never touches the write path.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class WriteCounter:
    """Monotonic counter with a single writer and any number of readers."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def increment(self, n: int = 1) -> int:
        with self._lock:
            self._value += n
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class ThroughputMonitor:
    """Logs writes per interval while running and one summary after ``stop``."""

    def __init__(
        self,
        counter: WriteCounter,
        *,
        interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.counter = counter
        self.interval = interval
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._started_at: Optional[float] = None
        self._baseline = 0
        self._final: dict[str, Any] = {}
        self.samples: list[int] = []
        self.summary: Optional[dict[str, Any]] = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("ThroughputMonitor can only be started once")
        self._started_at = self._clock()
        self._baseline = self.counter.value
        self._thread = threading.Thread(target=self._run, name="snapshot-throughput", daemon=True)
        self._thread.start()

    def stop(self, **final: Any) -> Optional[dict[str, Any]]:
        """Signal completion and wait for the summary line.

        ``final`` fields (node/edge counts) are added to the summary.
        """

        if self._thread is None:
            return None
        self._final = final
        self._stop.set()
        self._thread.join()
        return self.summary

    def _run(self) -> None:
        prev = self._baseline
        while not self._stop.wait(self.interval):
            now = self.counter.value
            delta = now - prev
            prev = now
            self.samples.append(delta)
            logger.info(
                "snapshot_write.rate",
                writes=delta,
                per_sec=round(delta / self.interval, 2),
                total=now,
            )

        elapsed = self._clock() - (self._started_at or 0.0)
        self.summary = {
            **self._final,
            "writes": self.counter.value,
            "elapsed_sec": round(elapsed, 3),
        }
        logger.info("snapshot_write.complete", **self.summary)
