# ==============================================
# Progress Reporting
# ==============================================
#
# PURPOSE:
#   One-way event channel from the engine to whoever is watching.
#   The engine only ever calls sink.emit(event); it never waits on
#   delivery and never touches caller-owned state.
#
# SINKS:
# ------
# - NullProgressSink      → drops everything (default)
# - QueueProgressSink     → bounded queue the caller drains; never
#                           blocks, counts what it had to drop
# - CallbackProgressSink  → daemon thread delivers events to a callback
#
# ==============================================

import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Iterator, Optional

from loguru import logger


class ProgressStatus(Enum):
    STARTED = "started"
    LOADING_TABLES = "loading-tables"
    COLLECTING_STATISTICS = "collecting-statistics"
    EXTRACTING_SCHEMA = "extracting-schema"
    ANALYZING_RELATIONSHIPS = "analyzing-relationships"
    SCORING = "scoring"
    PLANNING = "planning"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    WARNING = "warning"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ProgressEvent:
    status: ProgressStatus
    message: str
    timestamp: str = field(default_factory=_utc_now)

    def to_dict(self) -> Dict[str, str]:
        return {"status": self.status.value, "message": self.message, "timestamp": self.timestamp}


class ProgressSink:
    def emit(self, event: ProgressEvent) -> None:
        raise NotImplementedError


class NullProgressSink(ProgressSink):
    def emit(self, event: ProgressEvent) -> None:
        pass


class QueueProgressSink(ProgressSink):
    """
    Bounded, non-blocking queue. When full, new events are dropped and
    counted in `dropped`.
    """

    def __init__(self, maxsize: int = 1000):
        self._queue: "queue.Queue[ProgressEvent]" = queue.Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self.dropped = 0

    def emit(self, event: ProgressEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            with self._lock:
                self.dropped += 1

    def drain(self) -> Iterator[ProgressEvent]:
        while True:
            try:
                yield self._queue.get_nowait()
            except queue.Empty:
                return


_STOP = object()


class CallbackProgressSink(ProgressSink):
    """
    Hands events to a callback on a background daemon thread.

    emit() only enqueues. A slow callback delays delivery, never the
    engine. Exceptions raised by the callback are logged and the worker
    keeps going.
    """

    def __init__(self, callback: Callable[[ProgressEvent], None]):
        self.callback = callback
        self._queue: queue.Queue = queue.Queue()
        self._worker: Optional[threading.Thread] = threading.Thread(
            target=self._run, name="relinfer-progress", daemon=True
        )
        self._worker.start()

    def emit(self, event: ProgressEvent) -> None:
        self._queue.put_nowait(event)

    def close(self, timeout: Optional[float] = None) -> None:
        """Deliver everything queued so far, then stop the worker."""
        if self._worker is None:
            return
        self._queue.put_nowait(_STOP)
        self._worker.join(timeout)
        self._worker = None

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            try:
                self.callback(item)
            except Exception as e:
                logger.warning("Progress callback failed on {} event: {}", item.status.value, e)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
