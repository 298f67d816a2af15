"""Failure notifications for observers that are not awaiting the conversion.

Conversions finish on worker threads, so an error returned at the bottom of
that chain can go unseen if nobody is waiting on the future. Every failure the
converter reports is also published here. A subscriber either registers a
callback that runs on the publishing thread, or polls its own queue
(``get``/``drain``).

Usage:
    channel = ErrorChannel()
    channel.subscribe(lambda notice: print(notice.message))
    sub = channel.subscribe()
    ...
    for notice in sub.drain():
        ...
    sub.close()
"""

from __future__ import annotations

import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from ddx_viewer.logger import get_logger

from .errors import ConversionError, ErrorKind
from .metrics import metrics

_logger = get_logger("error_channel")


@dataclass(frozen=True)
class FailureNotice:
    kind: ErrorKind
    message: str
    source: Path | None = None
    created_at: float = field(default_factory=time.time)

    @classmethod
    def from_error(cls, error: ConversionError, source: Path | None = None) -> FailureNotice:
        return cls(kind=error.kind, message=str(error), source=source)


class Subscription:
    def __init__(self, channel: ErrorChannel, callback: Callable[[FailureNotice], None] | None):
        self._channel = channel
        self.callback = callback
        self._queue: queue.Queue[FailureNotice] = queue.Queue()

    def _deliver(self, notice: FailureNotice) -> None:
        # Callback subscribers are push-only; their queue stays empty.
        if self.callback is None:
            self._queue.put_nowait(notice)
            return
        try:
            self.callback(notice)
        except Exception:
            # A broken observer must not stop delivery to the others.
            _logger.exception("error channel subscriber failed")

    def get(self, timeout: float | None = None) -> FailureNotice | None:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[FailureNotice]:
        out: list[FailureNotice] = []
        while True:
            try:
                out.append(self._queue.get_nowait())
            except queue.Empty:
                return out

    def close(self) -> None:
        self._channel.unsubscribe(self)


class ErrorChannel:
    def __init__(self) -> None:
        self._subs: list[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[FailureNotice], None] | None = None) -> Subscription:
        sub = Subscription(self, callback)
        with self._lock:
            self._subs.append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subs:
                self._subs.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def publish(self, notice: FailureNotice) -> None:
        with self._lock:
            subs = list(self._subs)
        metrics.inc("error_channel.published")
        _logger.debug("publish %s to %d subscribers: %s", notice.kind.value, len(subs), notice.message)
        for sub in subs:
            sub._deliver(notice)
