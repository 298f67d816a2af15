"""Qt adapters that deliver conversion results and failures to the GUI thread.

Both objects live on the thread that created them (normally the GUI thread).
Signals emitted from converter worker threads are queued onto that thread by
Qt, so slots never run concurrently with the event loop.
"""

from __future__ import annotations

from concurrent.futures import Future

from PySide6.QtCore import QObject, Signal

from ddx_viewer.logger import get_logger

from .converter import FormatConverter
from .error_channel import ErrorChannel, FailureNotice
from .errors import ConversionError
from .results import ConversionRequest, ConversionResult

_logger = get_logger("qt_bridge")


class ConversionController(QObject):
    """Starts conversions and reports their results as signals.

    Signals:
        conversion_started: (request)
        conversion_finished: (ConversionResult) for every completed run
        conversion_failed: (ConversionError) for failures, including
            validation/configuration errors raised before the run was queued
    """

    conversion_started = Signal(object)
    conversion_finished = Signal(object)
    conversion_failed = Signal(object)

    def __init__(self, converter: FormatConverter, parent: QObject | None = None):
        super().__init__(parent)
        self._converter = converter

    def start(self, request: ConversionRequest) -> Future | None:
        try:
            future = self._converter.convert_async(request)
        except ConversionError as exc:
            _logger.warning("conversion rejected: %s", exc)
            self.conversion_failed.emit(exc)
            return None
        self.conversion_started.emit(request)
        future.add_done_callback(self._on_done)
        return future

    def _on_done(self, future: Future) -> None:
        # Runs on a worker thread; only emit from here.
        try:
            result: ConversionResult = future.result()
        except Exception as exc:
            _logger.exception("conversion task crashed")
            self.conversion_failed.emit(ConversionError(str(exc)))
            return
        if not result.ok and result.error is not None:
            self.conversion_failed.emit(result.error)
        self.conversion_finished.emit(result)


class ErrorNotifier(QObject):
    """Re-emits error channel notices as a Qt signal."""

    error_reported = Signal(object)  # FailureNotice

    def __init__(self, channel: ErrorChannel, parent: QObject | None = None):
        super().__init__(parent)
        self._subscription = channel.subscribe(self._forward)

    def _forward(self, notice: FailureNotice) -> None:
        self.error_reported.emit(notice)

    def close(self) -> None:
        self._subscription.close()
