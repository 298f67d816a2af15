"""Runs the external texture converter for one request at a time.

Invocation contract::

    <executable> <input> -ft <format-token> -y -o <output-dir>

Exit code 0 means success and the output appears as
``<output-dir>/<input-stem>.<format-extension>``. Any other exit code is a
failure described on standard error.

Validation and provisioning happen on the caller's thread and raise before
any work is queued. The process wait and the stderr drain happen on a worker
thread; the caller receives a `Future`.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path

from ddx_viewer.logger import get_logger

from . import formats
from .error_channel import ErrorChannel, FailureNotice
from .errors import ConversionError, PostconditionError, ProcessError, UnsupportedFormatError, ValidationError
from .formats import FileFormat
from .launcher import LAUNCH_FAILED, ProcessLauncher, SubprocessLauncher
from .metrics import metrics
from .provisioner import ConverterProvisioner
from .results import ConversionRequest, ConversionResult

_logger = get_logger("converter")

OVERWRITE_FLAG = "-y"
FORMAT_FLAG = "-ft"
OUTPUT_FLAG = "-o"


def build_arguments(executable: Path, request: ConversionRequest) -> list[str]:
    """Argument vector for one conversion; never passed through a shell."""
    desc = formats.descriptor(request.target_format)
    return [
        str(executable),
        str(request.source),
        FORMAT_FLAG,
        desc.token,
        OVERWRITE_FLAG,
        OUTPUT_FLAG,
        str(request.output_dir),
    ]


class FormatConverter:
    def __init__(
        self,
        provisioner: ConverterProvisioner,
        launcher: ProcessLauncher | None = None,
        error_channel: ErrorChannel | None = None,
        max_workers: int = 2,
    ):
        self._provisioner = provisioner
        self._launcher = launcher or SubprocessLauncher()
        self._errors = error_channel
        self._pool = ThreadPoolExecutor(max_workers=max(1, int(max_workers)), thread_name_prefix="texconv")
        # Conversions writing the same artifact are serialized. Entries are
        # [lock, holders] and disappear when the last holder leaves.
        self._path_locks: dict[Path, list] = {}
        self._path_locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def convert_async(self, request: ConversionRequest) -> Future[ConversionResult]:
        """Validate and provision now, run the converter in the background.

        Raises ValidationError or ConfigurationError before anything is queued.
        """
        executable = self._prepare(request)
        return self._pool.submit(self._run, executable, request)

    def convert(self, request: ConversionRequest) -> ConversionResult:
        """Blocking variant of `convert_async`."""
        executable = self._prepare(request)
        return self._run(executable, request)

    def submit(
        self,
        source: str | Path,
        output_dir: str | Path,
        target_format: FileFormat | str,
        on_done: Callable[[ConversionResult], None] | None = None,
    ) -> Future[ConversionResult]:
        """Convenience wrapper building the request and attaching ``on_done``."""
        request = ConversionRequest.create(source, output_dir, target_format)
        future = self.convert_async(request)
        if on_done is not None:

            def _deliver(f: Future[ConversionResult]) -> None:
                try:
                    result = f.result()
                except CancelledError:
                    result = ConversionResult.failure(request.source, ConversionError("Conversion cancelled"))
                except Exception as exc:
                    _logger.exception("conversion task crashed")
                    result = ConversionResult.failure(request.source, ConversionError(str(exc)))
                on_done(result)

            future.add_done_callback(_deliver)
        return future

    def shutdown(self, wait: bool = False) -> None:
        self._pool.shutdown(wait=wait, cancel_futures=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def validate(self, request: ConversionRequest) -> None:
        if not formats.is_supported(request.target_format):
            _logger.warning("unsupported file format: %s", request.target_format)
            raise UnsupportedFormatError(request.target_format)
        if not formats.is_source_supported(request.source):
            _logger.warning("unsupported source file: %s", request.source)
            raise UnsupportedFormatError(request.source.suffix or request.source.name)
        if not request.source.is_file():
            _logger.warning("source file not found: %s", request.source)
            raise ValidationError(f"Source file not found: {request.source}")

    def _prepare(self, request: ConversionRequest) -> Path:
        self.validate(request)
        return self._provisioner.ensure_ready()

    @contextmanager
    def _artifact_lock(self, artifact: Path) -> Iterator[None]:
        with self._path_locks_guard:
            entry = self._path_locks.setdefault(artifact, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._path_locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._path_locks[artifact]

    def _run(self, executable: Path, request: ConversionRequest) -> ConversionResult:
        expected = request.expected_artifact
        argv = build_arguments(executable, request)
        _logger.info("converting %s to %s", request.source, formats.resolve_extension(request.target_format))

        with self._artifact_lock(expected):
            try:
                request.output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                return self._fail(request, ProcessError(LAUNCH_FAILED, f"Cannot create output directory: {exc}"))

            metrics.inc("converter.process_started")
            try:
                with metrics.timed("converter.duration"):
                    outcome = self._launcher.run(argv)
            except Exception as exc:
                _logger.exception("launcher raised for %s", request.source)
                return self._fail(request, ProcessError(LAUNCH_FAILED, f"{type(exc).__name__}: {exc}"))

            if outcome.exit_code != 0:
                return self._fail(request, ProcessError(outcome.exit_code, outcome.stderr))

            if not expected.is_file():
                return self._fail(request, PostconditionError(expected))

        _logger.info("conversion completed: %s", expected)
        return ConversionResult.success(request.source, expected)

    def _fail(self, request: ConversionRequest, error: ConversionError) -> ConversionResult:
        metrics.inc("converter.failures")
        _logger.error("%s", error)
        if self._errors is not None:
            self._errors.publish(FailureNotice.from_error(error, request.source))
        return ConversionResult.failure(request.source, error)
