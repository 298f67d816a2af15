"""Places the converter executable on disk, once per process.

The executable is written to a fixed path under the temp root the first time a
conversion needs it. Later calls return the same path without touching disk.
If the file is deleted externally after that, the loss is only noticed when the
next launch fails.
"""

from __future__ import annotations

import contextlib
import os
import stat
import threading
from importlib import resources
from pathlib import Path

from ddx_viewer.logger import get_logger

from .errors import ConfigurationError
from .metrics import metrics

_logger = get_logger("provisioner")

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


class PayloadSource:
    """Where the executable's bytes come from."""

    def read_bytes(self) -> bytes:
        raise NotImplementedError

    def describe(self) -> str:
        return type(self).__name__


class EmbeddedPayload(PayloadSource):
    def __init__(self, data: bytes, label: str = "embedded"):
        self._data = data
        self._label = label

    def read_bytes(self) -> bytes:
        return self._data

    def describe(self) -> str:
        return f"{self._label} ({len(self._data)} bytes)"


class PackagePayload(PayloadSource):
    """Executable shipped as package data under ``ddx_viewer/bin``."""

    def __init__(self, name: str, package: str = "ddx_viewer"):
        self.name = name
        self.package = package

    def read_bytes(self) -> bytes:
        resource = resources.files(self.package).joinpath("bin").joinpath(self.name)
        if not resource.is_file():
            raise FileNotFoundError(f"{self.package}/bin/{self.name} is not bundled")
        return resource.read_bytes()

    def describe(self) -> str:
        return f"package data {self.package}/bin/{self.name}"


class ExternalPayload(PayloadSource):
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def describe(self) -> str:
        return str(self.path)


class ConverterProvisioner:
    """Guarantees the converter executable exists at ``executable_path``.

    Extraction happens at most once per instance; the lock keeps concurrent
    first callers from writing the file twice. A failed extraction is fatal:
    the same ConfigurationError is raised on every later call.
    """

    def __init__(self, executable_path: str | Path, payload: PayloadSource):
        self._path = Path(executable_path)
        self._payload = payload
        self._lock = threading.Lock()
        self._provisioned = False
        self._failure: ConfigurationError | None = None

    @property
    def executable_path(self) -> Path:
        return self._path

    @property
    def is_provisioned(self) -> bool:
        return self._provisioned

    def ensure_ready(self) -> Path:
        if self._provisioned:
            return self._path
        with self._lock:
            if self._failure is not None:
                raise self._failure
            if not self._provisioned:
                try:
                    self._extract()
                except ConfigurationError as exc:
                    self._failure = exc
                    raise
                self._provisioned = True
        return self._path

    def _extract(self) -> None:
        try:
            data = self._payload.read_bytes()
        except OSError as exc:
            _logger.error("converter payload unavailable: %s (%s)", self._payload.describe(), exc)
            raise ConfigurationError(f"Missing converter executable: {self._payload.describe()}: {exc}") from exc
        if not data:
            raise ConfigurationError(f"Converter payload is empty: {self._payload.describe()}")

        tmp = self._path.with_name(self._path.name + ".part")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(data)
            os.replace(tmp, self._path)
            mode = self._path.stat().st_mode
            self._path.chmod(mode | _EXEC_BITS)
        except OSError as exc:
            _logger.error("failed to write converter to %s: %s", self._path, exc)
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            raise ConfigurationError(f"Cannot write converter executable to {self._path}: {exc}") from exc

        metrics.inc("provisioner.extractions")
        _logger.info("converter provisioned: %s <- %s", self._path, self._payload.describe())

    def release(self) -> None:
        """Delete the executable (best-effort, at shutdown)."""
        with self._lock:
            if not self._provisioned:
                return
            self._provisioned = False
            try:
                self._path.unlink(missing_ok=True)
                _logger.debug("converter removed: %s", self._path)
            except OSError as exc:
                _logger.warning("could not remove converter %s: %s", self._path, exc)
