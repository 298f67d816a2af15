"""Pytest configuration.

The viewer and the Qt bridge tests need a `QApplication`. We create a single
one for the entire session as early as possible and cleanly shut it down at
the end. The conversion core itself is tested without Qt, against fake
launchers that record their argument vectors.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest

from ddx_viewer.conversion.metrics import metrics
from ddx_viewer.conversion.provisioner import ConverterProvisioner, EmbeddedPayload
from tests.helpers.fakes import FakeLauncher

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    # Headless CI has no display server.
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    app = QApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""

    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield


@pytest.fixture
def fake_launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def provisioner(tmp_path: Path) -> ConverterProvisioner:
    return ConverterProvisioner(tmp_path / "temp" / "texconv.exe", EmbeddedPayload(b"MZ fake texconv"))


@pytest.fixture
def ddx_file(tmp_path: Path) -> Path:
    src = tmp_path / "input" / "photo.ddx"
    src.parent.mkdir()
    src.write_bytes(b"DDS |fake texture")
    return src
