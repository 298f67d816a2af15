from __future__ import annotations

import sys
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QImage, QKeySequence, QPixmap
from PySide6.QtWidgets import QApplication, QFileDialog, QLabel, QMainWindow, QMessageBox

from .cli import load_config
from .conversion import formats
from .conversion.error_channel import FailureNotice
from .conversion.errors import ConfigurationError, ConversionError, ExitCodes
from .conversion.file_lock import open_shared
from .conversion.qt_bridge import ConversionController, ErrorNotifier
from .conversion.results import ConversionRequest, ConversionResult
from .logger import get_logger
from .services import Services, build_services

logger = get_logger("main")

_STATUS_TIMEOUT_MS = 8000


class TextureViewer(QMainWindow):
    """Shows one texture at a time, converting it to the display format first.

    Sweep checkpoints: before every new conversion and when the window closes.
    """

    def __init__(self, services: Services):
        super().__init__()
        self.setWindowTitle("DDX Viewer")
        self.services = services
        self.current_path: str | None = None

        self.canvas = QLabel(self)
        self.canvas.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.canvas.setStyleSheet("background-color: #000000;")
        self.setCentralWidget(self.canvas)

        self.controller = ConversionController(services.converter, self)
        self.controller.conversion_finished.connect(self._on_conversion_finished)
        self.controller.conversion_failed.connect(self._on_conversion_failed)

        self.notifier = ErrorNotifier(services.errors, self)
        self.notifier.error_reported.connect(self._on_error_reported)

        self._build_menus()

    def _build_menus(self) -> None:
        file_menu = self.menuBar().addMenu("&File")
        open_action = QAction("&Open...", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self.open_file_dialog)
        file_menu.addAction(open_action)
        file_menu.addSeparator()
        exit_action = QAction("E&xit", self)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

    # ------------------------------------------------------------------

    def open_file_dialog(self) -> None:
        patterns = " ".join(f"*.{d.extension}" for d in formats.source_formats())
        path, _ = QFileDialog.getOpenFileName(self, "Open texture", "", f"Textures ({patterns})")
        if path:
            self.open_path(path)

    def open_path(self, path: str) -> bool:
        """Display ``path``, converting it first unless it is already displayable."""
        display = self.services.config.display_format
        ext = Path(path).suffix
        if not formats.is_source_supported(path):
            logger.error("invalid picture path provided: %s", path)
            self.statusBar().showMessage(f"Unsupported file: {path}", _STATUS_TIMEOUT_MS)
            return False

        self.current_path = path
        if formats.resolve_tag(ext) is display:
            return self._display(Path(path))

        self._release_image()
        self.services.sweep()
        request = ConversionRequest.create(path, self.services.config.temp_dir, display)
        self.statusBar().showMessage(f"Converting {Path(path).name}...")
        return self.controller.start(request) is not None

    def _display(self, path: Path) -> bool:
        try:
            with open_shared(path) as f:
                image = QImage.fromData(f.read())
        except OSError as exc:
            logger.error("failed to read %s: %s", path, exc)
            self.statusBar().showMessage(f"Cannot read {path.name}", _STATUS_TIMEOUT_MS)
            return False
        if image.isNull():
            logger.error("failed to decode %s", path)
            self.statusBar().showMessage(f"Cannot display {path.name}", _STATUS_TIMEOUT_MS)
            return False
        self.canvas.setPixmap(QPixmap.fromImage(image))
        self.setWindowTitle(f"DDX Viewer - {Path(self.current_path or path).name}")
        self.statusBar().clearMessage()
        logger.info("image displayed: %s", path)
        return True

    def _release_image(self) -> None:
        self.canvas.clear()

    # ------------------------------------------------------------------
    # Slots (GUI thread)
    # ------------------------------------------------------------------

    def _on_conversion_finished(self, result: ConversionResult) -> None:
        if result.ok and result.artifact is not None:
            self._display(result.artifact)

    def _on_conversion_failed(self, error: ConversionError) -> None:
        if isinstance(error, ConfigurationError):
            QMessageBox.critical(self, "DDX Viewer", str(error))
            QApplication.exit(int(ExitCodes.MISSING_DEPENDENCY))

    def _on_error_reported(self, notice: FailureNotice) -> None:
        self.statusBar().showMessage(f"Conversion failed: {notice.message}", _STATUS_TIMEOUT_MS)

    def closeEvent(self, event) -> None:  # noqa: N802
        logger.info("viewer closed")
        self._release_image()
        self.notifier.close()
        self.services.sweep()
        super().closeEvent(event)


def run(path: str | None = None, settings_path: str | None = None) -> int:
    app = QApplication.instance() or QApplication(sys.argv[:1])
    try:
        services = build_services(load_config(settings_path))
    except ConfigurationError as exc:
        logger.error("%s", exc)
        QMessageBox.critical(None, "DDX Viewer", str(exc))
        return ExitCodes.MISSING_DEPENDENCY

    try:
        viewer = TextureViewer(services)
        viewer.resize(1024, 768)
        viewer.show()
        if path:
            viewer.open_path(path)
        return app.exec()
    finally:
        services.close()


if __name__ == "__main__":
    sys.exit(run(sys.argv[1] if len(sys.argv) > 1 else None))
