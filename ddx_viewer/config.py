"""Explicit application configuration.

`ViewerConfig` is built once at startup and handed to every component that
needs a path. Nothing in the conversion core resolves paths on its own.
"""

from __future__ import annotations

import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .conversion import formats
from .conversion.errors import ConfigurationError
from .conversion.formats import FileFormat
from .conversion.provisioner import ConverterProvisioner, ExternalPayload, PackagePayload, PayloadSource
from .conversion.sweeper import ArtifactSweeper
from .logger import get_logger
from .path_utils import abs_path
from .settings_manager import SettingsManager

_logger = get_logger("config")

APP_DIR_NAME = "ddx_viewer"
_BASE_DIR = Path(getattr(sys, "_MEIPASS", Path(__file__).resolve().parent))


def default_settings_path() -> Path:
    return _BASE_DIR / "settings.json"


def default_temp_dir() -> Path:
    return Path(tempfile.gettempdir()) / APP_DIR_NAME


@dataclass(frozen=True)
class ViewerConfig:
    temp_dir: Path
    converter_name: str = "texconv.exe"
    converter_source: Path | None = None
    artifact_pattern: str = "*.png"
    display_format: FileFormat = FileFormat.PNG
    max_workers: int = 2

    @property
    def executable_path(self) -> Path:
        return self.temp_dir / self.converter_name

    @classmethod
    def from_settings(cls, settings: SettingsManager) -> ViewerConfig:
        temp = settings.get("temp_dir")
        source = settings.get("converter_path")
        display = formats.resolve_tag(str(settings.get("display_format") or ""))
        if display is None:
            _logger.warning("invalid display_format %r, using png", settings.get("display_format"))
            display = FileFormat.PNG
        return cls(
            temp_dir=abs_path(temp) if temp else default_temp_dir(),
            converter_name=str(settings.get("converter_name")),
            converter_source=abs_path(source) if source else None,
            artifact_pattern=str(settings.get("artifact_pattern")),
            display_format=display,
            max_workers=settings.max_workers,
        )

    def ensure_directories(self) -> None:
        """Create the temp root; an unwritable root is fatal."""
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(f"Cannot create temp directory {self.temp_dir}: {exc}") from exc

    def payload(self) -> PayloadSource:
        if self.converter_source is not None:
            return ExternalPayload(self.converter_source)
        return PackagePayload(self.converter_name)

    def make_provisioner(self) -> ConverterProvisioner:
        return ConverterProvisioner(self.executable_path, self.payload())

    def make_sweeper(self) -> ArtifactSweeper:
        return ArtifactSweeper(protected=[self.executable_path])
