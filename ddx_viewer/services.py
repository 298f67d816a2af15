from __future__ import annotations

from dataclasses import dataclass

from .config import ViewerConfig
from .conversion.converter import FormatConverter
from .conversion.error_channel import ErrorChannel
from .conversion.launcher import ProcessLauncher
from .conversion.provisioner import ConverterProvisioner
from .conversion.results import SweepReport
from .conversion.sweeper import ArtifactSweeper
from .logger import get_logger

_logger = get_logger("services")


@dataclass
class Services:
    """The conversion core wired from one `ViewerConfig`."""

    config: ViewerConfig
    provisioner: ConverterProvisioner
    converter: FormatConverter
    sweeper: ArtifactSweeper
    errors: ErrorChannel

    def sweep(self) -> SweepReport:
        return self.sweeper.sweep(self.config.temp_dir, self.config.artifact_pattern)

    def close(self) -> None:
        self.converter.shutdown(wait=False)
        self.provisioner.release()
        _logger.debug("services closed")


def build_services(config: ViewerConfig, launcher: ProcessLauncher | None = None) -> Services:
    config.ensure_directories()
    provisioner = config.make_provisioner()
    errors = ErrorChannel()
    converter = FormatConverter(provisioner, launcher=launcher, error_channel=errors, max_workers=config.max_workers)
    return Services(
        config=config,
        provisioner=provisioner,
        converter=converter,
        sweeper=config.make_sweeper(),
        errors=errors,
    )
