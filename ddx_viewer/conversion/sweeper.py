"""Reclaims generated artifacts from the temp root.

Call `ArtifactSweeper.sweep` at well-defined checkpoints (before starting a
new conversion, when the view closes), not on a timer: nothing bridges the gap
between the converter exiting and the viewer opening its output.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from ddx_viewer.logger import get_logger
from ddx_viewer.path_utils import abs_path

from .errors import CleanupError
from .file_lock import is_file_in_use
from .metrics import metrics
from .results import SweepReport

_logger = get_logger("sweeper")

DEFAULT_PATTERN = "*.png"


class ArtifactSweeper:
    """Deletes files matching a glob pattern unless they are in use.

    ``protected`` paths (the provisioned converter) are never touched, even
    when a caller-supplied pattern happens to match them.
    """

    def __init__(self, protected: Iterable[str | Path] = ()):
        self._protected = {abs_path(p) for p in protected}

    def sweep(self, directory: str | Path, pattern: str = DEFAULT_PATTERN) -> SweepReport:
        root = abs_path(directory)
        report = SweepReport(directory=root, pattern=pattern)
        if not root.is_dir():
            _logger.debug("sweep: no directory %s", root)
            return report

        _logger.debug("sweep: %s/%s", root, pattern)
        for candidate in sorted(root.glob(pattern)):
            path = abs_path(candidate)
            if path in self._protected:
                continue
            self._reclaim(path, report)

        metrics.inc("sweeper.deleted", len(report.deleted))
        metrics.inc("sweeper.skipped_in_use", len(report.skipped_in_use))
        metrics.inc("sweeper.errors", len(report.errors))
        _logger.info(
            "sweep %s: deleted=%d in_use=%d errors=%d",
            root,
            len(report.deleted),
            len(report.skipped_in_use),
            len(report.errors),
        )
        return report

    def _reclaim(self, path: Path, report: SweepReport) -> None:
        try:
            if not path.is_file():
                return
            if is_file_in_use(path):
                _logger.warning("skipped file deletion due to being in use: %s", path)
                report.skipped_in_use.append(path)
                return
            path.unlink()
        except FileNotFoundError:
            # Deleted by someone else between listing and probing.
            _logger.debug("sweep: already gone %s", path)
            return
        except OSError as exc:
            err = CleanupError(path, exc.strerror or str(exc))
            _logger.error("%s", err)
            report.errors.append(err)
            return
        _logger.debug("deleted file: %s", path)
        report.deleted.append(path)
