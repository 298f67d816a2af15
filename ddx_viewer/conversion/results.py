from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ddx_viewer.path_utils import abs_path, artifact_path

from . import formats
from .errors import CleanupError, ConversionError, ErrorKind
from .formats import FileFormat


@dataclass(frozen=True)
class ConversionRequest:
    source: Path
    output_dir: Path
    target_format: FileFormat | str

    @classmethod
    def create(cls, source: str | Path, output_dir: str | Path, target_format: FileFormat | str) -> ConversionRequest:
        return cls(abs_path(source), abs_path(output_dir), target_format)

    @property
    def expected_artifact(self) -> Path:
        """``<output_dir>/<source-stem>.<target-extension>``.

        Raises UnsupportedFormatError when the target is unknown.
        """
        return artifact_path(self.source, self.output_dir, formats.resolve_extension(self.target_format))


@dataclass(frozen=True)
class ConversionResult:
    kind: ErrorKind
    source: Path
    artifact: Path | None = None
    diagnostic: str = ""
    error: ConversionError | None = None

    @property
    def ok(self) -> bool:
        return self.kind is ErrorKind.SUCCESS

    @classmethod
    def success(cls, source: Path, artifact: Path) -> ConversionResult:
        return cls(ErrorKind.SUCCESS, source, artifact=artifact)

    @classmethod
    def failure(cls, source: Path, error: ConversionError) -> ConversionResult:
        return cls(error.kind, source, diagnostic=str(error), error=error)

    def unwrap(self) -> Path:
        """Return the artifact path or raise the recorded error."""
        if self.ok and self.artifact is not None:
            return self.artifact
        if self.error is not None:
            raise self.error
        raise ConversionError(self.diagnostic or "conversion failed")


@dataclass
class SweepReport:
    directory: Path
    pattern: str
    deleted: list[Path] = field(default_factory=list)
    skipped_in_use: list[Path] = field(default_factory=list)
    errors: list[CleanupError] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.skipped_in_use and not self.errors
