"""Path normalization utilities.

- Use absolute paths when handing paths to the converter or the UI.
- Artifact names are derived from the source stem and a lower-case extension.

Keep this module free of Qt dependencies.
"""

from __future__ import annotations

from pathlib import Path


def abs_path(path: str | Path) -> Path:
    """Return an absolute path without requiring that it exists."""
    p = Path(path).expanduser()
    try:
        # strict=False avoids exceptions for non-existent paths.
        return p.resolve(strict=False)
    except OSError:
        return p.absolute()


def artifact_path(source: str | Path, output_dir: str | Path, extension: str) -> Path:
    """Where the converter writes its output for ``source``."""
    ext = extension.lower().lstrip(".")
    return abs_path(output_dir) / f"{Path(source).stem}.{ext}"
