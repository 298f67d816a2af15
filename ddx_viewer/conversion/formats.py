"""Compiled-in table of formats understood by the external converter.

Keep this module free of Qt dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import UnsupportedFormatError


class FileFormat(Enum):
    BMP = "bmp"
    DDS = "dds"
    DDX = "ddx"
    HDR = "hdr"
    JPG = "jpg"
    JPEG = "jpeg"
    PFM = "pfm"
    PNG = "png"
    PPM = "ppm"
    TGA = "tga"
    TIF = "tif"
    TIFF = "tiff"
    WMP = "wmp"


@dataclass(frozen=True)
class FormatDescriptor:
    tag: FileFormat
    extension: str
    source_eligible: bool = True
    target_eligible: bool = True

    @property
    def token(self) -> str:
        """Value passed to the converter's ``-ft`` option."""
        return self.extension.lower()


_DESCRIPTORS: dict[FileFormat, FormatDescriptor] = {f: FormatDescriptor(f, f.value) for f in FileFormat}
_BY_EXTENSION: dict[str, FormatDescriptor] = {d.extension: d for d in _DESCRIPTORS.values()}


def _coerce(value: FileFormat | str) -> FileFormat | None:
    if isinstance(value, FileFormat):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower().lstrip(".")
    desc = _BY_EXTENSION.get(key)
    return desc.tag if desc is not None else None


def resolve_tag(extension: str) -> FileFormat | None:
    """Map an extension (with or without dot, any case) to its tag, or None."""
    if not isinstance(extension, str):
        return None
    return _coerce(extension)


def descriptor(tag: FileFormat | str) -> FormatDescriptor:
    fmt = _coerce(tag)
    if fmt is None:
        raise UnsupportedFormatError(tag)
    return _DESCRIPTORS[fmt]


def resolve_extension(tag: FileFormat | str) -> str:
    return descriptor(tag).extension


def is_supported(tag: FileFormat | str) -> bool:
    """True if ``tag`` may be used as a conversion target."""
    fmt = _coerce(tag)
    return fmt is not None and _DESCRIPTORS[fmt].target_eligible


def is_source_supported(path: str | Path) -> bool:
    fmt = _coerce(Path(path).suffix)
    return fmt is not None and _DESCRIPTORS[fmt].source_eligible


def source_formats() -> list[FormatDescriptor]:
    return [d for d in _DESCRIPTORS.values() if d.source_eligible]


def target_formats() -> list[FormatDescriptor]:
    return [d for d in _DESCRIPTORS.values() if d.target_eligible]
