"""Conversion core - runs the external texture converter and manages its files.

This package provides:
- Format registry (formats)
- Converter provisioning (provisioner)
- Conversion orchestration (converter, launcher)
- Temp artifact reclamation (sweeper, file_lock)
- Failure notifications (error_channel)

Qt adapters live in `qt_bridge` and are not imported here, so the core can be
used without a Qt event loop.

Usage:
    from ddx_viewer.conversion import ConversionRequest, FileFormat, FormatConverter

    converter = FormatConverter(provisioner)
    future = converter.convert_async(ConversionRequest.create(path, temp_dir, FileFormat.PNG))
"""

from .converter import FormatConverter, build_arguments
from .error_channel import ErrorChannel, FailureNotice, Subscription
from .errors import (
    CleanupError,
    ConfigurationError,
    ConversionError,
    ErrorKind,
    ExitCodes,
    PostconditionError,
    ProcessError,
    UnsupportedFormatError,
    ValidationError,
)
from .formats import FileFormat, FormatDescriptor
from .launcher import LaunchOutcome, ProcessLauncher, SubprocessLauncher
from .provisioner import ConverterProvisioner, EmbeddedPayload, ExternalPayload, PackagePayload
from .results import ConversionRequest, ConversionResult, SweepReport
from .sweeper import ArtifactSweeper

__all__ = [
    "ArtifactSweeper",
    "CleanupError",
    "ConfigurationError",
    "ConversionError",
    "ConversionRequest",
    "ConversionResult",
    "ConverterProvisioner",
    "EmbeddedPayload",
    "ErrorChannel",
    "ErrorKind",
    "ExitCodes",
    "ExternalPayload",
    "FailureNotice",
    "FileFormat",
    "FormatConverter",
    "FormatDescriptor",
    "LaunchOutcome",
    "PackagePayload",
    "PostconditionError",
    "ProcessError",
    "ProcessLauncher",
    "Subscription",
    "SubprocessLauncher",
    "SweepReport",
    "UnsupportedFormatError",
    "ValidationError",
    "build_arguments",
]
