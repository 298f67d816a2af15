"""Error taxonomy for converter orchestration.

Validation and configuration errors are raised before any process starts.
Process and postcondition errors describe a finished conversion and travel
inside a `ConversionResult` (and on the error channel). Cleanup errors are
recorded per file by the sweeper and never raised.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from pathlib import Path


class ExitCodes(IntEnum):
    """Process exit codes used by the CLI and the viewer shell."""

    SUCCESS = 0
    CANCEL = 1
    INVALID_ARGUMENT = 2
    CONVERSION_ERROR = 3
    MISSING_DEPENDENCY = 4
    ADMIN_PRIVILEGES_REQUIRED = 5
    UPDATE = 6


class ErrorKind(Enum):
    SUCCESS = "success"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    PROCESS = "process"
    POSTCONDITION = "postcondition"
    CLEANUP = "cleanup"


class ConversionError(Exception):
    """Base class for every failure raised or reported by the conversion core."""

    kind: ErrorKind = ErrorKind.PROCESS


class ValidationError(ConversionError, ValueError):
    kind = ErrorKind.VALIDATION


class UnsupportedFormatError(ValidationError):
    def __init__(self, value: object):
        super().__init__(f"Unsupported file format: {value}")
        self.value = value


class ConfigurationError(ConversionError):
    """The converter executable or the temp root cannot be provisioned.

    Fatal: callers must not retry silently.
    """

    kind = ErrorKind.CONFIGURATION


class ProcessError(ConversionError):
    kind = ErrorKind.PROCESS

    def __init__(self, exit_code: int, stderr: str):
        super().__init__(f"Converter failed. Exit code: {exit_code}. Error output: {stderr}")
        self.exit_code = exit_code
        self.stderr = stderr


class PostconditionError(ConversionError):
    """The converter reported success but the expected artifact is missing."""

    kind = ErrorKind.POSTCONDITION

    def __init__(self, expected: Path):
        super().__init__(f"Output file not created: {expected}")
        self.expected = expected


class CleanupError(ConversionError):
    kind = ErrorKind.CLEANUP

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Could not delete {path}: {reason}")
        self.path = path
        self.reason = reason
