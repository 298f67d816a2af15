"""Child-process launching for the converter.

A launcher guarantees three things: arguments reach the child without shell
interpretation, standard error is captured in full, and the exit status is
returned. Standard output is discarded and, on Windows, no console window is
shown.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

from ddx_viewer.logger import get_logger

_logger = get_logger("launcher")

LAUNCH_FAILED = -1


@dataclass(frozen=True)
class LaunchOutcome:
    exit_code: int
    stderr: str


class ProcessLauncher:
    """Interface: run ``argv`` to completion and report exit code and stderr."""

    def run(self, argv: Sequence[str]) -> LaunchOutcome:
        raise NotImplementedError


def _hidden_window_kwargs() -> dict:
    if os.name != "nt":
        return {}
    startupinfo = subprocess.STARTUPINFO()
    startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
    startupinfo.wShowWindow = subprocess.SW_HIDE
    return {"creationflags": subprocess.CREATE_NO_WINDOW, "startupinfo": startupinfo}


class SubprocessLauncher(ProcessLauncher):
    """`subprocess`-backed launcher; blocks the calling (worker) thread."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def run(self, argv: Sequence[str]) -> LaunchOutcome:
        args = [str(a) for a in argv]
        _logger.debug("launch: %s", args)
        try:
            proc = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                shell=False,
                **_hidden_window_kwargs(),
            )
        except OSError as exc:
            # Executable missing or not runnable: report like a failed run.
            _logger.error("could not start %s: %s", args[0] if args else "<empty>", exc)
            return LaunchOutcome(LAUNCH_FAILED, str(exc))

        # communicate() drains stderr while waiting so a chatty child cannot block on a full pipe.
        _, err = proc.communicate()
        stderr = err.decode(self.encoding, errors="replace") if err else ""
        return LaunchOutcome(proc.returncode, stderr)
