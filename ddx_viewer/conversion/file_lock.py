"""In-use probe for generated artifacts.

Readers that display an artifact hold it through `open_shared`. The sweeper
asks `is_file_in_use`, which attempts an exclusive, non-blocking lock: any
shared holder makes the attempt fail. On POSIX this is an advisory ``flock``.
On Windows a byte-range lock is used; an open handle held by another process
also makes the later delete fail, which the sweeper records per file.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

if os.name == "nt":
    import msvcrt
else:
    import fcntl


def is_file_in_use(path: str | Path) -> bool:
    """True if another holder prevents taking an exclusive lock on ``path``.

    Raises FileNotFoundError if the file disappeared.
    """
    fd = os.open(str(path), os.O_RDWR if os.name == "nt" else os.O_RDONLY)
    try:
        if os.name == "nt":
            try:
                msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
            except OSError:
                return True
            msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
            return False
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            return True
        fcntl.flock(fd, fcntl.LOCK_UN)
        return False
    finally:
        os.close(fd)


@contextmanager
def open_shared(path: str | Path) -> Iterator[BinaryIO]:
    """Open ``path`` for reading; the sweeper will not delete it while held."""
    f = open(path, "rb")  # noqa: SIM115
    try:
        if os.name != "nt":
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
        yield f
    finally:
        if os.name != "nt":
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        f.close()
