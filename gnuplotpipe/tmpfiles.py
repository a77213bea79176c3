"""Scratch files used to hand bulk data to gnuplot.

gnuplot reads data files by name, so every inline series is first written to
a uniquely named temp file. The number of files open at once is capped per
context; the files stay on disk until ``release_all`` is called.
"""

from __future__ import annotations

import os
import sys
import tempfile
import threading
from typing import Iterable, List, Optional, TextIO, Tuple

import numpy as np

from gnuplotpipe.config import GNUPLOTPIPE_DEBUG, IS_WINDOWS
from gnuplotpipe.errors import IoFailure, ResourceExhausted

MAX_TMP_FILES = 27 if IS_WINDOWS else 64
TMP_PREFIX = "gnuploti"


class TempFileQuota:
    """Count of temp files currently held by every session of one context."""

    def __init__(self, limit: int = MAX_TMP_FILES) -> None:
        self.limit = limit
        self._count = 0
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        return self._count

    def acquire(self) -> None:
        with self._lock:
            if self._count >= self.limit - 1:
                raise ResourceExhausted(
                    f"Maximum number of temporary files reached ({self.limit}): cannot open more files",
                    hint="Call remove_tmpfiles() on sessions that no longer need their data",
                    details={"limit": self.limit},
                )
            self._count += 1

    def release(self, n: int = 1) -> None:
        with self._lock:
            self._count = max(0, self._count - n)


class TempFileRegistry:
    def __init__(self, quota: TempFileQuota, directory: Optional[str] = None, prefix: str = TMP_PREFIX) -> None:
        self._quota = quota
        self._directory = directory
        self._prefix = prefix
        self._names: List[str] = []

    @property
    def names(self) -> List[str]:
        return list(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def allocate(self) -> Tuple[str, TextIO]:
        self._quota.acquire()
        try:
            fd, name = tempfile.mkstemp(prefix=self._prefix, dir=self._directory)
        except OSError as exc:
            self._quota.release()
            where = self._directory or tempfile.gettempdir()
            raise IoFailure(f"Cannot create temporary file in '{where}'", hint=str(exc)) from exc
        try:
            handle = os.fdopen(fd, "w", encoding="utf-8")
        except OSError as exc:
            os.close(fd)
            self._quota.release()
            raise IoFailure(
                f"Cannot open temporary file \"{name}\" for writing", details={"file": name}
            ) from exc
        self._names.append(name)
        if GNUPLOTPIPE_DEBUG:
            print(f"[tmpfiles] allocated {name} ({self._quota.count}/{self._quota.limit})", file=sys.stderr)
        return name, handle

    def stage(self, blocks: Iterable[np.ndarray], *, separate_blocks: bool = False) -> str:
        """Write ``blocks`` to a fresh file, one row per line, and return its name.

        With ``separate_blocks`` every block is followed by a blank line, which is
        how gnuplot expects the scan lines of a grid surface.
        """
        name, handle = self.allocate()
        try:
            with handle:
                for block in blocks:
                    np.savetxt(handle, block, fmt="%s")
                    if separate_blocks:
                        handle.write("\n")
        except OSError as exc:
            raise IoFailure(
                f"Failed to write data to the temporary file: {name}", details={"file": name}
            ) from exc
        return name

    def release_all(self) -> None:
        """Delete every registered file; files that cannot be deleted stay registered."""
        failed: List[str] = []
        removed = 0
        for name in self._names:
            try:
                os.remove(name)
            except FileNotFoundError:
                pass
            except OSError as exc:
                if GNUPLOTPIPE_DEBUG:
                    print(f"[tmpfiles] cannot remove {name}: {exc}", file=sys.stderr)
                failed.append(name)
                continue
            removed += 1
        self._quota.release(removed)
        self._names = failed
        if GNUPLOTPIPE_DEBUG and removed:
            print(f"[tmpfiles] removed {removed} file(s)", file=sys.stderr)
        if failed:
            listed = ", ".join(f'"{name}"' for name in failed)
            raise IoFailure(f"Cannot remove temporary file(s) {listed}", details={"files": failed})
