from __future__ import annotations

import os
import subprocess
import sys
from typing import List, Optional

from gnuplotpipe.config import GNUPLOTPIPE_DEBUG, IS_WINDOWS, GnuplotConfig
from gnuplotpipe.errors import ExecutableNotFound, LaunchFailure, PipeClosed


def is_executable(path: str) -> bool:
    # Windows has no execute bit; existence is all that can be checked there
    if not os.path.isfile(path):
        return False
    return IS_WINDOWS or os.access(path, os.X_OK)


def search_path(filename: str, path_value: Optional[str]) -> Optional[str]:
    """Directory of the first ``PATH`` entry holding an executable ``filename``."""
    if not path_value:
        return None
    for directory in path_value.split(os.pathsep):
        if not directory:
            continue
        if is_executable(os.path.join(directory, filename)):
            return directory
    return None


def find_executable(config: GnuplotConfig) -> str:
    """Resolve the gnuplot binary: configured directory first, then ``PATH``.

    The directory found on ``PATH`` is written back into ``config`` so later
    sessions skip the scan.
    """
    if config.gnuplot_path and is_executable(config.executable):
        return config.executable
    path_value = os.environ.get("PATH")
    if path_value is None:
        raise ExecutableNotFound("PATH is not set", hint="Set GNUPLOT_PATH to the directory holding gnuplot")
    found = search_path(config.gnuplot_filename, path_value)
    if found is None:
        raise ExecutableNotFound(
            f"Can't find {config.gnuplot_filename} neither in PATH nor in \"{config.gnuplot_path}\"",
            hint="Install gnuplot or point GNUPLOT_PATH at its directory",
        )
    config.gnuplot_path = found
    if GNUPLOTPIPE_DEBUG:
        print(f"[process] using {config.executable}", file=sys.stderr)
    return config.executable


class GnuplotProcess:
    """Write-only text pipe into a gnuplot child process."""

    def __init__(self, executable: str, args: Optional[List[str]] = None) -> None:
        self.executable = executable
        try:
            self._process = subprocess.Popen(
                [executable, *(args or [])],
                stdin=subprocess.PIPE,
                text=True,
                encoding="utf-8",
            )
        except OSError as exc:
            raise LaunchFailure(
                f"Couldn't open connection to gnuplot ({executable})", hint=str(exc)
            ) from exc
        if GNUPLOTPIPE_DEBUG:
            print(f"[process] started {executable} pid={self._process.pid}", file=sys.stderr)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def closed(self) -> bool:
        stdin = self._process.stdin
        return stdin is None or stdin.closed

    def write(self, text: str) -> None:
        if self.closed:
            raise PipeClosed("Pipe to gnuplot is closed")
        assert self._process.stdin
        self._process.stdin.write(text)

    def flush(self) -> None:
        if self._process.stdin and not self._process.stdin.closed:
            self._process.stdin.flush()

    def close(self) -> int:
        """Close stdin, wait for gnuplot to exit and return its exit status."""
        if self._process.stdin and not self._process.stdin.closed:
            self._process.stdin.close()
        return self._process.wait()
