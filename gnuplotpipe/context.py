from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from gnuplotpipe.config import IS_MACOS, IS_WINDOWS, GnuplotConfig
from gnuplotpipe.errors import DisplayNotFound
from gnuplotpipe.process import find_executable, is_executable
from gnuplotpipe.tmpfiles import TempFileQuota, TempFileRegistry


def needs_display(terminal: str) -> bool:
    return not IS_WINDOWS and not IS_MACOS and "x11" in terminal


def check_display(terminal: str) -> None:
    if needs_display(terminal) and os.environ.get("DISPLAY") is None:
        raise DisplayNotFound(
            "Can't find DISPLAY variable",
            hint="Use a file terminal (e.g. GNUPLOT_TERMINAL=dumb or pngcairo) on headless hosts",
        )


@dataclass
class GnuplotContext:
    """State shared by every session: executable lookup, default terminal, temp-file quota."""

    config: GnuplotConfig = field(default_factory=GnuplotConfig)
    quota: TempFileQuota = field(default_factory=TempFileQuota)

    def set_gnuplot_path(self, path: str) -> bool:
        """Use ``path`` as the gnuplot directory if it holds the executable.

        On failure the configured directory is cleared so the next lookup goes
        straight to ``PATH``.
        """
        if is_executable(os.path.join(path, self.config.gnuplot_filename)):
            self.config.gnuplot_path = path
            return True
        self.config.gnuplot_path = ""
        return False

    def set_terminal_std(self, terminal: str) -> None:
        check_display(terminal)
        self.config.terminal = terminal

    def resolve_executable(self) -> str:
        return find_executable(self.config)

    def new_registry(self) -> TempFileRegistry:
        return TempFileRegistry(self.quota, directory=self.config.scratch_dir)


_default_context: Optional[GnuplotContext] = None


def default_context() -> GnuplotContext:
    global _default_context
    if _default_context is None:
        _default_context = GnuplotContext()
    return _default_context
