import os
import platform
import tempfile
from typing import Optional

from pydantic import BaseModel, Field

GNUPLOTPIPE_DEBUG = os.getenv("GNUPLOTPIPE_DEBUG", "0") not in ("", "0", "false", "False")

IS_WINDOWS = os.name == "nt"
IS_MACOS = platform.system() == "Darwin"

# gnuplot install locations checked before PATH (override via environment variables)
if IS_WINDOWS:
    DEFAULT_GNUPLOT_PATH = "C:/program files/gnuplot/bin"
    DEFAULT_GNUPLOT_FILENAME = "gnuplot.exe"
    DEFAULT_TERMINAL = "windows"
else:
    DEFAULT_GNUPLOT_PATH = "/usr/local/bin"
    DEFAULT_GNUPLOT_FILENAME = "gnuplot"
    DEFAULT_TERMINAL = "aqua" if IS_MACOS else "x11"


class GnuplotConfig(BaseModel):
    """Where to find gnuplot and how to talk to it."""

    gnuplot_path: str = Field(default_factory=lambda: os.environ.get("GNUPLOT_PATH", DEFAULT_GNUPLOT_PATH))
    gnuplot_filename: str = Field(
        default_factory=lambda: os.environ.get("GNUPLOT_FILENAME", DEFAULT_GNUPLOT_FILENAME)
    )
    terminal: str = Field(default_factory=lambda: os.environ.get("GNUPLOT_TERMINAL", DEFAULT_TERMINAL))
    tmp_dir: Optional[str] = Field(default_factory=lambda: os.environ.get("GNUPLOTPIPE_TMPDIR") or None)

    @property
    def executable(self) -> str:
        return os.path.join(self.gnuplot_path, self.gnuplot_filename)

    @property
    def scratch_dir(self) -> str:
        return self.tmp_dir or tempfile.gettempdir()
