import stat
import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from gnuplotpipe.config import GnuplotConfig  # noqa: E402
from gnuplotpipe.context import GnuplotContext  # noqa: E402
from gnuplotpipe.session import Session  # noqa: E402
from gnuplotpipe.tmpfiles import TempFileQuota  # noqa: E402


class RecordingPipe:
    """Stands in for the gnuplot process and keeps every line written to it."""

    def __init__(self, executable):
        self.executable = executable
        self.writes = []
        self.flushes = 0
        self.closed = False
        self.exit_status = 0

    def write(self, text):
        self.writes.append(text)

    def flush(self):
        self.flushes += 1

    def close(self):
        self.closed = True
        return self.exit_status

    @property
    def commands(self):
        return [text[:-1] if text.endswith("\n") else text for text in self.writes]


def make_executable(path: Path, body: str = "") -> Path:
    path.write_text(body or "#!/bin/sh\ncat > /dev/null\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def gnuplot_dir(tmp_path):
    bindir = tmp_path / "bin"
    bindir.mkdir()
    make_executable(bindir / GnuplotConfig().gnuplot_filename)
    return bindir


@pytest.fixture
def context(tmp_path, gnuplot_dir):
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    config = GnuplotConfig(
        gnuplot_path=str(gnuplot_dir),
        terminal="dumb",
        tmp_dir=str(scratch),
    )
    return GnuplotContext(config=config, quota=TempFileQuota())


@pytest.fixture
def session(context):
    pipes = []

    def factory(executable):
        pipe = RecordingPipe(executable)
        pipes.append(pipe)
        return pipe

    sess = Session(context=context, pipe_factory=factory)
    sess.recorder = pipes[0]
    yield sess
    sess.close()
    sess.remove_tmpfiles()
