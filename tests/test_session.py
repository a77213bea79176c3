import os

import numpy as np
import pytest

from gnuplotpipe.config import GnuplotConfig
from gnuplotpipe.context import GnuplotContext
from gnuplotpipe.errors import (
    DataFileError,
    DisplayNotFound,
    EmptyInput,
    ExecutableNotFound,
    InvalidArgument,
    LengthMismatch,
    PipeClosed,
    ResourceExhausted,
)
from gnuplotpipe.session import Session
from gnuplotpipe.styles import PlotStyle, SmoothStyle
from gnuplotpipe.tmpfiles import TempFileQuota

from conftest import RecordingPipe


def sent(session):
    return session.recorder.commands[2:]


def read_rows(path):
    with open(path) as fh:
        return fh.read().splitlines()


def test_construction_selects_screen_terminal(session):
    assert session.is_valid
    assert session.recorder.commands[:2] == ["set output", "set terminal dumb"]
    assert session.plot_count == 0
    assert session.recorder.executable.endswith(GnuplotConfig().gnuplot_filename)


def test_plot_xy_stages_data_and_counts(session):
    session.plot_xy([1, 2, 3], [4, 5, 6], "series A")
    [name] = session.tmpfiles.names
    assert sent(session) == [f'plot "{name}" using 1:2 title "series A" with points']
    assert read_rows(name) == ["1.0 4.0", "2.0 5.0", "3.0 6.0"]
    assert session.plot_count == 1
    assert session.two_dim is True


def test_second_plot_of_same_kind_is_replotted(session):
    session.plot_x([1, 2]).plot_x([3, 4], "again")
    first, second = sent(session)
    assert first.startswith("plot ")
    assert second.startswith("replot ")
    assert session.plot_count == 2


def test_switching_dimensionality_starts_a_new_plot(session):
    session.plot_equation("sin(x)")
    session.plot_equation3d("x*y")
    session.plot_slope(2, 1)
    assert sent(session) == [
        'plot sin(x) title "f(x) = sin(x)" with points',
        'splot x*y title "f(x,y) = x*y" with points',
        'plot 2 * x + 1 title "f(x) = 2 * x + 1" with points',
    ]
    assert session.plot_count == 3


def test_replot_only_after_a_plot(session):
    session.replot()
    assert sent(session) == []
    session.plot_equation("x").replot()
    assert sent(session)[-1] == "replot"
    assert session.plot_count == 1


def test_raw_send_updates_state_from_verb(session):
    session.send("splot x*y").send("set grid").send("replot")
    assert session.plot_count == 1
    assert session.two_dim is False


def test_style_smoothing_and_width(session):
    session.set_style("lines").set_smooth().set_line_width(3)
    session.plot_xy([1, 2], [3, 4])
    assert sent(session)[-1].endswith("notitle smooth csplines lw 3")
    session.set_smooth(SmoothStyle.NONE).set_line_width(0)
    session.plot_xy([1, 2], [3, 4])
    assert sent(session)[-1].endswith("notitle with lines")


def test_empty_and_mismatched_series(session):
    with pytest.raises(EmptyInput):
        session.plot_x([])
    with pytest.raises(LengthMismatch):
        session.plot_xy([1, 2, 3], [1, 2])
    with pytest.raises(LengthMismatch):
        session.plot_xyz([1], [1], [1, 2])
    assert sent(session) == []
    assert session.tmpfiles.names == []


def test_errorbars(session):
    session.plot_xy_err([1, 2], [3, 4], [0.1, 0.2], "err")
    [name] = session.tmpfiles.names
    assert sent(session) == [f'plot "{name}" using 1:2:3 title "err" with errorbars']


def test_multiple_series_inline(session):
    session.plot_x_multi([[1, 2], [3]], ["a", "b"])
    assert session.recorder.writes[-1] == (
        "plot '-' using 1 title \"a\" with points, '-' using 1 title \"b\" with points\n"
        "1.0\n2.0\ne\n3.0\ne\n"
    )
    assert session.tmpfiles.names == []
    with pytest.raises(EmptyInput):
        session.plot_x_multi([])


def test_grid_surface_writes_blocks(session):
    session.plot_3d_grid([0, 1], [10, 20, 30], [[1, 2, 3], [4, 5, 6]])
    [name] = session.tmpfiles.names
    assert sent(session) == [f'splot "{name}" using 1:2:3 notitle with points']
    assert read_rows(name) == [
        "0.0 10.0 1.0",
        "0.0 20.0 2.0",
        "0.0 30.0 3.0",
        "",
        "1.0 10.0 4.0",
        "1.0 20.0 5.0",
        "1.0 30.0 6.0",
        "",
    ]
    assert session.two_dim is False


def test_grid_surface_shape_mismatch(session):
    with pytest.raises(LengthMismatch):
        session.plot_3d_grid([0, 1], [10, 20], [[1, 2], [3]])
    with pytest.raises(LengthMismatch):
        session.plot_3d_grid([0, 1], [10, 20], [[1, 2, 3], [4, 5, 6]])


def test_image(session):
    session.plot_image(bytes([0, 1, 2, 3, 4, 5]), 3, 2, "raster")
    [name] = session.tmpfiles.names
    assert sent(session) == [f'plot "{name}" using 1:2:3 title "raster" with image']
    assert read_rows(name)[:4] == ["0.0 0.0 0.0", "1.0 0.0 1.0", "2.0 0.0 2.0", "0.0 1.0 3.0"]
    with pytest.raises(LengthMismatch):
        session.plot_image(bytes(5), 3, 2)
    with pytest.raises(EmptyInput):
        session.plot_image(b"", 0, 0)


def test_plotfile_checks_before_sending(session, tmp_path):
    with pytest.raises(DataFileError) as excinfo:
        session.plotfile_xy(str(tmp_path / "absent.dat"))
    assert excinfo.value.code == "FILE_NOT_FOUND"
    data = tmp_path / "data.dat"
    data.write_text("1 2 3\n")
    session.plotfile_xyz(str(data), 1, 3, 2, "cols")
    assert sent(session) == [f'splot "{data}" using 1:3:2 title "cols" with points']


@pytest.mark.skipif(os.name == "nt", reason="file permissions differ on Windows")
def test_plotfile_unreadable(session, tmp_path):
    data = tmp_path / "secret.dat"
    data.write_text("1\n")
    data.chmod(0)
    try:
        if os.access(str(data), os.R_OK):
            pytest.skip("running with privileges that ignore file permissions")
        with pytest.raises(DataFileError) as excinfo:
            session.plotfile_x(str(data))
        assert excinfo.value.code == "FILE_UNREADABLE"
    finally:
        data.chmod(0o600)


def test_axis_and_gnuplot_settings(session):
    session.set_xlabel("time").set_yrange(-1, 2.5).set_cbrange(0, 1)
    session.set_zautoscale().set_xlogscale().unset_ylogscale()
    session.set_grid().set_title('a "quoted" title').set_legend("left").unset_legend()
    session.set_pointsize(2).set_samples(50).set_isosamples(20)
    assert sent(session) == [
        'set xlabel "time"',
        "set yrange[-1:2.5]",
        "set cbrange[0:1]",
        "set zrange restore",
        "set autoscale z",
        "set logscale x 10",
        "unset logscale y",
        "set grid",
        'set title "a \\"quoted\\" title"',
        "set key left",
        "unset key",
        "set pointsize 2",
        "set samples 50",
        "set isosamples 20",
    ]


def test_output_switching(session):
    session.save_to_figure("out.ps").show_on_screen()
    assert sent(session) == [
        "set terminal ps",
        'set output "out.ps"',
        "set output",
        "set terminal dumb",
    ]


def test_contour_settings(session):
    session.set_contour_type("surface").set_contour_levels(5).apply_contour_settings()
    session.set_contour_type("none").apply_contour_settings()
    assert sent(session) == ["set contour surface", "set cntrparam levels 5", "unset contour"]


def test_contour_argument_errors(session):
    with pytest.raises(InvalidArgument):
        session.set_contour_levels(0)
    with pytest.raises(InvalidArgument):
        session.set_contour_type("sideways")
    with pytest.raises(InvalidArgument):
        session.set_contour_param("density")
    session.set_contour_type("base").set_contour_param("discrete")
    with pytest.raises(EmptyInput):
        session.apply_contour_settings()


def test_reset_all(session):
    session.set_style(PlotStyle.LINES).set_smooth("bezier").plot_equation("x")
    session.reset_all()
    assert sent(session)[1:] == ["reset", "clear", "set output", "set terminal dumb"]
    assert session.plot_count == 0
    assert session.style is PlotStyle.NONE
    assert session.smooth is SmoothStyle.NONE


def test_reset_plot_starts_a_fresh_figure(session):
    session.plot_equation("x").reset_plot().plot_equation("x")
    assert [cmd.split()[0] for cmd in sent(session)] == ["plot", "plot"]


def test_closed_session_ignores_plots(session):
    session.close()
    assert session.recorder.closed
    assert not session.is_valid
    session.plot_xy([1, 2], [3, 4]).plot_equation("x").send("set grid")
    assert session.tmpfiles.names == []
    assert len(session.recorder.commands) == 2
    session.close()


def test_close_reports_failure_on_stderr(session, capsys):
    session.recorder.exit_status = 1
    session.close()
    assert "Problem closing communication to gnuplot" in capsys.readouterr().err


def test_broken_pipe_raises(session):
    def broken(text):
        raise BrokenPipeError("gone")

    session.recorder.write = broken
    with pytest.raises(PipeClosed):
        session.send("set grid")


def test_remove_tmpfiles_frees_quota(session):
    session.plot_x([1]).plot_xy([1], [2])
    names = session.tmpfiles.names
    assert session.context.quota.count == 2
    session.remove_tmpfiles()
    assert session.context.quota.count == 0
    assert not any(os.path.exists(name) for name in names)


def test_context_manager_closes(context):
    pipes = []
    with Session(context=context, pipe_factory=lambda exe: pipes.append(RecordingPipe(exe)) or pipes[-1]) as sess:
        sess.plot_equation("x")
    assert pipes[0].closed
    assert not sess.is_valid


def test_for_series_labels_and_plots(context):
    sess = Session.for_series(
        [1, 2], [3, 4], [5, 6], title="pts", style="lines", labels=("a", "b", "c"),
        context=context, pipe_factory=RecordingPipe,
    )
    commands = sess._pipe.commands[2:]
    assert commands[:3] == ['set xlabel "a"', 'set ylabel "b"', 'set zlabel "c"']
    assert commands[3].startswith("splot ")
    assert commands[3].endswith('title "pts" with lines')
    sess.close()
    sess.remove_tmpfiles()


def test_missing_display_for_x11(context, monkeypatch):
    monkeypatch.setattr("gnuplotpipe.context.IS_WINDOWS", False)
    monkeypatch.setattr("gnuplotpipe.context.IS_MACOS", False)
    monkeypatch.delenv("DISPLAY", raising=False)
    context.config.terminal = "x11"
    with pytest.raises(DisplayNotFound):
        Session(context=context, pipe_factory=RecordingPipe)


def test_missing_executable(tmp_path, monkeypatch):
    empty = tmp_path / "empty"
    empty.mkdir()
    monkeypatch.setenv("PATH", str(empty))
    context = GnuplotContext(config=GnuplotConfig(gnuplot_path=str(empty), terminal="dumb"))
    with pytest.raises(ExecutableNotFound):
        Session(context=context, pipe_factory=RecordingPipe)


def test_numpy_input_is_accepted(session):
    session.plot_xy(np.arange(3), np.arange(3) ** 2)
    [name] = session.tmpfiles.names
    assert read_rows(name)[-1] == "2.0 4.0"


class FailingPipe(RecordingPipe):
    def write(self, text):
        raise BrokenPipeError("gnuplot exited")


def test_bad_initial_style_never_opens_the_pipe(context):
    pipes = []

    def factory(executable):
        pipes.append(RecordingPipe(executable))
        return pipes[-1]

    with pytest.raises(InvalidArgument):
        Session("sparkles", context=context, pipe_factory=factory)
    assert pipes == []


def test_failed_setup_closes_the_pipe(context):
    pipes = []

    def factory(executable):
        pipes.append(FailingPipe(executable))
        return pipes[-1]

    with pytest.raises(PipeClosed):
        Session(context=context, pipe_factory=factory)
    assert pipes[0].closed


def test_two_dimensional_series_are_rejected(session):
    with pytest.raises(InvalidArgument):
        session.plot_x([[1, 2], [3, 4]])
    assert sent(session) == []
    assert session.tmpfiles.names == []


def test_quota_exhaustion_passes_through_unchanged(context):
    context.quota = TempFileQuota(limit=2)
    sess = Session(context=context, pipe_factory=RecordingPipe)
    sess.plot_xy([1, 2], [3, 4])
    before = list(sess._pipe.commands)
    with pytest.raises(ResourceExhausted):
        sess.plot_xy([5, 6], [7, 8])
    assert sess._pipe.commands == before
    assert len(sess.tmpfiles) == 1
    sess.close()
    sess.remove_tmpfiles()
