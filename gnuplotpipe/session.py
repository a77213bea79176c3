"""A live gnuplot process plus the plotting state needed to drive it.

A ``Session`` owns one write pipe into gnuplot. Every plotting call formats
exactly one command (see ``gnuplotpipe.commands``), staging bulk data in temp
files first, and the session counts what it sent so that the next plot either
starts a new figure or is appended with ``replot``.
"""

from __future__ import annotations

import functools
import os
import sys
from typing import Any, Callable, Optional, Sequence, Union

import numpy as np

from gnuplotpipe import commands
from gnuplotpipe.config import GNUPLOTPIPE_DEBUG
from gnuplotpipe.context import GnuplotContext, check_display, default_context
from gnuplotpipe.contour import ContourConfig, ContourIncrement, ContourParam, ContourType
from gnuplotpipe.errors import DataFileError, EmptyInput, GnuplotError, InvalidArgument, LengthMismatch, PipeClosed
from gnuplotpipe.process import GnuplotProcess
from gnuplotpipe.styles import PlotStyle, SmoothStyle, coerce_smooth, coerce_style

PipeFactory = Callable[[str], Any]
StyleLike = Union[PlotStyle, str, None]


def _series(values: Any, name: str) -> np.ndarray:
    try:
        arr = np.asarray(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"{name} must be a sequence of numbers") from exc
    if arr.ndim > 1:
        raise InvalidArgument(f"{name} must be one-dimensional, got shape {arr.shape}")
    arr = arr.reshape(-1)
    if arr.size == 0:
        raise EmptyInput(f"Input vector {name} is empty. Cannot plot data.")
    return arr


def _same_length(**named: np.ndarray) -> None:
    sizes = {name: arr.size for name, arr in named.items()}
    if len(set(sizes.values())) > 1:
        raise LengthMismatch("Length of the vectors differs", details={"sizes": sizes})


def _when_valid(method):
    # closed sessions skip plotting entirely, nothing is staged on disk
    @functools.wraps(method)
    def wrapper(self: "Session", *args: Any, **kwargs: Any) -> "Session":
        if not self.valid:
            return self
        return method(self, *args, **kwargs)

    return wrapper


class Session:
    def __init__(
        self,
        style: StyleLike = PlotStyle.NONE,
        *,
        context: Optional[GnuplotContext] = None,
        pipe_factory: Optional[PipeFactory] = None,
    ) -> None:
        self.context = context or default_context()
        self._pipe: Any = None
        self.valid = False
        self.two_dim = False
        self.plot_count = 0
        self.line_width = 0.0
        self.style = PlotStyle.NONE
        self.smooth = SmoothStyle.NONE
        self.contour = ContourConfig()
        self.tmpfiles = self.context.new_registry()

        initial_style = coerce_style(style)
        config = self.context.config
        check_display(config.terminal)
        executable = self.context.resolve_executable()
        self._pipe = (pipe_factory or GnuplotProcess)(executable)
        self.valid = True
        try:
            self.show_on_screen()
        except GnuplotError:
            self.close()
            raise
        self.style = initial_style

    @classmethod
    def for_series(
        cls,
        x: Any,
        y: Any = None,
        z: Any = None,
        title: str = "",
        style: StyleLike = PlotStyle.NONE,
        labels: Sequence[str] = ("x", "y", "z"),
        **kwargs: Any,
    ) -> "Session":
        """Open a session, label the axes and plot one, two or three series."""
        session = cls(style, **kwargs)
        session.set_xlabel(labels[0]).set_ylabel(labels[1])
        if z is not None:
            session.set_zlabel(labels[2])
            return session.plot_xyz(x, y, z, title)
        if y is not None:
            return session.plot_xy(x, y, title)
        return session.plot_x(x, title)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_valid(self) -> bool:
        return self.valid

    def close(self) -> None:
        if not self.valid:
            return
        pipe, self._pipe = self._pipe, None
        self.valid = False
        try:
            status = pipe.close()
        except OSError as exc:
            print(f"Problem closing communication to gnuplot: {exc}", file=sys.stderr)
            return
        if status:
            print(f"Problem closing communication to gnuplot (exit status {status})", file=sys.stderr)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def state(self) -> commands.PlotState:
        return commands.PlotState(
            plot_count=self.plot_count,
            two_dim=self.two_dim,
            style=self.style,
            smooth=self.smooth,
            line_width=self.line_width,
        )

    def send(self, command: str) -> "Session":
        """Write one raw command to gnuplot; silently skipped once the session is closed."""
        if not self.valid:
            return self
        try:
            self._pipe.write(command + "\n")
            self._pipe.flush()
        except (OSError, ValueError) as exc:
            raise PipeClosed("Lost connection to gnuplot", hint=str(exc)) from exc
        if GNUPLOTPIPE_DEBUG:
            print(f"[gnuplot] {command}", file=sys.stderr)
        family = commands.command_family(command)
        if family == "splot":
            self.two_dim = False
            self.plot_count += 1
        elif family == "plot":
            self.two_dim = True
            self.plot_count += 1
        return self

    # ------------------------------------------------------------------
    # Output and session-wide state
    # ------------------------------------------------------------------

    def show_on_screen(self) -> "Session":
        self.send("set output")
        return self.send(f"set terminal {self.context.config.terminal}")

    def save_to_figure(self, filename: str, terminal: str = "ps") -> "Session":
        self.send(f"set terminal {terminal}")
        return self.send(f"set output {commands.quote(filename)}")

    def set_style(self, style: StyleLike) -> "Session":
        self.style = coerce_style(style)
        return self

    def set_smooth(self, style: Union[SmoothStyle, str, None] = SmoothStyle.CSPLINES) -> "Session":
        self.smooth = coerce_smooth(style)
        return self

    def set_line_width(self, width: float) -> "Session":
        """Line width for later plots; zero or less drops the ``lw`` clause."""
        self.line_width = float(width)
        return self

    def set_pointsize(self, pointsize: float = 1.0) -> "Session":
        return self.send(f"set pointsize {commands.format_number(pointsize)}")

    def set_grid(self) -> "Session":
        return self.send("set grid")

    def unset_grid(self) -> "Session":
        return self.send("unset grid")

    def set_multiplot(self) -> "Session":
        return self.send("set multiplot")

    def unset_multiplot(self) -> "Session":
        return self.send("unset multiplot")

    def set_samples(self, samples: int = 100) -> "Session":
        return self.send(f"set samples {int(samples)}")

    def set_isosamples(self, isolines: int = 10) -> "Session":
        return self.send(f"set isosamples {int(isolines)}")

    def set_hidden3d(self) -> "Session":
        return self.send("set hidden3d")

    def unset_hidden3d(self) -> "Session":
        return self.send("unset hidden3d")

    def set_surface(self) -> "Session":
        return self.send("set surface")

    def unset_surface(self) -> "Session":
        return self.send("unset surface")

    def unset_contour(self) -> "Session":
        return self.send("unset contour")

    def set_legend(self, position: str = "default") -> "Session":
        return self.send(f"set key {position}")

    def unset_legend(self) -> "Session":
        return self.send("unset key")

    def set_title(self, title: str = "") -> "Session":
        return self.send(f"set title {commands.quote(title)}")

    def unset_title(self) -> "Session":
        return self.set_title()

    # ------------------------------------------------------------------
    # Axes
    # ------------------------------------------------------------------

    def _label(self, axis: str, label: str) -> "Session":
        return self.send(f"set {axis}label {commands.quote(label)}")

    def _range(self, axis: str, lo: float, hi: float) -> "Session":
        return self.send(f"set {axis}range[{commands.format_number(lo)}:{commands.format_number(hi)}]")

    def _autoscale(self, axis: str) -> "Session":
        self.send(f"set {axis}range restore")
        return self.send(f"set autoscale {axis}")

    def _logscale(self, axis: str, base: float) -> "Session":
        return self.send(f"set logscale {axis} {commands.format_number(base)}")

    def set_xlabel(self, label: str = "x") -> "Session":
        return self._label("x", label)

    def set_ylabel(self, label: str = "y") -> "Session":
        return self._label("y", label)

    def set_zlabel(self, label: str = "z") -> "Session":
        return self._label("z", label)

    def set_xrange(self, lo: float, hi: float) -> "Session":
        return self._range("x", lo, hi)

    def set_yrange(self, lo: float, hi: float) -> "Session":
        return self._range("y", lo, hi)

    def set_zrange(self, lo: float, hi: float) -> "Session":
        return self._range("z", lo, hi)

    def set_cbrange(self, lo: float, hi: float) -> "Session":
        return self._range("cb", lo, hi)

    def set_xautoscale(self) -> "Session":
        return self._autoscale("x")

    def set_yautoscale(self) -> "Session":
        return self._autoscale("y")

    def set_zautoscale(self) -> "Session":
        return self._autoscale("z")

    def set_xlogscale(self, base: float = 10) -> "Session":
        return self._logscale("x", base)

    def set_ylogscale(self, base: float = 10) -> "Session":
        return self._logscale("y", base)

    def set_zlogscale(self, base: float = 10) -> "Session":
        return self._logscale("z", base)

    def unset_xlogscale(self) -> "Session":
        return self.send("unset logscale x")

    def unset_ylogscale(self) -> "Session":
        return self.send("unset logscale y")

    def unset_zlogscale(self) -> "Session":
        return self.send("unset logscale z")

    # ------------------------------------------------------------------
    # Contours
    # ------------------------------------------------------------------

    def set_contour_type(self, contour_type: Union[ContourType, str]) -> "Session":
        try:
            self.contour.type = ContourType(contour_type)
        except ValueError as exc:
            raise InvalidArgument(f"Unknown contour type '{contour_type}'") from exc
        return self

    def set_contour_param(self, param: Union[ContourParam, str]) -> "Session":
        try:
            self.contour.param = ContourParam(param)
        except ValueError as exc:
            raise InvalidArgument(f"Unknown contour parameter '{param}'") from exc
        return self

    def set_contour_levels(self, levels: int) -> "Session":
        if int(levels) <= 0:
            raise InvalidArgument(f"Number of contour levels must be positive, got {levels}")
        self.contour.levels = int(levels)
        return self

    def set_contour_increment(self, start: float, step: float, end: float) -> "Session":
        self.contour.increment = ContourIncrement(start=start, step=step, end=end)
        return self

    def set_contour_discrete_levels(self, levels: Sequence[float]) -> "Session":
        self.contour.discrete_levels = [float(v) for v in levels]
        return self

    def apply_contour_settings(self) -> "Session":
        for line in self.contour.commands():
            self.send(line)
        return self

    # ------------------------------------------------------------------
    # Plotting from files
    # ------------------------------------------------------------------

    def _check_file(self, filename: str) -> None:
        if not os.path.exists(filename):
            raise DataFileError(f"File \"{filename}\" does not exist.", details={"file": filename})
        if not os.access(filename, os.R_OK):
            raise DataFileError(
                f"No read permission for file \"{filename}\".",
                code="FILE_UNREADABLE",
                details={"file": filename},
            )

    @_when_valid
    def _plot_file(self, filename: str, columns: Sequence[int], title: str, *, two_dim: bool = True,
                   style_override: Optional[str] = None) -> "Session":
        self._check_file(filename)
        cmd = commands.file_command(
            self.state(), filename, columns, title, two_dim=two_dim, style_override=style_override
        )
        return self.send(cmd)

    def plotfile_x(self, filename: str, column: int = 1, title: str = "") -> "Session":
        return self._plot_file(filename, (column,), title)

    def plotfile_xy(self, filename: str, column_x: int = 1, column_y: int = 2, title: str = "") -> "Session":
        return self._plot_file(filename, (column_x, column_y), title)

    def plotfile_xy_err(
        self, filename: str, column_x: int = 1, column_y: int = 2, column_dy: int = 3, title: str = ""
    ) -> "Session":
        return self._plot_file(filename, (column_x, column_y, column_dy), title, style_override="errorbars")

    def plotfile_xyz(
        self, filename: str, column_x: int = 1, column_y: int = 2, column_z: int = 3, title: str = ""
    ) -> "Session":
        return self._plot_file(filename, (column_x, column_y, column_z), title, two_dim=False)

    # ------------------------------------------------------------------
    # Plotting in-memory data
    # ------------------------------------------------------------------

    @_when_valid
    def plot_x(self, x: Any, title: str = "") -> "Session":
        data = _series(x, "x")
        name = self.tmpfiles.stage([data])
        return self.plotfile_x(name, 1, title)

    @_when_valid
    def plot_x_multi(self, series: Sequence[Any], titles: Sequence[str] = ()) -> "Session":
        """Plot several x-only series with one command, data sent inline."""
        if len(series) == 0:
            raise EmptyInput("No series given. Cannot plot data.")
        data = [_series(values, f"series[{k}]") for k, values in enumerate(series)]
        return self.send(commands.inline_command(self.state(), data, list(titles)))

    @_when_valid
    def plot_xy(self, x: Any, y: Any, title: str = "") -> "Session":
        xs, ys = _series(x, "x"), _series(y, "y")
        _same_length(x=xs, y=ys)
        name = self.tmpfiles.stage([np.column_stack((xs, ys))])
        return self.plotfile_xy(name, 1, 2, title)

    @_when_valid
    def plot_xy_err(self, x: Any, y: Any, dy: Any, title: str = "") -> "Session":
        xs, ys, dys = _series(x, "x"), _series(y, "y"), _series(dy, "dy")
        _same_length(x=xs, y=ys, dy=dys)
        name = self.tmpfiles.stage([np.column_stack((xs, ys, dys))])
        return self.plotfile_xy_err(name, 1, 2, 3, title)

    @_when_valid
    def plot_xyz(self, x: Any, y: Any, z: Any, title: str = "") -> "Session":
        xs, ys, zs = _series(x, "x"), _series(y, "y"), _series(z, "z")
        _same_length(x=xs, y=ys, z=zs)
        name = self.tmpfiles.stage([np.column_stack((xs, ys, zs))])
        return self.plotfile_xyz(name, 1, 2, 3, title)

    @_when_valid
    def plot_3d_grid(self, x: Any, y: Any, z: Any, title: str = "") -> "Session":
        """Surface over the grid ``x × y``; ``z[i][j]`` is the value at ``(x[i], y[j])``."""
        xs, ys = _series(x, "x"), _series(y, "y")
        try:
            zs = np.asarray(z, dtype=float)
        except (TypeError, ValueError) as exc:
            raise LengthMismatch("Rows of z must all have the same length") from exc
        if zs.size == 0:
            raise EmptyInput("Input matrix z is empty. Cannot plot data.")
        if zs.shape != (xs.size, ys.size):
            raise LengthMismatch(
                "Dimensions of z must match x and y sizes",
                details={"z": list(zs.shape), "x": xs.size, "y": ys.size},
            )
        blocks = (np.column_stack((np.full(ys.size, xs[i]), ys, zs[i])) for i in range(xs.size))
        name = self.tmpfiles.stage(blocks, separate_blocks=True)
        return self.plotfile_xyz(name, 1, 2, 3, title)

    @_when_valid
    def plot_image(self, pixels: Union[bytes, bytearray, Sequence[int], np.ndarray], width: int, height: int,
                   title: str = "") -> "Session":
        """Greyscale raster, ``pixels`` row-major with one byte per pixel."""
        if width <= 0 or height <= 0:
            raise EmptyInput(f"Image of {width}x{height} pixels has nothing to plot")
        if isinstance(pixels, (bytes, bytearray, memoryview)):
            buf = np.frombuffer(pixels, dtype=np.uint8)
        else:
            buf = np.asarray(pixels).reshape(-1)
        if buf.size != width * height:
            raise LengthMismatch(
                f"Image buffer holds {buf.size} pixels, expected {width}x{height}",
                details={"size": int(buf.size), "width": width, "height": height},
            )
        rows, cols = np.divmod(np.arange(width * height), width)
        triples = np.column_stack((cols, rows, buf.astype(float)))
        name = self.tmpfiles.stage([triples])
        self._check_file(name)
        return self.send(commands.image_command(self.state(), name, title))

    # ------------------------------------------------------------------
    # Equations
    # ------------------------------------------------------------------

    def plot_equation(self, equation: str, title: str = "") -> "Session":
        return self.send(commands.equation_command(self.state(), equation, title, two_dim=True))

    def plot_equation3d(self, equation: str, title: str = "") -> "Session":
        return self.send(commands.equation_command(self.state(), equation, title, two_dim=False))

    def plot_slope(self, a: float, b: float, title: str = "") -> "Session":
        """Straight line ``y = a * x + b``."""
        equation = f"{commands.format_number(a)} * x + {commands.format_number(b)}"
        return self.plot_equation(equation, title)

    # ------------------------------------------------------------------
    # Replot and reset
    # ------------------------------------------------------------------

    def replot(self) -> "Session":
        if self.plot_count > 0:
            self.send(commands.replot_command())
        return self

    def reset_plot(self) -> "Session":
        self.plot_count = 0
        return self

    def reset_all(self) -> "Session":
        self.plot_count = 0
        self.send("reset")
        self.send("clear")
        self.style = PlotStyle.NONE
        self.smooth = SmoothStyle.NONE
        return self.show_on_screen()

    def remove_tmpfiles(self) -> None:
        self.tmpfiles.release_all()
