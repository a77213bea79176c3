"""Builders for the gnuplot command lines a session emits.

Everything here is pure: a builder receives a ``PlotState`` snapshot and
returns the text to send, leaving the session to write it and update its
counters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from gnuplotpipe.errors import InvalidArgument
from gnuplotpipe.styles import PlotStyle, SmoothStyle, smooth_to_token, style_to_token


END_OF_DATA = "e"
INLINE_SOURCE = "'-'"

PLOT_VERBS = ("plot", "splot", "replot")


@dataclass(frozen=True)
class PlotState:
    plot_count: int = 0
    two_dim: bool = False
    style: PlotStyle = PlotStyle.NONE
    smooth: SmoothStyle = SmoothStyle.NONE
    line_width: float = 0.0


def format_number(value: float) -> str:
    return f"{float(value):g}"


def format_datum(value: float) -> str:
    return repr(float(value))


def quote(text: str) -> str:
    escaped = str(text).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def command_family(command: str) -> str:
    """Leading verb of ``command`` when it is one of plot/splot/replot, else ``""``."""
    stripped = command.lstrip()
    if not stripped:
        return ""
    head = stripped.split(None, 1)[0].lower()
    return head if head in PLOT_VERBS else ""


def verb(state: PlotState, two_dim: bool) -> str:
    if state.plot_count > 0 and state.two_dim == two_dim:
        return "replot"
    return "plot" if two_dim else "splot"


def title_clause(title: Optional[str]) -> str:
    if not title:
        return "notitle"
    return f"title {quote(title)}"


def style_clause(state: PlotState, *, allow_smooth: bool = True, override: Optional[str] = None) -> str:
    if override:
        return f"with {override}"
    token = smooth_to_token(state.smooth) if allow_smooth else ""
    if token:
        return f"smooth {token}"
    return f"with {style_to_token(state.style)}"


def width_clause(state: PlotState) -> str:
    if state.line_width > 0:
        return f"lw {format_number(state.line_width)}"
    return ""


def using_clause(columns: Sequence[int]) -> str:
    if not columns:
        return ""
    if len(columns) > 3:
        raise InvalidArgument(f"At most three columns can be plotted, got {len(columns)}")
    picked = []
    for col in columns:
        if int(col) < 1:
            raise InvalidArgument(f"Column indices are 1-based, got {col}")
        picked.append(str(int(col)))
    return "using " + ":".join(picked)


def _join(parts: Iterable[str]) -> str:
    return " ".join(part for part in parts if part)


def file_command(
    state: PlotState,
    path: str,
    columns: Sequence[int],
    title: str = "",
    *,
    two_dim: bool = True,
    style_override: Optional[str] = None,
) -> str:
    # splot has no smoothing, 3D commands always carry a ``with`` clause
    return _join(
        [
            verb(state, two_dim),
            quote(path),
            using_clause(columns),
            title_clause(title),
            style_clause(state, allow_smooth=two_dim, override=style_override),
            width_clause(state),
        ]
    )


def inline_command(state: PlotState, series: Sequence[Sequence[float]], titles: Sequence[str] = ()) -> str:
    """One 2D command with a ``'-'`` source per series followed by the data blocks."""
    clauses = []
    for k in range(len(series)):
        title = titles[k] if k < len(titles) else ""
        clauses.append(
            _join(
                [
                    INLINE_SOURCE,
                    "using 1",
                    title_clause(title),
                    style_clause(state),
                    width_clause(state),
                ]
            )
        )
    lines = [f"{verb(state, True)} " + ", ".join(clauses)]
    for values in series:
        lines.extend(format_datum(v) for v in values)
        lines.append(END_OF_DATA)
    return "\n".join(lines)


def equation_command(state: PlotState, equation: str, title: str = "", *, two_dim: bool = True) -> str:
    if not title:
        title = f"f(x) = {equation}" if two_dim else f"f(x,y) = {equation}"
    return _join(
        [
            verb(state, two_dim),
            equation,
            title_clause(title),
            f"with {style_to_token(state.style)}",
            width_clause(state),
        ]
    )


def image_command(state: PlotState, path: str, title: str = "") -> str:
    return _join([verb(state, True), quote(path), "using 1:2:3", title_clause(title), "with image"])


def replot_command() -> str:
    return "replot"
