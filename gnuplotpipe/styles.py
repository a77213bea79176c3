from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Union

from gnuplotpipe.errors import InvalidArgument


class PlotStyle(str, Enum):
    NONE = "none"
    LINES = "lines"
    POINTS = "points"
    LINES_POINTS = "linespoints"
    IMPULSES = "impulses"
    DOTS = "dots"
    STEPS = "steps"
    FSTEPS = "fsteps"
    HISTEPS = "histeps"
    BOXES = "boxes"
    FILLED_CURVES = "filledcurves"
    HISTOGRAMS = "histograms"


class SmoothStyle(str, Enum):
    NONE = "none"
    UNIQUE = "unique"
    FREQUENCY = "frequency"
    CSPLINES = "csplines"
    ACSPLINES = "acsplines"
    BEZIER = "bezier"
    SBEZIER = "sbezier"


DEFAULT_STYLE_TOKEN = "points"

_STYLE_TOKENS: Dict[PlotStyle, str] = {
    PlotStyle.LINES: "lines",
    PlotStyle.POINTS: "points",
    PlotStyle.LINES_POINTS: "linespoints",
    PlotStyle.IMPULSES: "impulses",
    PlotStyle.DOTS: "dots",
    PlotStyle.STEPS: "steps",
    PlotStyle.FSTEPS: "fsteps",
    PlotStyle.HISTEPS: "histeps",
    PlotStyle.BOXES: "boxes",
    PlotStyle.FILLED_CURVES: "filledcurves",
    PlotStyle.HISTOGRAMS: "histograms",
}

_SMOOTH_TOKENS: Dict[SmoothStyle, str] = {
    SmoothStyle.UNIQUE: "unique",
    SmoothStyle.FREQUENCY: "frequency",
    SmoothStyle.CSPLINES: "csplines",
    SmoothStyle.ACSPLINES: "acsplines",
    SmoothStyle.BEZIER: "bezier",
    SmoothStyle.SBEZIER: "sbezier",
}

# Spellings accepted from users in addition to the gnuplot tokens.
_STYLE_ALIASES = {
    "lines_points": PlotStyle.LINES_POINTS,
    "filled_curves": PlotStyle.FILLED_CURVES,
}


def style_to_token(style: Any) -> str:
    """Gnuplot ``with`` token for ``style``; anything unmapped falls back to points."""
    try:
        return _STYLE_TOKENS.get(style, DEFAULT_STYLE_TOKEN)
    except TypeError:
        return DEFAULT_STYLE_TOKEN


def smooth_to_token(style: Any) -> str:
    """Gnuplot ``smooth`` token, or ``""`` meaning the clause is omitted."""
    try:
        return _SMOOTH_TOKENS.get(style, "")
    except TypeError:
        return ""


def coerce_style(value: Union[PlotStyle, str, None]) -> PlotStyle:
    if value is None:
        return PlotStyle.NONE
    if isinstance(value, PlotStyle):
        return value
    key = str(value).strip().lower()
    if key in _STYLE_ALIASES:
        return _STYLE_ALIASES[key]
    try:
        return PlotStyle(key)
    except ValueError as exc:
        choices = ", ".join(s.value for s in PlotStyle)
        raise InvalidArgument(f"Unknown plot style '{value}'", hint=f"Choose one of: {choices}") from exc


def coerce_smooth(value: Union[SmoothStyle, str, None]) -> SmoothStyle:
    if value is None:
        return SmoothStyle.NONE
    if isinstance(value, SmoothStyle):
        return value
    key = str(value).strip().lower()
    try:
        return SmoothStyle(key)
    except ValueError as exc:
        choices = ", ".join(s.value for s in SmoothStyle)
        raise InvalidArgument(f"Unknown smoothing style '{value}'", hint=f"Choose one of: {choices}") from exc
