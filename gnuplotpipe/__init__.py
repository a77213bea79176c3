"""Drive gnuplot from Python through a pipe."""

from .contour import ContourConfig, ContourIncrement, ContourParam, ContourType
from .context import GnuplotContext, default_context
from .errors import (
    DataFileError,
    DisplayNotFound,
    EmptyInput,
    ExecutableNotFound,
    GnuplotError,
    InvalidArgument,
    IoFailure,
    LaunchFailure,
    LengthMismatch,
    PipeClosed,
    ResourceExhausted,
)
from .session import Session
from .styles import PlotStyle, SmoothStyle

__all__ = [
    "ContourConfig",
    "ContourIncrement",
    "ContourParam",
    "ContourType",
    "DataFileError",
    "DisplayNotFound",
    "EmptyInput",
    "ExecutableNotFound",
    "GnuplotContext",
    "GnuplotError",
    "InvalidArgument",
    "IoFailure",
    "LaunchFailure",
    "LengthMismatch",
    "PipeClosed",
    "PlotStyle",
    "ResourceExhausted",
    "Session",
    "SmoothStyle",
    "default_context",
]
