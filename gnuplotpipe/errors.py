from __future__ import annotations

from typing import Any, Dict, Optional


EXIT_SUCCESS = 0
EXIT_USAGE = 2
EXIT_DATA = 3
EXIT_INPUT = 4
EXIT_GNUPLOT = 10


class GnuplotError(Exception):
    """Base error for everything the session reports.

    ``code`` is a stable identifier the CLI maps to an exit status.
    ``recoverable`` is False for failures that leave the session unusable.
    """

    code = "GNUPLOT_ERROR"
    recoverable = True

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        if code:
            self.code = code
        self.message = message
        self.hint = hint
        self.details = details or {}


class ExecutableNotFound(GnuplotError):
    code = "EXECUTABLE_NOT_FOUND"
    recoverable = False


class LaunchFailure(GnuplotError):
    code = "LAUNCH_FAILURE"
    recoverable = False


class DisplayNotFound(LaunchFailure):
    code = "DISPLAY_NOT_FOUND"


class PipeClosed(GnuplotError):
    code = "PIPE_CLOSED"
    recoverable = False


class ResourceExhausted(GnuplotError):
    code = "TMPFILE_QUOTA"


class IoFailure(GnuplotError):
    code = "IO_FAILURE"


class DataFileError(GnuplotError):
    code = "FILE_NOT_FOUND"


class EmptyInput(GnuplotError):
    code = "EMPTY_INPUT"


class LengthMismatch(GnuplotError):
    code = "LENGTH_MISMATCH"


class InvalidArgument(GnuplotError):
    code = "INVALID_ARGUMENT"


def exit_code_for_error(code: Optional[str]) -> int:
    if not code:
        return EXIT_GNUPLOT
    if code in {"FILE_NOT_FOUND", "FILE_UNREADABLE", "IO_FAILURE", "TMPFILE_QUOTA"}:
        return EXIT_DATA
    if code in {"EMPTY_INPUT", "LENGTH_MISMATCH", "INVALID_ARGUMENT"}:
        return EXIT_INPUT
    if code in {"EXECUTABLE_NOT_FOUND", "LAUNCH_FAILURE", "DISPLAY_NOT_FOUND", "PIPE_CLOSED"}:
        return EXIT_GNUPLOT
    return EXIT_GNUPLOT


__all__ = [
    "EXIT_DATA",
    "EXIT_GNUPLOT",
    "EXIT_INPUT",
    "EXIT_SUCCESS",
    "EXIT_USAGE",
    "DataFileError",
    "DisplayNotFound",
    "EmptyInput",
    "ExecutableNotFound",
    "GnuplotError",
    "InvalidArgument",
    "IoFailure",
    "LaunchFailure",
    "LengthMismatch",
    "PipeClosed",
    "ResourceExhausted",
    "exit_code_for_error",
]
