"""gnuplotpipe CLI: a slash-command REPL on top of one gnuplot session.

Implements:
- Slash commands (``/plot``, ``/range``, ``/contour`` ...) mapped onto ``Session`` calls.
- Raw passthrough: any line not starting with ``/`` is sent to gnuplot verbatim.
- One-shot mode: positional slash commands are executed and the process exits.
"""

from __future__ import annotations

import argparse
import sys
from typing import Iterable, List, Optional

try:  # Optional readline support for interactive editing
    import readline  # type: ignore
except ImportError:  # pragma: no cover - Windows fallback
    try:
        import pyreadline3 as readline  # type: ignore
    except ImportError:  # pragma: no cover - readline unavailable
        readline = None  # type: ignore

from gnuplotpipe.config import GnuplotConfig
from gnuplotpipe.context import GnuplotContext
from gnuplotpipe.errors import (
    EXIT_SUCCESS,
    EXIT_USAGE,
    GnuplotError,
    exit_code_for_error,
)
from gnuplotpipe.session import Session
from gnuplotpipe.slash import HELP_ENTRIES, ParsedCommand, parse_slash_command, split_commands


def report_error(exc: GnuplotError) -> None:
    print(f"❌ {exc.code}: {exc.message}")
    if exc.hint:
        print(f"   Hint: {exc.hint}")


def print_help(topic: Optional[str] = None) -> None:
    if topic:
        key = topic.lstrip("/").lower()
        entry = HELP_ENTRIES.get(key)
        if entry:
            print(entry)
        else:
            print(f"❓ Unknown command '{topic}'.")
            print("   Available: " + ", ".join(sorted(HELP_ENTRIES.keys())))
        return
    print("Available commands (any other line is sent to gnuplot as is):")
    for key in sorted(HELP_ENTRIES.keys()):
        print(f"  - {HELP_ENTRIES[key]}")


class GnuplotCLIApp:
    def __init__(self, session: Session, *, persist_tmp: bool = False) -> None:
        self.session = session
        self.persist_tmp = persist_tmp
        self._readline = readline

    # ------------------------------------------------------------------
    # Command execution
    # ------------------------------------------------------------------

    def execute_line(self, line: str) -> int:
        command = line.strip()
        if not command:
            return EXIT_SUCCESS
        if command.startswith("/"):
            return self.execute_slash_command(command)
        try:
            self.session.send(command)
        except GnuplotError as exc:
            report_error(exc)
            return exit_code_for_error(exc.code)
        return EXIT_SUCCESS

    def execute_slash_command(self, command: str) -> int:
        try:
            parsed = parse_slash_command(command)
        except ValueError as exc:
            print(f"❌ {exc}")
            return EXIT_USAGE
        try:
            self.apply(parsed)
        except GnuplotError as exc:
            report_error(exc)
            return exit_code_for_error(exc.code)
        except ValueError as exc:
            print(f"❌ {exc}")
            return EXIT_USAGE
        return EXIT_SUCCESS

    def apply(self, parsed: ParsedCommand) -> None:
        session = self.session
        payload = parsed.request_payload
        kind = parsed.request_type

        if kind == "help":
            print_help(payload.get("topic"))
        elif kind in {"plot.file", "splot.file"}:
            self._plot_file(payload)
        elif kind == "plot.eq":
            session.plot_equation(payload["equation"], payload.get("title", ""))
        elif kind == "splot.eq":
            session.plot_equation3d(payload["equation"], payload.get("title", ""))
        elif kind == "style":
            session.set_style(payload["name"])
        elif kind == "smooth":
            session.set_smooth(payload["name"])
        elif kind == "lw":
            session.set_line_width(payload["width"])
        elif kind == "range":
            setter = {
                "x": session.set_xrange,
                "y": session.set_yrange,
                "z": session.set_zrange,
                "cb": session.set_cbrange,
            }[payload["axis"]]
            setter(payload["lo"], payload["hi"])
        elif kind == "label":
            setter = {"x": session.set_xlabel, "y": session.set_ylabel, "z": session.set_zlabel}[payload["axis"]]
            setter(payload["text"])
        elif kind == "title":
            session.set_title(payload["text"])
        elif kind == "grid":
            if payload["on"]:
                session.set_grid()
            else:
                session.unset_grid()
        elif kind == "contour":
            self._contour(payload)
        elif kind == "save":
            session.save_to_figure(payload["filename"], payload["terminal"])
        elif kind == "show":
            session.show_on_screen()
        elif kind == "replot":
            session.replot()
        elif kind == "reset":
            if payload["all"]:
                session.reset_all()
            else:
                session.reset_plot()
        else:
            raise ValueError(f"Unsupported command '{kind}'")

    def _plot_file(self, payload: dict) -> None:
        session = self.session
        path = payload["path"]
        title = payload.get("title", "")
        if not payload["twoDim"]:
            columns = payload.get("columns", [1, 2, 3])
            if len(columns) != 3:
                raise ValueError("/splot file needs three columns, e.g. --cols 1:2:3")
            session.plotfile_xyz(path, *columns, title=title)
            return
        columns = payload.get("columns", [1, 2, 3] if payload.get("errorbars") else [1, 2])
        if payload.get("errorbars"):
            if len(columns) != 3:
                raise ValueError("--errorbars needs three columns, e.g. --cols 1:2:3")
            session.plotfile_xy_err(path, *columns, title=title)
        elif len(columns) == 1:
            session.plotfile_x(path, columns[0], title=title)
        elif len(columns) == 2:
            session.plotfile_xy(path, *columns, title=title)
        else:
            raise ValueError("/plot file takes one or two columns (three with --errorbars)")

    def _contour(self, payload: dict) -> None:
        session = self.session
        session.set_contour_type(payload["type"])
        if "levels" in payload:
            session.set_contour_param("levels").set_contour_levels(payload["levels"])
        elif "increment" in payload:
            session.set_contour_param("increment").set_contour_increment(*payload["increment"])
        elif "discrete" in payload:
            session.set_contour_param("discrete").set_contour_discrete_levels(payload["discrete"])
        session.apply_contour_settings()

    def run_single_commands(self, commands: Iterable[str]) -> int:
        exit_code = EXIT_SUCCESS
        for command in commands:
            code = self.execute_line(command)
            if code != EXIT_SUCCESS:
                exit_code = code
        return exit_code

    # ------------------------------------------------------------------
    # Interactive loop
    # ------------------------------------------------------------------

    def run_repl(self) -> None:
        print("🟡 gnuplot interactive mode. Type '/help' for commands, 'exit' to quit.")
        if self._readline:
            self._configure_readline()
        while True:
            try:
                line = input("gnuplot> ")
            except EOFError:
                break
            except KeyboardInterrupt:
                print()
                break
            if not line.strip():
                continue
            if self._readline:
                try:
                    self._readline.add_history(line)
                except Exception:  # pragma: no cover - readline quirk
                    pass
            if line.strip().lower() in {"exit", "quit", ":q"}:
                break
            for command in split_commands(line):
                exit_code = self.execute_line(command)
                if exit_code != EXIT_SUCCESS:
                    print(f"(exit code {exit_code})")

    def _configure_readline(self) -> None:
        try:
            self._readline.parse_and_bind("set editing-mode emacs")
        except Exception:  # pragma: no cover - readline/pyreadline differences
            pass

    def shutdown(self) -> None:
        if not self.persist_tmp:
            try:
                self.session.remove_tmpfiles()
            except GnuplotError as exc:
                report_error(exc)
        self.session.close()


def build_context(args: argparse.Namespace) -> GnuplotContext:
    context = GnuplotContext(config=GnuplotConfig())
    if args.gnuplot_path and not context.set_gnuplot_path(args.gnuplot_path):
        print(f"⚠️  No gnuplot executable in '{args.gnuplot_path}', falling back to PATH")
    if args.terminal:
        context.set_terminal_std(args.terminal)
    return context


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Drive gnuplot through a pipe with slash commands")
    parser.add_argument("command", nargs="*", help="Optional slash command(s) to run")
    parser.add_argument("--gnuplot-path", help="Directory holding the gnuplot executable (overrides GNUPLOT_PATH)")
    parser.add_argument("--terminal", help="Screen terminal for gnuplot (overrides GNUPLOT_TERMINAL)")
    parser.add_argument(
        "--persist-tmp",
        action="store_true",
        help="Keep temporary data files on exit",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    commands: List[str] = []
    if args.command:
        commands = split_commands(" ".join(args.command))

    try:
        session = Session(context=build_context(args))
    except GnuplotError as exc:
        report_error(exc)
        sys.exit(exit_code_for_error(exc.code))

    app = GnuplotCLIApp(session, persist_tmp=args.persist_tmp)
    try:
        if commands:
            exit_code = app.run_single_commands(commands)
        else:
            app.run_repl()
            exit_code = EXIT_SUCCESS
    except KeyboardInterrupt:
        exit_code = EXIT_SUCCESS
    finally:
        app.shutdown()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
