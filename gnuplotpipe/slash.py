from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


HELP_ENTRIES = {
    "plot": "/plot file <path> [--cols 1:2] [--title T] [--errorbars] | /plot eq <expr> [--title T] - 2D plot of a data file or an equation",
    "splot": "/splot file <path> [--cols 1:2:3] [--title T] | /splot eq <expr> [--title T] - 3D plot of a data file or an equation",
    "style": "/style <lines|points|linespoints|...> - plotting style for later plots",
    "smooth": "/smooth <none|csplines|bezier|...> - smoothing for later 2D plots",
    "lw": "/lw <width> - line width for later plots (0 to unset)",
    "range": "/range <x|y|z|cb> <lo>:<hi> - fix an axis range",
    "label": "/label <x|y|z> <text> - set an axis label",
    "title": "/title [text] - set or clear the plot title",
    "grid": "/grid on|off - toggle the grid",
    "contour": "/contour <none|base|surface|both> [--levels N | --increment a,b,c | --discrete a,b,...] - configure and apply contours",
    "save": "/save <file> [--terminal T] - send subsequent output to a file",
    "show": "/show - send output back to the screen terminal",
    "replot": "/replot - repeat the last plot",
    "reset": "/reset [all] - start a fresh figure (all: also reset gnuplot settings)",
    "help": "/help [command] - show available commands and usage",
}

AXES = {"x", "y", "z", "cb"}


@dataclass
class ParsedCommand:
    request_type: str
    request_payload: Dict[str, Any]
    description: str = ""


def split_commands(raw: str) -> List[str]:
    commands: List[str] = []
    buf: List[str] = []
    quote: Optional[str] = None
    escape = False
    for ch in raw:
        if escape:
            buf.append("\\" + ch)
            escape = False
            continue
        if ch == "\\":
            escape = True
            continue
        if ch in {'"', "'"}:
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
            buf.append(ch)
            continue
        if ch == ";" and quote is None:
            command = "".join(buf).strip()
            if command:
                commands.append(command)
            buf.clear()
            continue
        buf.append(ch)
    if escape:
        buf.append("\\")
    if buf:
        command = "".join(buf).strip()
        if command:
            commands.append(command)
    return commands


def parse_columns(value: str) -> List[int]:
    parts = [piece.strip() for piece in value.split(":") if piece.strip()]
    if not 1 <= len(parts) <= 3:
        raise ValueError("--cols expects one to three column numbers, e.g. 1:2")
    try:
        return [int(piece) for piece in parts]
    except ValueError as exc:
        raise ValueError("--cols values must be integers") from exc


def parse_range(value: str) -> Tuple[float, float]:
    if ":" not in value:
        raise ValueError("range must look like LO:HI")
    lo, hi = value.split(":", 1)
    return float(lo), float(hi)


def parse_floats(value: str, name: str) -> List[float]:
    try:
        return [float(piece) for piece in value.split(",") if piece.strip()]
    except ValueError as exc:
        raise ValueError(f"--{name} values must be numeric") from exc


def parse_slash_command(raw: str) -> ParsedCommand:
    tokens = shlex.split(raw)
    if not tokens or not tokens[0].startswith("/"):
        raise ValueError("Slash commands must start with '/'")
    sub = tokens[0][1:]
    if not sub:
        raise ValueError("Missing command after '/'")
    idx = 1

    def take() -> str:
        nonlocal idx
        if idx >= len(tokens):
            raise ValueError("Missing argument")
        token = tokens[idx]
        idx += 1
        return token

    def take_optional(default: Optional[str] = None) -> Optional[str]:
        nonlocal idx
        if idx >= len(tokens):
            return default
        token = tokens[idx]
        idx += 1
        return token

    def no_more() -> None:
        if idx < len(tokens):
            raise ValueError(f"Unexpected token '{tokens[idx]}'")

    options: Dict[str, Any] = {}

    def parse_options() -> None:
        nonlocal idx
        while idx < len(tokens):
            token = tokens[idx]
            if not token.startswith("--"):
                raise ValueError(f"Unexpected token '{token}'")
            idx += 1
            name = token[2:]
            if name in {"cols", "title", "terminal", "levels", "increment", "discrete"}:
                value = take()
                if name == "cols":
                    options["columns"] = parse_columns(value)
                elif name == "title":
                    options["title"] = value
                elif name == "terminal":
                    options["terminal"] = value
                elif name == "levels":
                    options["levels"] = int(value)
                elif name == "increment":
                    values = parse_floats(value, name)
                    if len(values) != 3:
                        raise ValueError("--increment expects start,step,end")
                    options["increment"] = values
                elif name == "discrete":
                    options["discrete"] = parse_floats(value, name)
            elif name == "errorbars":
                options["errorbars"] = True
            else:
                raise ValueError(f"Unknown option --{name}")

    if sub == "help":
        topic = take_optional()
        no_more()
        return ParsedCommand("help", {"topic": topic}, description="Show help")

    if sub in {"plot", "splot"}:
        kind = take()
        if kind not in {"file", "eq"}:
            raise ValueError(f"/{sub} expects 'file' or 'eq', got '{kind}'")
        target = take()
        parse_options()
        if sub == "splot" and options.get("errorbars"):
            raise ValueError("--errorbars is only available for /plot")
        payload: Dict[str, Any] = {"twoDim": sub == "plot"}
        if kind == "file":
            payload["path"] = target
        else:
            payload["equation"] = target
        payload.update(options)
        description = f"{sub} {kind} {target}"
        return ParsedCommand(f"{sub}.{kind}", payload, description=description)

    if sub in {"style", "smooth"}:
        name = take()
        no_more()
        return ParsedCommand(sub, {"name": name}, description=f"Set {sub} {name}")

    if sub == "lw":
        width = float(take())
        no_more()
        return ParsedCommand("lw", {"width": width}, description=f"Line width {width:g}")

    if sub == "range":
        axis = take().lower()
        if axis not in AXES:
            raise ValueError(f"Unknown axis '{axis}'")
        lo, hi = parse_range(take())
        no_more()
        return ParsedCommand("range", {"axis": axis, "lo": lo, "hi": hi}, description=f"{axis}range [{lo:g}:{hi:g}]")

    if sub == "label":
        axis = take().lower()
        if axis not in {"x", "y", "z"}:
            raise ValueError(f"Unknown axis '{axis}'")
        text = take()
        no_more()
        return ParsedCommand("label", {"axis": axis, "text": text}, description=f"{axis}label {text}")

    if sub == "title":
        text = take_optional("") or ""
        no_more()
        return ParsedCommand("title", {"text": text}, description="Set title")

    if sub == "grid":
        state = take().lower()
        if state not in {"on", "off"}:
            raise ValueError("/grid expects 'on' or 'off'")
        no_more()
        return ParsedCommand("grid", {"on": state == "on"}, description=f"Grid {state}")

    if sub == "contour":
        contour_type = take().lower()
        parse_options()
        chosen = [key for key in ("levels", "increment", "discrete") if key in options]
        if len(chosen) > 1:
            raise ValueError("Use only one of --levels, --increment, --discrete")
        payload = {"type": contour_type}
        payload.update({key: options[key] for key in chosen})
        return ParsedCommand("contour", payload, description=f"Contour {contour_type}")

    if sub == "save":
        filename = take()
        parse_options()
        payload = {"filename": filename, "terminal": options.get("terminal", "ps")}
        return ParsedCommand("save", payload, description=f"Save to {filename}")

    if sub in {"show", "replot"}:
        no_more()
        return ParsedCommand(sub, {}, description=sub.capitalize())

    if sub == "reset":
        scope = take_optional("plot")
        if scope not in {"plot", "all"}:
            raise ValueError("/reset expects nothing or 'all'")
        no_more()
        return ParsedCommand("reset", {"all": scope == "all"}, description=f"Reset {scope}")

    raise ValueError(f"Unsupported command '/{sub}'")


__all__ = [
    "HELP_ENTRIES",
    "ParsedCommand",
    "parse_slash_command",
    "split_commands",
]
