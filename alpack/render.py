from __future__ import annotations

import re
from typing import List, Sequence, Tuple

from .errors import AlpackError, RootfsMissingError

_ANSI = re.compile(r"\x1b\[[0-9;]*m")


def _visible_len(text: str) -> int:
    return len(_ANSI.sub("", text))


def _pad(text: str, width: int) -> str:
    return text + " " * (width - _visible_len(text))


def separator_line() -> str:
    return "═" * 60


def cmd_box(command: str, *, indent: int = 0, width: int = 50) -> str:
    width = max(width, len(command) + 4)
    r = " " * indent
    top = "╔" + "═" * (width - 2) + "╗"
    middle = "║ " + command + " " * (width - 3 - len(command)) + "║"
    bottom = "╚" + "═" * (width - 2) + "╝"
    return f"{r}{top}\n{r}{middle}\n{r}{bottom}"


def render_table(rows: Sequence[Tuple[str, str]]) -> str:
    key_width = max((len(k) for k, _ in rows), default=0)
    val_width = max((_visible_len(v) for _, v in rows), default=0)

    lines: List[str] = [f"╔═{'═' * key_width}═══╦═{'═' * val_width}═══╗"]
    for k, v in rows:
        lines.append(f"║ {k:<{key_width}}   ║ {_pad(v, val_width)}   ║")
    lines.append(f"╚═{'═' * key_width}═══╩═{'═' * val_width}═══╝")
    return "\n".join(lines) + "\n"


def finish_message(prog: str) -> str:
    s = separator_line()
    box = cmd_box(f"$ {prog} run", indent=2)
    return f"{s}\n  Installation completed successfully!\n\n  To start the environment, run:\n{box}\n{s}"


def render_error(exc: AlpackError, prog: str) -> str:
    """Turn a structured error into the single message shown on stderr."""

    if isinstance(exc, RootfsMissingError):
        s = separator_line()
        box = cmd_box(f"$ {prog} setup", indent=2)
        return (
            f"{s}\n  Error: {exc.message}\n\n"
            f"  Expected location:\n    -> {exc.path}\n\n"
            f"  Please run the following command to set it up:\n{box}\n{s}"
        )

    text = f"{prog}: {exc.kind} error: {exc.message}"
    if exc.hint:
        text += f"\n{exc.hint}"
    return text
