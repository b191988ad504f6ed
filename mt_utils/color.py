"""ANSI color helpers."""

from typing import Literal, TextIO

from mt_utils.config import Environment

ColorName = Literal["default", "red", "green", "yellow", "blue", "gray"]

COLOR: dict[str, int] = {"red": 31, "green": 32, "yellow": 33, "blue": 34, "gray": 37}
BGCOLOR: dict[str, int] = {"red": 41, "green": 42, "yellow": 43, "blue": 44, "gray": 47}


def colorize(
    text: str, color: ColorName = "default", *, bgcolor: ColorName | None = None
) -> str:
    """Wrap text in an ANSI escape sequence."""
    codes = [COLOR.get(color, 0)]
    if bgcolor in BGCOLOR:
        codes.append(BGCOLOR[bgcolor])
    code = ";".join(str(c) for c in codes)
    return f"\033[{code}m{text}\033[0m"


def color_enabled(*, no_color: bool = False, stream: TextIO | None = None) -> bool:
    """Whether output should be colored.

    Color is off when requested via ``--no-color`` or ``NO_COLOR``; when a
    stream is given it must also be attached to a terminal.
    """
    if no_color or Environment.from_environ().no_color:
        return False
    if stream is None:
        return True
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())
