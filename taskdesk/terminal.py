"""Keyboard and screen helpers for the interactive console."""

from __future__ import annotations

import os
import sys
from typing import Optional, TextIO

try:
    import msvcrt
except ImportError:
    msvcrt = None

try:
    import termios
except ImportError:
    termios = None

ENTER = "\r"
ESCAPE = "\x1b"
BACKSPACE = "\b"

_CLEAR = "\033[H\033[J"
_KEY_ALIASES = {"\n": ENTER, "\x7f": BACKSPACE}


def _normalize(ch: str) -> str:
    return _KEY_ALIASES.get(ch, ch)


def _read_raw_posix(stream: TextIO) -> str:
    fd = stream.fileno()
    old = termios.tcgetattr(fd)
    new = termios.tcgetattr(fd)
    new[3] &= ~(termios.ICANON | termios.ECHO)
    termios.tcsetattr(fd, termios.TCSANOW, new)
    try:
        data = os.read(fd, 1)
    finally:
        termios.tcsetattr(fd, termios.TCSANOW, old)
    return data.decode("utf-8", errors="replace")


def getch() -> str:
    """Read one key without echo and without waiting for Enter.

    Enter is reported as ``"\\r"`` and Backspace as ``"\\b"`` on every
    platform. Raises EOFError when input is exhausted.
    """
    stream = sys.stdin
    if not stream.isatty():
        ch = stream.read(1)
    elif msvcrt is not None:
        ch = msvcrt.getwch()
    elif termios is not None:
        ch = _read_raw_posix(stream)
    else:
        ch = stream.read(1)
    if ch == "":
        raise EOFError("no more input")
    return _normalize(ch)


def clear_screen(out: Optional[TextIO] = None) -> None:
    """Clear the terminal and move the cursor to the top-left corner."""
    out = out or sys.stdout
    out.write(_CLEAR)
    out.flush()


def read_line(prompt: str = "", out: Optional[TextIO] = None) -> str:
    """Show a prompt and return one line of input without its line ending."""
    out = out or sys.stdout
    out.write(prompt)
    out.flush()
    line = sys.stdin.readline()
    if line == "":
        raise EOFError("no more input")
    return line.rstrip("\r\n")