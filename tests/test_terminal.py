import io
import sys

import pytest

from taskdesk import terminal


def test_clear_screen_writes_home_and_erase():
    out = io.StringIO()
    terminal.clear_screen(out)
    assert out.getvalue() == "\033[H\033[J"


def test_read_line_strips_newline_and_shows_prompt(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO("hello world\nnext\n"))
    out = io.StringIO()
    assert terminal.read_line("Name: ", out) == "hello world"
    assert out.getvalue() == "Name: "
    assert terminal.read_line("", out) == "next"


def test_read_line_strips_carriage_return(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO("abc\r\n"))
    assert terminal.read_line("", io.StringIO()) == "abc"


def test_read_line_raises_at_end_of_input(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))
    with pytest.raises(EOFError):
        terminal.read_line("> ", io.StringIO())


def test_getch_reads_single_keys(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO("wq"))
    assert terminal.getch() == "w"
    assert terminal.getch() == "q"


def test_getch_normalizes_enter_and_backspace(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO("\n\x7f\r"))
    assert terminal.getch() == terminal.ENTER
    assert terminal.getch() == terminal.BACKSPACE
    assert terminal.getch() == terminal.ENTER


def test_getch_raises_at_end_of_input(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))
    with pytest.raises(EOFError):
        terminal.getch()