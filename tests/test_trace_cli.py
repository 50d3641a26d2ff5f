"""Tests for the context trace tool and the codescope commander."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from codescope import cli
from codescope.context.events import Enter, Exit
from codescope.context.definitions import ContextKind
from codescope.shared.console import ConsoleManager
from codescope.trace import context_trace

SOURCE = "class Foo:\n\n    def bar(self):\n        pass\n\n"


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "sample.py"
    path.write_text(SOURCE, encoding="utf-8")
    return path


def test_format_event_indents_by_depth() -> None:
    """Trace lines are indented by nesting depth and left uncoloured on request."""
    console = ConsoleManager(level=20, no_color=True)
    assert (
        console.format_event(Enter(ContextKind.METHOD, "def bar", 2, depth=2))
        == "        ENTER -> [METHOD] def bar line:2"
    )
    assert console.format_event(Exit(ContextKind.CLASS, "class Foo", 4)) == (
        "EXIT -> [CLASS] class Foo line:4"
    )


def test_trace_prints_event_stream(
    source_file: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """The trace tool prints one line per event and exits cleanly."""
    monkeypatch.setattr(sys, "argv", ["codescope-trace", str(source_file), "--no-color", "--tree"])
    with pytest.raises(SystemExit) as info:
        context_trace.main()
    assert info.value.code == 0

    out = capsys.readouterr().out.splitlines()
    events = [line.strip() for line in out if "->" in line]
    assert events == [
        "ENTER -> [CLASS] class Foo line:0",
        "ENTER -> [METHOD] def bar line:2",
        "EXIT -> [METHOD] def bar line:4",
        "EXIT -> [CLASS] class Foo line:4",
    ]
    assert "class Foo [class] lines 0-4" in out
    assert "    def bar [method] lines 2-4" in out


def test_trace_missing_file_is_usage_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """An unreadable file exits with 1."""
    monkeypatch.setattr(sys, "argv", ["codescope-trace", str(tmp_path / "absent.py"), "-q"])
    with pytest.raises(SystemExit) as info:
        context_trace.main()
    assert info.value.code == 1


def test_commander_dispatches_trace(
    source_file: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """'codescope run trace' forwards the remaining arguments to the tool."""
    monkeypatch.setattr(sys, "argv", ["codescope", "run", "trace", str(source_file), "--no-color"])
    cli.main()
    assert "ENTER -> [CLASS] class Foo line:0" in capsys.readouterr().out


def test_commander_propagates_failures(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Non-zero tool exits surface from the commander."""
    monkeypatch.setattr(
        sys, "argv", ["codescope", "run", "inventory", "--root", str(tmp_path / "absent"), "-q"]
    )
    with pytest.raises(SystemExit) as info:
        cli.main()
    assert info.value.code == 1
