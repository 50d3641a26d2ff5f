from __future__ import annotations

from dataclasses import dataclass

from .definitions import ContextKind


class ContextEngineError(Exception):
    """Base class for errors raised by the context engine."""


class PatternConfigError(ContextEngineError, ValueError):
    """
    A detection rule set could not be built.

    Raised once, when a PatternRegistry is constructed; never during a scan.
    """


class NoCaptureMatch(ContextEngineError):
    """A classified definition line did not yield a capturable name."""

    def __init__(self, kind: ContextKind, line_no: int, line: str) -> None:
        self.kind = kind
        self.line_no = line_no
        self.line = line
        super().__init__(
            f"Line {line_no}: no {kind.value} name could be captured from {line!r}"
        )


# --- Diagnostics ---


@dataclass(slots=True, frozen=True)
class UnclosedContext:
    """A context still open at end of scan, force-closed by the final unwind."""

    name: str
    kind: ContextKind
    start: int

    def __str__(self) -> str:
        return f"unclosed {self.kind.value} '{self.name}' opened at line {self.start}"


@dataclass(slots=True, frozen=True)
class SkippedContext:
    """An entry that was dropped because its name could not be captured."""

    kind: ContextKind
    line: int

    def __str__(self) -> str:
        return f"skipped {self.kind.value} entry at line {self.line}"


Diagnostic = UnclosedContext | SkippedContext
