from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from .definitions import ContextKind


@dataclass(slots=True, frozen=True)
class ContextEvent:
    """A scope transition observed during a scan."""

    kind: ContextKind
    name: str
    line: int
    # Nesting depth at the time of the event; informational only.
    depth: int = field(default=0, compare=False)

    @property
    def label(self) -> str:
        return type(self).__name__.upper()


@dataclass(slots=True, frozen=True)
class Enter(ContextEvent):
    pass


@dataclass(slots=True, frozen=True)
class Exit(ContextEvent):
    pass


EventSink = Callable[[ContextEvent], None]


class EventRecorder:
    """Sink that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list[ContextEvent] = []

    def __call__(self, event: ContextEvent) -> None:
        self.events.append(event)

    def __len__(self) -> int:
        return len(self.events)

    @property
    def entries(self) -> list[Enter]:
        return [e for e in self.events if isinstance(e, Enter)]

    @property
    def exits(self) -> list[Exit]:
        return [e for e in self.events if isinstance(e, Exit)]
