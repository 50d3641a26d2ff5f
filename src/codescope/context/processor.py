from __future__ import annotations

import logging
from typing import Iterable

from .definitions import PLACEHOLDER_NAME, ContextKind, ContextNode, ContextTree
from .errors import Diagnostic, NoCaptureMatch, SkippedContext, UnclosedContext
from .events import ContextEvent, Enter, EventSink, Exit
from .patterns import DEFAULT_REGISTRY, PatternRegistry
from .rules import RuleSet
from .state import INDENT_UNIT, ContextCursor, IndentTracker, indent_level

logger = logging.getLogger(__name__)


def is_blank(line: str) -> bool:
    return not line.strip()


class ContextProcessor:
    """
    Scans module source line by line and rebuilds its definition tree.

    Each visited line goes through three steps: entry (classify the line and
    open a new context), extraction (docstring text), and exit (decide from
    the line and a look-ahead whether the active context ends here).
    """

    def __init__(
        self,
        lines: Iterable[str],
        *,
        patterns: PatternRegistry | None = None,
        rules: RuleSet | None = None,
        sink: EventSink | None = None,
        visit_last_line: bool = False,
        skip_corrupt: bool = False,
    ) -> None:
        self.lines: list[str] = list(lines)
        self.patterns = patterns or DEFAULT_REGISTRY
        self.rules = rules or RuleSet()
        self._sink = sink
        self._visit_last_line = visit_last_line
        self._skip_corrupt = skip_corrupt
        self._reset()

    @property
    def max_height(self) -> int:
        return len(self.lines)

    @property
    def scan_bound(self) -> int:
        """Number of lines visited as the current line."""
        if self._visit_last_line:
            return self.max_height
        # Historical bound: the last physical line is only ever seen through
        # look-ahead. Pass visit_last_line=True to scan it as well.
        return max(self.max_height - 1, 0)

    def scan(self) -> ContextTree:
        """
        Run a full scan and return the closed tree.

        State is reset first, so scanning twice yields identical trees.
        """
        self._reset()
        bound = self.scan_bound

        while self.line_counter < bound:
            line = self.lines[self.line_counter]

            kind = self.classify(line)
            if kind is not None:
                self._start_context(kind, line)

            self.extract(line)

            if self.should_exit(line):
                self.exit()

            self.line_counter += 1

        self._finish()
        return self.tree

    # --- Entry ---

    def classify(self, line: str) -> ContextKind | None:
        """Return the first kind whose rule matches `line`, in priority order."""
        active = self.cursor.kind
        for kind, pattern in self.patterns.rules():
            if not pattern.search(line):
                continue
            if self.rules.suppresses(active, kind):
                continue
            return kind
        return None

    def context_name(self, kind: ContextKind, line: str) -> str:
        if kind not in self.patterns.NAMED_KINDS:
            return PLACEHOLDER_NAME
        name = self.patterns.capture_name(kind, line)
        if not name:
            raise NoCaptureMatch(kind, self.line_counter, line)
        return name

    def enter(self, kind: ContextKind, line: str) -> ContextNode:
        """Open a new context of `kind` under the active one."""
        name = self.context_name(kind, line)
        node = self.cursor.descend(ContextNode.create(name, kind, self.line_counter))

        if self.rules.is_structural(kind):
            self.indent.increase()
        elif kind is ContextKind.DOCSTRING:
            m = self.patterns.match(kind, line)
            self._quote = m.groupdict().get("quote") if m else None

        self._emit(
            Enter(kind=kind, name=name, line=self.line_counter, depth=self.indent.depth)
        )
        return node

    # --- Extraction ---

    def extract(self, line: str) -> None:
        if self.cursor.kind is ContextKind.DOCSTRING:
            self.cursor.node.append_value(line)

    # --- Exit ---

    def should_exit(self, line: str) -> bool:
        kind = self.cursor.kind
        if kind is ContextKind.ROOT:
            return False
        if kind is ContextKind.DOCSTRING:
            return self._docstring_closes(line)

        # Structural scopes only end on a blank line next to a dedent or EOF.
        if not is_blank(line):
            return False
        next_line = self.peek()
        if next_line is None or is_blank(next_line):
            return True
        if not next_line.startswith(INDENT_UNIT):
            return True
        if indent_level(next_line) < self.indent.depth:
            return True
        if kind is ContextKind.CLASS:
            return False
        return self.classify(next_line) is not None

    def exit(self) -> list[ContextNode]:
        """
        Leave the active context, cascading through enclosing scopes when the
        next code line is dedented past them. Returns the closed nodes,
        innermost first.
        """
        if self.cursor.at_root:
            return []

        closed = [self._ascend()]
        if not self.rules.is_structural(closed[0].kind):
            return closed

        target = self._target_depth()
        if target == 0:
            closed.extend(self._unwind())
        else:
            while self.indent.depth > target and not self.cursor.at_root:
                closed.append(self._ascend())
        return closed

    def peek(self, offset: int = 1) -> str | None:
        """Bounds-checked look-ahead relative to the current line."""
        index = self.line_counter + offset
        if 0 <= index < self.max_height:
            return self.lines[index]
        return None

    # --- Private Helpers ---

    def _reset(self) -> None:
        self.line_counter = 0
        self.tree = ContextTree()
        self.cursor = ContextCursor(self.tree)
        self.indent = IndentTracker()
        self.diagnostics: list[Diagnostic] = []
        self._quote: str | None = None

    def _start_context(self, kind: ContextKind, line: str) -> None:
        try:
            self.enter(kind, line)
        except NoCaptureMatch as e:
            if not self._skip_corrupt:
                raise
            self.diagnostics.append(SkippedContext(kind=kind, line=self.line_counter))
            logger.warning("Skipping corrupt context: %s", e)

    def _docstring_closes(self, line: str) -> bool:
        m = self.patterns.match_docstring_end(line)
        if m is None:
            return False

        quote = m.groupdict().get("quote")
        if self._quote and quote and quote != self._quote:
            return False

        # On the opening line the delimiter must appear twice: a bare
        # opener does not close the docstring it starts.
        if self.line_counter == self.cursor.node.start:
            delimiter = self._quote or quote
            if delimiter and line.count(delimiter) < 2:
                return False
        return True

    def _target_depth(self) -> int:
        """Indentation level of the next non-blank line; 0 at end of input."""
        offset = 1
        while (probe := self.peek(offset)) is not None:
            if not is_blank(probe):
                return indent_level(probe)
            offset += 1
        return 0

    def _ascend(self) -> ContextNode:
        node = self.cursor.ascend(self.line_counter)
        self._after_exit(node)
        return node

    def _unwind(self) -> list[ContextNode]:
        closed = self.cursor.unwind_to_root(self.line_counter)
        for node in closed:
            self._after_exit(node)
        return closed

    def _after_exit(self, node: ContextNode) -> None:
        depth = self.indent.depth
        if self.rules.is_structural(node.kind):
            self.indent.decrease()
        else:
            self._quote = None
        self._emit(Exit(kind=node.kind, name=node.name, line=self.line_counter, depth=depth))

    def _finish(self) -> None:
        self.line_counter = max(self.max_height - 1, 0)

        for node in [self.cursor.node, *self.tree.ancestors(self.cursor.node)]:
            if node.kind is ContextKind.ROOT or self.rules.is_structural(node.kind):
                continue
            diag = UnclosedContext(name=node.name, kind=node.kind, start=node.start or 0)
            self.diagnostics.append(diag)
            logger.warning("Force-closing %s", diag)

        self._unwind()

    def _emit(self, event: ContextEvent) -> None:
        if self._sink is not None:
            self._sink(event)
            return
        logger.debug(
            "%s%s -> [%s]. line:%d",
            INDENT_UNIT * event.depth,
            event.label,
            event.kind.name,
            event.line,
        )


def scan_lines(lines: Iterable[str], **kwargs) -> ContextTree:
    """Convenience wrapper: scan `lines` with a fresh ContextProcessor."""
    return ContextProcessor(lines, **kwargs).scan()
