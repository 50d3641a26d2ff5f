from __future__ import annotations

from .definitions import ContextKind, ContextNode, ContextTree

INDENT_UNIT = "    "


def indent_level(line: str) -> int:
    """Number of leading four-space units. Tabs do not count as indentation."""
    return (len(line) - len(line.lstrip(" "))) // len(INDENT_UNIT)


class IndentTracker:
    """Structural nesting depth, with the matching indentation prefix."""

    def __init__(self, unit: str = INDENT_UNIT) -> None:
        self.unit = unit
        self.depth = 0

    @property
    def value(self) -> str:
        return self.unit * self.depth

    def increase(self) -> None:
        self.depth += 1

    def decrease(self) -> None:
        if self.depth > 0:
            self.depth -= 1

    def matches(self, line: str) -> bool:
        """True if `line` is indented at least as deep as the current depth."""
        return line.startswith(self.value)


class ContextCursor:
    """
    Pointer to the currently active scope of a ContextTree.

    The active kind is always read from the active node, so the two never
    drift apart.
    """

    def __init__(self, tree: ContextTree) -> None:
        self.tree = tree
        self.node: ContextNode = tree.root

    @property
    def kind(self) -> ContextKind:
        return self.node.kind

    @property
    def at_root(self) -> bool:
        return self.node.kind is ContextKind.ROOT

    def descend(self, node: ContextNode) -> ContextNode:
        """Attach `node` under the active node and make it active."""
        self.tree.attach(self.node, node)
        self.node = node
        return node

    def ascend(self, line: int) -> ContextNode:
        """
        Close the active node at `line` and move to its parent.

        Returns the node that was left. Ascending from the root does nothing.
        """
        left = self.node
        if left.kind is ContextKind.ROOT:
            return left
        left.close(line)
        self.node = self.tree.parent(left) or self.tree.root
        return left

    def unwind_to_root(self, line: int) -> list[ContextNode]:
        """Close every open scope, innermost first."""
        closed: list[ContextNode] = []
        while not self.at_root:
            closed.append(self.ascend(line))
        return closed
