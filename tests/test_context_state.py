"""Tests for indentation tracking and the context cursor."""

from __future__ import annotations

from codescope.context.definitions import ContextKind, ContextNode, ContextTree
from codescope.context.state import ContextCursor, IndentTracker, indent_level


def test_indent_level_counts_four_space_units() -> None:
    """Leading spaces are counted in whole four-space units; tabs count as none."""
    assert indent_level("x") == 0
    assert indent_level("    x") == 1
    assert indent_level("        x") == 2
    assert indent_level("   x") == 0
    assert indent_level("\tx") == 0
    assert indent_level("") == 0


def test_indent_tracker_never_goes_negative() -> None:
    """Decreasing at depth zero is a no-op."""
    tracker = IndentTracker()
    tracker.decrease()
    assert tracker.depth == 0

    tracker.increase()
    tracker.increase()
    assert tracker.value == "        "
    assert tracker.matches("        pass")
    assert not tracker.matches("    pass")

    tracker.decrease()
    assert tracker.depth == 1


def test_cursor_descend_and_ascend() -> None:
    """Descending activates the new node; ascending closes it and returns to the parent."""
    tree = ContextTree()
    cursor = ContextCursor(tree)
    assert cursor.at_root
    assert cursor.kind is ContextKind.ROOT

    node = cursor.descend(ContextNode.create("class Foo", ContextKind.CLASS, 0))
    assert cursor.node is node
    assert cursor.kind is ContextKind.CLASS
    assert tree.root.children == [node.uid]

    left = cursor.ascend(4)
    assert left is node
    assert node.end == 4
    assert cursor.at_root


def test_cursor_ascend_at_root_is_noop() -> None:
    """The root is never closed by ascending."""
    tree = ContextTree()
    cursor = ContextCursor(tree)
    assert cursor.ascend(10) is tree.root
    assert tree.root.end is None
    assert cursor.at_root


def test_unwind_closes_innermost_first() -> None:
    """unwind_to_root closes every open scope at one line, innermost first."""
    tree = ContextTree()
    cursor = ContextCursor(tree)
    outer = cursor.descend(ContextNode.create("class Outer", ContextKind.CLASS, 0))
    inner = cursor.descend(ContextNode.create("def m", ContextKind.METHOD, 1))

    closed = cursor.unwind_to_root(6)
    assert closed == [inner, outer]
    assert (inner.end, outer.end) == (6, 6)
    assert cursor.at_root
    assert cursor.unwind_to_root(7) == []
