"""Tests for the line-by-line context processor."""

from __future__ import annotations

import logging

import pytest

from codescope.context.definitions import PLACEHOLDER_NAME, ContextKind, ContextNode
from codescope.context.errors import NoCaptureMatch, SkippedContext, UnclosedContext
from codescope.context.events import Enter, EventRecorder, Exit
from codescope.context.patterns import PatternRegistry
from codescope.context.processor import ContextProcessor, is_blank, scan_lines

SAMPLE_MODULE = '''
class TestClass:

    def __init__():
        """One liner"""
        pass

    def hello():
        pass


class NewClass:

    def __init__():
        pass


def outscope_method():
    pass
'''.split("\n")


def spans(tree, node=None):
    """(name, start, end) for each child, recursively, in tree order."""
    node = node or tree.root
    out = []
    for child in tree.children(node):
        out.append((child.name, child.start, child.end))
        out.extend(spans(tree, child))
    return out


def test_simple_class_with_method() -> None:
    """A method and its class close together when the file ends after the method."""
    recorder = EventRecorder()
    tree = ContextProcessor(
        ["class Foo:", "", "    def bar():", "        pass", "", ""], sink=recorder
    ).scan()

    (foo,) = tree.children(tree.root)
    (bar,) = tree.children(foo)
    assert (foo.name, foo.location) == ("class Foo", (0, 4))
    assert (bar.name, bar.location) == ("def bar", (2, 4))

    assert recorder.events == [
        Enter(ContextKind.CLASS, "class Foo", 0),
        Enter(ContextKind.METHOD, "def bar", 2),
        Exit(ContextKind.METHOD, "def bar", 4),
        Exit(ContextKind.CLASS, "class Foo", 4),
    ]


def test_sample_module_structure() -> None:
    """Two classes and a module-level function, one method with a one-line docstring."""
    recorder = EventRecorder()
    tree = ContextProcessor(SAMPLE_MODULE, sink=recorder).scan()

    assert len(SAMPLE_MODULE) == 20
    assert spans(tree) == [
        ("class TestClass", 1, 9),
        ("def __init__", 3, 6),
        (PLACEHOLDER_NAME, 4, 4),
        ("def hello", 7, 9),
        ("class NewClass", 11, 15),
        ("def __init__", 13, 15),
        ("def outscope_method", 17, 19),
    ]
    assert len(recorder.entries) == 7
    assert len(recorder.exits) == 7


def test_export_list_at_end_of_file() -> None:
    """An export list open at end of input is closed by the final unwind."""
    tree = scan_lines(['__all__ = ["a"]', ""])
    (node,) = tree.children(tree.root)
    assert node.kind is ContextKind.EXPORT_LIST
    assert node.name == PLACEHOLDER_NAME
    assert node.location == (0, 1)


def test_multiline_docstring_text() -> None:
    """Docstring lines are concatenated without separators, delimiters included."""
    tree = scan_lines(
        ["def foo():", '    """Summary', "    more text", '    """', "    pass", ""]
    )
    (foo,) = tree.children(tree.root)
    (doc,) = tree.children(foo)
    assert doc.kind is ContextKind.DOCSTRING
    assert doc.location == (1, 3)
    assert doc.value == '    """Summary    more text    """'
    assert foo.location == (0, 5)


def test_decorated_methods_stay_in_class() -> None:
    """A dedent to a decorator line ends the method but not the class."""
    tree = scan_lines(
        [
            "class A:",
            "",
            "    def x(self):",
            "        pass",
            "",
            "    @property",
            "    def x(self):",
            "        pass",
            "",
            "",
        ]
    )
    assert spans(tree) == [
        ("class A", 0, 8),
        ("def x", 2, 4),
        ("def x", 6, 8),
    ]


def test_nested_class_cascade() -> None:
    """Leaving an inner scope unwinds only down to the next line's depth."""
    tree = scan_lines(
        [
            "class Outer:",
            "    class Inner:",
            "        def m(self):",
            "            pass",
            "",
            "    def after(self):",
            "        pass",
            "",
            "",
        ]
    )
    assert spans(tree) == [
        ("class Outer", 0, 7),
        ("class Inner", 1, 4),
        ("def m", 2, 4),
        ("def after", 5, 7),
    ]


def test_blank_line_inside_method_does_not_exit() -> None:
    """A blank line followed by more indented body keeps the method open."""
    tree = scan_lines(["def f():", "    x = 1", "", "    return x", "", ""])
    (f,) = tree.children(tree.root)
    assert f.location == (0, 4)


def test_last_line_is_not_visited_by_default() -> None:
    """The final line is only seen through look-ahead unless asked for."""
    lines = ["x = 1", "def tail():"]
    tree = scan_lines(lines)
    assert tree.children(tree.root) == []

    tree = scan_lines(lines, visit_last_line=True)
    (tail,) = tree.children(tree.root)
    assert tail.location == (1, 1)


def test_scan_bound() -> None:
    """scan_bound reflects the last-line flag and handles empty input."""
    assert ContextProcessor(["a", "b", "c"]).scan_bound == 2
    assert ContextProcessor(["a", "b", "c"], visit_last_line=True).scan_bound == 3
    assert ContextProcessor([]).scan_bound == 0


def test_empty_input() -> None:
    """Empty input yields a bare root and no events."""
    recorder = EventRecorder()
    processor = ContextProcessor([], sink=recorder)
    tree = processor.scan()
    assert len(tree) == 1
    assert len(recorder) == 0
    assert processor.diagnostics == []


def test_unclosed_docstring_is_reported(caplog: pytest.LogCaptureFixture) -> None:
    """A docstring still open at the end is force-closed and recorded."""
    processor = ContextProcessor(["def f():", '    """Never closed', "    text", ""])
    with caplog.at_level(logging.WARNING, logger="codescope.context.processor"):
        tree = processor.scan()

    assert processor.diagnostics == [
        UnclosedContext(name=PLACEHOLDER_NAME, kind=ContextKind.DOCSTRING, start=1)
    ]
    assert "Force-closing" in caplog.text
    (f,) = tree.children(tree.root)
    (doc,) = tree.children(f)
    assert f.end == 3
    assert doc.end == 3


def test_docstring_closes_on_matching_delimiter_only() -> None:
    """A docstring opened with ''' ignores a line ending in three double quotes."""
    tree = scan_lines(
        ["def f():", "    '''Start", '    text """', "    '''", "    pass", ""]
    )
    (f,) = tree.children(tree.root)
    (doc,) = tree.children(f)
    assert doc.location == (1, 3)


def test_bare_opener_does_not_close_itself() -> None:
    """A line holding only the opening delimiter leaves the docstring open."""
    tree = scan_lines(["def f():", '    """', "    Text.", '    """', ""])
    (f,) = tree.children(tree.root)
    (doc,) = tree.children(f)
    assert doc.location == (1, 3)


def test_corrupt_entry_raises_by_default() -> None:
    """A classified line without a capturable name aborts the scan."""
    patterns = PatternRegistry.from_dict({"class": r"^(?P<name>)class\b"})
    with pytest.raises(NoCaptureMatch) as info:
        ContextProcessor(["class Foo:", "    pass", ""], patterns=patterns).scan()
    assert info.value.line_no == 0
    assert info.value.kind is ContextKind.CLASS


def test_corrupt_entry_can_be_skipped() -> None:
    """With skip_corrupt the entry is dropped and recorded."""
    patterns = PatternRegistry.from_dict({"class": r"^(?P<name>)class\b"})
    processor = ContextProcessor(
        ["class Foo:", "    pass", ""], patterns=patterns, skip_corrupt=True
    )
    tree = processor.scan()
    assert tree.children(tree.root) == []
    assert processor.diagnostics == [SkippedContext(kind=ContextKind.CLASS, line=0)]


def test_docstring_start_suppressed_inside_docstring() -> None:
    """A docstring opener is ignored while a docstring is active."""
    processor = ContextProcessor([])
    assert processor.classify('    """inner') is ContextKind.DOCSTRING

    processor.cursor.descend(
        ContextNode.create(PLACEHOLDER_NAME, ContextKind.DOCSTRING, 0)
    )
    assert processor.classify('    """inner') is None
    assert processor.classify("def f():") is ContextKind.METHOD


def test_root_stays_open_and_every_node_closes() -> None:
    """After a scan the root is active and open; all other nodes are closed."""
    processor = ContextProcessor(SAMPLE_MODULE)
    tree = processor.scan()
    assert processor.cursor.at_root
    assert tree.root.end is None
    assert all(node.is_closed for node in tree if node is not tree.root)
    assert processor.indent.depth == 0


def test_nodes_nest_within_parents() -> None:
    """Every child starts and ends inside its parent's span."""
    tree = scan_lines(SAMPLE_MODULE)
    for node in tree:
        parent = tree.parent(node)
        if parent is None or parent is tree.root:
            continue
        assert parent.start <= node.start <= node.end <= parent.end


def test_events_balance_and_pair_up() -> None:
    """Every Enter has exactly one matching Exit, in stack order."""
    recorder = EventRecorder()
    ContextProcessor(SAMPLE_MODULE, sink=recorder).scan()

    stack = []
    for event in recorder.events:
        if isinstance(event, Enter):
            stack.append((event.kind, event.name))
        else:
            assert stack.pop() == (event.kind, event.name)
    assert stack == []


def test_scan_is_repeatable() -> None:
    """Scanning twice with one processor yields the same tree."""
    processor = ContextProcessor(SAMPLE_MODULE)
    first = processor.scan().to_dict()
    second = processor.scan().to_dict()
    assert first == second


def test_default_sink_logs_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    """Without a sink, events go to the module logger."""
    with caplog.at_level(logging.DEBUG, logger="codescope.context.processor"):
        scan_lines(["def f():", "    pass", ""])
    assert "ENTER -> [METHOD]" in caplog.text
    assert "EXIT -> [METHOD]" in caplog.text


def test_peek_is_bounds_checked() -> None:
    """Look-ahead past either end of the input returns None."""
    processor = ContextProcessor(["a", "b"])
    assert processor.peek() == "b"
    assert processor.peek(2) is None
    assert processor.peek(-1) is None


def test_is_blank() -> None:
    """Whitespace-only lines are blank."""
    assert is_blank("")
    assert is_blank("   \t")
    assert not is_blank("  x")


def test_visibility_matches_stored_name() -> None:
    """Every scanned node's is_public follows its stored name."""
    tree = scan_lines(SAMPLE_MODULE + ["def _private():", "    pass", ""])
    for node in tree:
        if node is tree.root:
            continue
        assert node.is_public == (not node.name.startswith("_"))


def test_root_invariant() -> None:
    """The root keeps its kind, has no parent and no line range."""
    tree = scan_lines(SAMPLE_MODULE)
    assert tree.root.kind is ContextKind.ROOT
    assert tree.parent(tree.root) is None
    assert (tree.root.start, tree.root.end) == (None, None)
