from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Iterator

PLACEHOLDER_NAME = "__empty__"


class ContextKind(enum.Enum):
    """Kind of code block a context node stands for."""

    ROOT = "root"
    CLASS = "class"
    METHOD = "method"
    EXPORT_LIST = "export_list"
    DOCSTRING = "docstring"


@dataclass(slots=True)
class ContextNode:
    """
    One definition block (or the synthetic root) discovered by a scan.

    Nodes live in a ContextTree arena: `parent` and `children` hold node ids,
    never the nodes themselves.
    """

    name: str
    kind: ContextKind
    start: int | None = None
    end: int | None = None
    is_public: bool = True
    value: str = ""
    uid: int = 0
    parent: int | None = None
    children: list[int] = field(default_factory=list)

    @classmethod
    def create(cls, name: str, kind: ContextKind, start: int) -> "ContextNode":
        """Build an open node; visibility follows the leading-underscore rule."""
        return cls(name=name, kind=kind, start=start, is_public=not name.startswith("_"))

    @property
    def identifier(self) -> str:
        """Bare identifier, e.g. 'bar' for a node named 'def bar'."""
        if self.kind in (ContextKind.CLASS, ContextKind.METHOD):
            return self.name.split()[-1]
        return self.name

    @property
    def is_closed(self) -> bool:
        return self.end is not None

    @property
    def location(self) -> tuple[int, int] | None:
        if self.start is None or self.end is None:
            return None
        return self.start, self.end

    def close(self, line: int) -> bool:
        """Set the end line once. Returns False if the node was already closed."""
        if self.end is not None:
            return False
        self.end = line
        return True

    def append_value(self, text: str) -> None:
        self.value += text


class ContextTree:
    """
    Arena holding every node of one scan. Node 0 is always the root.
    """

    def __init__(self) -> None:
        root = ContextNode(name="", kind=ContextKind.ROOT, uid=0)
        self._nodes: list[ContextNode] = [root]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ContextNode]:
        return iter(self._nodes)

    @property
    def root(self) -> ContextNode:
        return self._nodes[0]

    def node(self, uid: int) -> ContextNode:
        return self._nodes[uid]

    def attach(self, parent: ContextNode, node: ContextNode) -> ContextNode:
        """Store `node` in the arena as the last child of `parent`."""
        node.uid = len(self._nodes)
        node.parent = parent.uid
        self._nodes.append(node)
        parent.children.append(node.uid)
        return node

    def parent(self, node: ContextNode) -> ContextNode | None:
        if node.parent is None:
            return None
        return self._nodes[node.parent]

    def children(self, node: ContextNode) -> list[ContextNode]:
        return [self._nodes[uid] for uid in node.children]

    def ancestors(self, node: ContextNode) -> Iterator[ContextNode]:
        """Yield enclosing nodes from the direct parent up to the root."""
        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)

    def walk(
        self, node: ContextNode | None = None, depth: int = 0
    ) -> Iterator[tuple[int, ContextNode]]:
        """Depth-first, pre-order traversal yielding (depth, node)."""
        node = node or self.root
        yield depth, node
        for child in self.children(node):
            yield from self.walk(child, depth + 1)

    def to_dict(self, node: ContextNode | None = None) -> dict[str, Any]:
        """Nested plain-data view, suitable for YAML/JSON dumps."""
        node = node or self.root
        data: dict[str, Any] = {
            "name": node.name,
            "kind": node.kind.value,
            "start": node.start,
            "end": node.end,
            "is_public": node.is_public,
        }
        if node.kind is ContextKind.DOCSTRING:
            data["value"] = node.value
        data["children"] = [self.to_dict(child) for child in self.children(node)]
        return data
