from __future__ import annotations

import inspect
import re
from typing import Any, Literal

from codescope.context.definitions import ContextKind, ContextNode, ContextTree
from codescope.context.errors import Diagnostic, UnclosedContext

from . import models


class ModuleAssembler:
    """
    Builds the per-module definition report from a scanned context tree.

    Top-level visibility is decided by the module's `__all__` list when there
    is one; everything else follows the leading-underscore convention.
    """

    EXPORT_NAME = re.compile(r"""["']([A-Za-z_]\w*)["']""")
    QUOTES = ('"""', "'''")

    def __init__(self, config: dict[str, Any], qname: str) -> None:
        self.config = config
        self.qname = qname

    def assemble(
        self,
        path: str,
        lines: list[str],
        tree: ContextTree,
        diagnostics: list[Diagnostic] | None = None,
    ) -> models.ModuleRecord:
        exports = self.export_names(tree, lines)
        gate = exports if self.config.get("respect_export_list", True) else None

        classes: list[models.ClassRecord] = []
        functions: list[models.FunctionRecord] = []

        for node in tree.children(tree.root):
            if node.kind is ContextKind.CLASS:
                rec_c = self._class(tree, lines, node, gate)
                if self._keep(rec_c):
                    classes.append(rec_c)
            elif node.kind is ContextKind.METHOD:
                rec_f = self._function(tree, lines, node, gate)
                if self._keep(rec_f):
                    functions.append(rec_f)

        return models.ModuleRecord(
            path=path,
            qname=self.qname,
            exports=exports,
            classes=sorted(classes, key=lambda x: x["qname"]),
            functions=sorted(functions, key=lambda x: x["qname"]),
            diagnostics=[self._diagnostic(d) for d in diagnostics or []],
        )

    def export_names(self, tree: ContextTree, lines: list[str]) -> list[str] | None:
        """
        Names listed by the first top-level export list, or None without one.

        Only the text up to the bracket that closes the list is read.
        """
        node = next(
            (c for c in tree.children(tree.root) if c.kind is ContextKind.EXPORT_LIST),
            None,
        )
        if node is None or node.start is None:
            return None

        end = node.end if node.end is not None else len(lines) - 1
        span = list(lines[node.start : end + 1])
        if span and "=" in span[0]:
            span[0] = span[0].split("=", 1)[1]

        parts: list[str] = []
        depth = 0
        closed = False
        for line in span:
            cut = len(line)
            for i, ch in enumerate(line):
                if ch in "[(":
                    depth += 1
                elif ch in "])":
                    depth -= 1
                    if depth <= 0:
                        cut = i + 1
                        closed = True
                        break
            parts.append(line[:cut])
            if closed:
                break

        names = self.EXPORT_NAME.findall("\n".join(parts))
        return list(dict.fromkeys(names))

    @staticmethod
    def visibility(name: str) -> Literal["public", "private", "dunder"]:
        if name.startswith("__") and name.endswith("__") and len(name) > 4:
            return "dunder"
        if name.startswith("_"):
            return "private"
        return "public"

    @staticmethod
    def is_public(record: models.ClassRecord | models.FunctionRecord) -> bool:
        """Export-list membership wins over the naming convention."""
        if record["exported"] is not None:
            return record["exported"]
        return record["visibility"] == "public"

    # --- Private Helpers ---

    def _keep(self, record: models.ClassRecord | models.FunctionRecord) -> bool:
        return not self.config.get("public_only") or self.is_public(record)

    def _class(
        self,
        tree: ContextTree,
        lines: list[str],
        node: ContextNode,
        exports: list[str] | None,
    ) -> models.ClassRecord:
        name = node.identifier
        qname = f"{self.qname}.{name}"
        documented, doc = self._docstring(tree, lines, node)

        methods: list[models.MethodRecord] = []
        for child in tree.children(node):
            if child.kind is not ContextKind.METHOD:
                continue
            rec = self._method(tree, lines, child, qname)
            if (
                not self.config.get("public_only")
                or rec["name"] == "__init__"
                or rec["visibility"] == "public"
            ):
                methods.append(rec)

        return models.ClassRecord(
            name=name,
            qname=qname,
            visibility=self.visibility(name),
            exported=None if exports is None else name in exports,
            lines=self._lines_of(node),
            documented=documented,
            docstring=doc,
            methods=sorted(methods, key=lambda x: x["name"]),
        )

    def _function(
        self,
        tree: ContextTree,
        lines: list[str],
        node: ContextNode,
        exports: list[str] | None,
    ) -> models.FunctionRecord:
        name = node.identifier
        documented, doc = self._docstring(tree, lines, node)
        return models.FunctionRecord(
            name=name,
            qname=f"{self.qname}.{name}",
            visibility=self.visibility(name),
            exported=None if exports is None else name in exports,
            lines=self._lines_of(node),
            documented=documented,
            docstring=doc,
        )

    def _method(
        self, tree: ContextTree, lines: list[str], node: ContextNode, cq: str
    ) -> models.MethodRecord:
        name = node.identifier
        documented, doc = self._docstring(tree, lines, node)
        return models.MethodRecord(
            name=name,
            qname=f"{cq}.{name}",
            visibility=self.visibility(name),
            lines=self._lines_of(node),
            documented=documented,
            docstring=doc,
        )

    def _docstring(
        self, tree: ContextTree, lines: list[str], node: ContextNode
    ) -> tuple[bool, str | None]:
        doc = next(
            (c for c in tree.children(node) if c.kind is ContextKind.DOCSTRING), None
        )
        if doc is None or doc.start is None:
            return False, None
        if not self.config.get("include_docstrings", True):
            return True, None

        end = doc.end if doc.end is not None else doc.start
        text = "\n".join(lines[doc.start : end + 1]).strip()
        for quote in self.QUOTES:
            if text.startswith(quote):
                text = text[len(quote) :]
                if text.endswith(quote):
                    text = text[: -len(quote)]
                break
        text = text.strip()

        if self.config.get("strip_docstrings"):
            text = inspect.cleandoc(text)
        return True, text or None

    @staticmethod
    def _lines_of(node: ContextNode) -> list[int]:
        start = node.start or 0
        return [start, node.end if node.end is not None else start]

    @staticmethod
    def _diagnostic(diag: Diagnostic) -> models.DiagnosticRecord:
        if isinstance(diag, UnclosedContext):
            return models.DiagnosticRecord(
                kind="unclosed", context=diag.kind.value, line=diag.start, message=str(diag)
            )
        return models.DiagnosticRecord(
            kind="skipped", context=diag.kind.value, line=diag.line, message=str(diag)
        )
