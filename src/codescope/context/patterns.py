from __future__ import annotations

import re
from typing import ClassVar, Iterator, Mapping

from .definitions import ContextKind
from .errors import PatternConfigError

# --- Default Detection Rules ---

METHOD_PATTERN = r"^\s*(?:async\s+)?(?P<name>def\s+\w+)\s*\("
CLASS_PATTERN = r"^\s*(?P<name>class\s+\w+)\s*[:(]"
EXPORT_LIST_PATTERN = r"^__all__\s*(?::[^=]*)?=\s*[\[(]"
DOCSTRING_START_PATTERN = r"^(?: {4})+(?P<quote>\"\"\"|''')\w*"
DOCSTRING_END_PATTERN = r"(?P<quote>\"\"\"|''')\s*$"

# Config-facing rule names
RULE_KEYS: dict[str, ContextKind] = {
    "export_list": ContextKind.EXPORT_LIST,
    "class": ContextKind.CLASS,
    "method": ContextKind.METHOD,
    "docstring_start": ContextKind.DOCSTRING,
}
DOCSTRING_END_KEY = "docstring_end"


class PatternRegistry:
    """
    Compiled line-matching rules, one per non-root context kind.

    Rules are evaluated in PRIORITY order, so a line matching two rules
    always resolves to the same kind.
    """

    PRIORITY: ClassVar[tuple[ContextKind, ...]] = (
        ContextKind.EXPORT_LIST,
        ContextKind.CLASS,
        ContextKind.METHOD,
        ContextKind.DOCSTRING,
    )
    NAMED_KINDS: ClassVar[frozenset[ContextKind]] = frozenset(
        {ContextKind.CLASS, ContextKind.METHOD}
    )

    def __init__(self, rules: Mapping[ContextKind, str], docstring_end: str) -> None:
        self._rules: dict[ContextKind, re.Pattern[str]] = {}
        for kind in self.PRIORITY:
            if kind not in rules:
                raise PatternConfigError(f"Missing detection rule for '{kind.value}'.")
            self._rules[kind] = self._compile(kind.value, rules[kind])
            if kind in self.NAMED_KINDS and "name" not in self._rules[kind].groupindex:
                raise PatternConfigError(
                    f"Rule for '{kind.value}' must define a 'name' capture group."
                )

        extra = set(rules) - set(self.PRIORITY)
        if extra:
            names = sorted(k.value for k in extra)
            raise PatternConfigError(f"No detection rule allowed for: {names}")

        self._docstring_end = self._compile(DOCSTRING_END_KEY, docstring_end)

    @classmethod
    def from_dict(cls, overrides: Mapping[str, str] | None = None) -> "PatternRegistry":
        """Build a registry from the defaults, replacing any rule named in `overrides`."""
        sources: dict[str, str] = {
            "export_list": EXPORT_LIST_PATTERN,
            "class": CLASS_PATTERN,
            "method": METHOD_PATTERN,
            "docstring_start": DOCSTRING_START_PATTERN,
            DOCSTRING_END_KEY: DOCSTRING_END_PATTERN,
        }
        for key, value in (overrides or {}).items():
            if key not in sources:
                raise PatternConfigError(
                    f"Unknown detection rule '{key}'. Expected one of: {sorted(sources)}"
                )
            if not isinstance(value, str):
                raise PatternConfigError(f"Detection rule '{key}' must be a string.")
            sources[key] = value

        rules = {kind: sources[key] for key, kind in RULE_KEYS.items()}
        return cls(rules, sources[DOCSTRING_END_KEY])

    def rules(self) -> Iterator[tuple[ContextKind, re.Pattern[str]]]:
        """Yield (kind, pattern) pairs in priority order."""
        for kind in self.PRIORITY:
            yield kind, self._rules[kind]

    def match(self, kind: ContextKind, line: str) -> re.Match[str] | None:
        return self._rules[kind].search(line)

    def capture_name(self, kind: ContextKind, line: str) -> str | None:
        """Return the 'name' group of a CLASS/METHOD match, or None."""
        m = self.match(kind, line)
        if m is None or m.group("name") is None:
            return None
        return m.group("name")

    def match_docstring_end(self, line: str) -> re.Match[str] | None:
        return self._docstring_end.search(line)

    @staticmethod
    def _compile(label: str, source: str) -> re.Pattern[str]:
        try:
            return re.compile(source)
        except re.error as e:
            raise PatternConfigError(f"Invalid pattern for '{label}': {e}") from e


DEFAULT_REGISTRY = PatternRegistry.from_dict()
