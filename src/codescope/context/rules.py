from __future__ import annotations

from typing import ClassVar, Iterable

from .definitions import ContextKind


class RuleSet:
    """
    Context kinds that are not structural scopes.

    A docstring is text attached to a scope rather than a scope of its own,
    so it neither nests inside itself nor takes part in indentation tracking.
    """

    NON_STRUCTURAL: ClassVar[frozenset[ContextKind]] = frozenset(
        {ContextKind.DOCSTRING}
    )

    def __init__(self, kinds: Iterable[ContextKind] | None = None) -> None:
        self._kinds = frozenset(kinds) if kinds is not None else self.NON_STRUCTURAL
        if ContextKind.ROOT in self._kinds:
            raise ValueError("The root kind cannot be declared non-structural.")

    def __contains__(self, kind: object) -> bool:
        return kind in self._kinds

    def contains(self, kind: ContextKind) -> bool:
        return kind in self._kinds

    def is_structural(self, kind: ContextKind) -> bool:
        return kind is not ContextKind.ROOT and kind not in self._kinds

    def suppresses(self, active: ContextKind, matched: ContextKind) -> bool:
        """True when a match must be ignored because both kinds are non-structural."""
        return active in self._kinds and matched in self._kinds
