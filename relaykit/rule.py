"""Ordered lists of hostname-matching regular-expression rules."""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Optional

__all__ = ["RuleError", "Rule", "RuleList"]


class RuleError(ValueError):
    """Raised for a malformed rule."""


class Rule:
    """A rule holding one regular-expression pattern."""

    def __init__(self, pattern: Optional[str] = None) -> None:
        self.pattern = pattern
        self._regex: Optional[re.Pattern[str]] = None

    def __repr__(self) -> str:
        return f"Rule(pattern={self.pattern!r})"

    def accept_arg(self, arg: str) -> None:
        """Take ``arg`` as the pattern; a rule accepts only one argument."""
        if self.pattern is not None:
            raise RuleError(f"Unexpected table rule argument: {arg}")
        self.pattern = arg

    def init(self) -> None:
        """Compile the pattern, once."""
        if self._regex is not None:
            return
        if self.pattern is None:
            raise RuleError("rule has no pattern")
        try:
            self._regex = re.compile(self.pattern)
        except re.error as exc:
            raise RuleError(
                f'Regex compilation of "{self.pattern}" failed: {exc.msg}, offset {exc.pos}'
            ) from exc

    def matches(self, name: Optional[str]) -> bool:
        """Return whether the pattern is found anywhere in ``name``."""
        self.init()
        assert self._regex is not None
        return self._regex.search(name if name is not None else "") is not None


class RuleList:
    """Rules consulted in the order they were added."""

    def __init__(self) -> None:
        self._rules: list[Rule] = []

    def add(self, rule: Rule) -> None:
        """Append ``rule`` to the end of the list."""
        self._rules.append(rule)

    def lookup(self, name: Optional[str]) -> Optional[Rule]:
        """Return the first rule matching ``name``, or None."""
        return next((rule for rule in self._rules if rule.matches(name)), None)

    def remove(self, rule: Rule) -> None:
        """Remove ``rule``; raises ValueError if it is not in the list."""
        for index, candidate in enumerate(self._rules):
            if candidate is rule:
                del self._rules[index]
                return
        raise ValueError("rule not in list")

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)