"""
Error types for representation checking.

- RepErrors: ordered, append-only collection of violation messages
- RepInvariantError: fatal failure raised when no diagnostic sink is active
- RuleResolutionError: a rule declaration could not be resolved
"""

from __future__ import annotations

from typing import Iterator


class RepErrors:
    """Violations collected during a single check pass.

    Duplicates are kept: a field and its parent may both flag the same
    condition, and each occurrence is a separate finding.
    """

    def __init__(self) -> None:
        self._errors: list[str] = []

    def add(self, error: str) -> None:
        self._errors.append(error)

    def is_empty(self) -> bool:
        return not self._errors

    def __iter__(self) -> Iterator[str]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __getitem__(self, index: int) -> str:
        return self._errors[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RepErrors):
            return self._errors == other._errors
        if isinstance(other, list):
            return self._errors == other
        return NotImplemented

    def to_list(self) -> list[str]:
        return list(self._errors)

    def __repr__(self) -> str:
        return f"RepErrors({self._errors!r})"


class RepInvariantError(AssertionError):
    """A check pass found violations and no diagnostic sink was active."""

    def __init__(self, errors: RepErrors):
        self.errors = errors
        super().__init__(f"representation invariant violated: {errors!r}")


class RuleResolutionError(ValueError):
    """A declared rule is malformed, unsupported, or references an unknown predicate."""

    def __init__(self, message: str, *, field: str | None = None, kind: str | None = None):
        self.field = field
        self.kind = kind
        prefix = f"field {field!r}: " if field else ""
        super().__init__(f"{prefix}{message}")
