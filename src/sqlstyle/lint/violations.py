"""Violations of style rules and the fixes that resolve them."""

import enum
from dataclasses import dataclass
from typing import NamedTuple

from .tokenize import Position


class Severity(enum.Enum):
    ERROR = "error"
    WARNING = "warning"


class Fix(NamedTuple):
    """Replace the source between two offsets with a new text.

    A fix where ``start == end`` inserts text at that offset,
    a fix with an empty ``replacement`` removes text.
    """

    start: int
    end: int
    replacement: str

    def overlaps(self, other: "Fix") -> bool:
        """If applying both fixes would edit the same part of the source."""
        if self.start == self.end == other.start == other.end:
            # Two insertions at the same place, the order would be ambiguous.
            return True
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class Violation:
    """A place in the source that doesn't respect a style rule."""

    rule_id: str
    severity: Severity
    message: str
    position: Position
    suggested_fix: Fix | None = None

    @property
    def sort_key(self) -> tuple[int, int, str]:
        return (self.position.line, self.position.column, self.rule_id)

    def __str__(self) -> str:
        return (
            f"{self.position.line}:{self.position.column}: "
            f"{self.severity.value} [{self.rule_id}] {self.message}"
        )
