"""Base classes for the errors raised while linting."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .tokenize import Position


class SQLStyleError(Exception):
    """Base class of all the errors raised by sqlstyle."""

    pass


class SourceError(SQLStyleError):
    """An error caused by the content of the source, at a given position."""

    def __init__(self, message: str, position: "Position") -> None:
        super().__init__(
            f"{message} at line {position.line}, column {position.column}"
        )
        self.message = message
        self.position = position

    def __reduce__(self):
        # Errors travel back from worker processes when linting in parallel.
        return (self.__class__, (self.message, self.position))
