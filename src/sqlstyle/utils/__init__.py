"""Generic utilities and helpers.

This is a collection of generic utilities and helpers
that can be helpful in the other parts of the codebase
and are not specifically bound or related to the linter.
"""

from . import tabulate

__all__ = ("tabulate",)
