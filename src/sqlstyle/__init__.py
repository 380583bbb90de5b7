"""SQLStyle

A linter and formatter for the style of SQL queries.

SQLStyle checks SQL sources against a set of conventions on how
queries should be written: uppercase keywords, clause keywords aligned
on a common river, snake_case identifiers, meaningful suffixes for
columns and so on. Where it can, it also fixes the violations it finds.

The project is constituted by multiple components, each isolated within its own
package and each self documented in literate programming style.

The primary components are:

* The Linter, in charge of checking and formatting sources, see :mod:`sqlstyle.lint`.
* The Configuration, which loads the linter options from TOML files, see :mod:`sqlstyle.config`.
* The Commands, which expose the linter on the command line, see :mod:`sqlstyle.commands`.
"""

from . import lint

__all__ = ("lint",)
