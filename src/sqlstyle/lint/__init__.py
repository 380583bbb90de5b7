"""Check SQL source text against a set of style conventions.

This module provides support for checking that SQL queries respect
a set of style conventions, like keywords being uppercase, clause
keywords being aligned on a common "river" and identifiers being
named in snake_case. Where possible, a fix for the violation is
suggested, so that the source can be automatically formatted.

The linter doesn't care if a query is valid SQL or not. It's meant to
check the style of queries written in any SQL dialect, so it doesn't
parse the queries into a full abstract syntax tree. It only understands
enough of the structure of the queries to check their style.
On production projects, you would typically use a dedicated library like SQLFluff.

The linter is constituted by four major components:

1. Tokenizer (and keyword classifier)
2. Segmenter
3. Rules
4. Reporter

To check a SQL query, you would typically just call :func:`lint`::

    report = lint("select id from staff")
    for violation in report:
        print(violation)

which would print something like::

    1:0: error [keyword_casing] Keyword 'select' should be uppercase: 'SELECT'
    1:10: error [keyword_casing] Keyword 'from' should be uppercase: 'FROM'

and :func:`format` to get back the source with all the fixes applied.

The **Tokenizer** is responsible for converting the source into a sequence of tokens.
Given a query like ``"SELECT id FROM staff"``, the tokenizer will produce
a sequence of tokens like::

    [SELECT, " ", id, " ", FROM, " ", staff]

Whitespace and comments are tokens too, so that the source can always be rebuilt
from its tokens. The :class:`sqlstyle.lint.tokenize.Tokenizer` is a simple
regex-based tokenizer, the :mod:`sqlstyle.lint.keywords` module then
marks which words are reserved keywords.

The :class:`sqlstyle.lint.segmenter.Segmenter` groups the tokens into
statements and clauses. The result is a :class:`sqlstyle.lint.segmenter.ClauseTree`,
for example the query ``"SELECT id FROM staff WHERE age >= 18"`` would
be represented by a tree like::

    {
        'type': 'script',
        'children': [
            {'type': 'statement', 'children': [
                {'type': 'select', 'children': []},
                {'type': 'from', 'children': []},
                {'type': 'where', 'children': []},
            ]}
        ]
    }

The **Rules** are plain functions that receive the tokens, the tree and the
:class:`sqlstyle.lint.options.LintOptions` and yield violations.
They are registered in :data:`sqlstyle.lint.rules.RULES` by the
:func:`sqlstyle.lint.rules.register` decorator, so new rules can be added
by simply registering new functions.

The **Reporter** collects the violations in a :class:`sqlstyle.lint.reporter.StyleReport`
sorted by position and knows how to apply the suggested fixes to the source.
"""

from .api import LintResult, format, lint, lint_many
from .errors import SQLStyleError
from .keywords import RESERVED_KEYWORDS, is_reserved
from .options import LintOptions
from .reporter import ConflictError, StyleReport, apply_fixes
from .rules import RULES, register
from .segmenter import ClauseTree, ClauseType, StructureError, segment
from .tokenize import LexError, Position, Token, TokenKind, tokenize
from .violations import Fix, Severity, Violation

__all__ = (
    "lint",
    "format",
    "lint_many",
    "LintResult",
    "LintOptions",
    "StyleReport",
    "apply_fixes",
    "Violation",
    "Severity",
    "Fix",
    "RULES",
    "register",
    "tokenize",
    "Token",
    "TokenKind",
    "Position",
    "RESERVED_KEYWORDS",
    "is_reserved",
    "segment",
    "ClauseTree",
    "ClauseType",
    "SQLStyleError",
    "LexError",
    "StructureError",
    "ConflictError",
)
