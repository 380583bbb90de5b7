"""Lint and format SQL source text.

These are the entry points that run the whole pipeline::

    text -> tokenize -> classify -> segment -> rules -> report

None of them performs any I/O, reading files and printing results
is left to the caller, see :mod:`sqlstyle.commands` for the
command line interface.
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from itertools import repeat
from typing import Iterable, NamedTuple

from .errors import SQLStyleError
from .keywords import classify_tokens
from .options import LintOptions
from .reporter import StyleReport, report
from .rules import run_rules
from .segmenter import segment
from .tokenize import tokenize

logger = logging.getLogger(__name__)

#: How many times :func:`format` is allowed to re-apply fixes before giving up.
MAX_FORMAT_PASSES = 10


def lint(source: str, options: LintOptions | None = None) -> StyleReport:
    """Check a SQL source against the style rules.

    Raises :class:`sqlstyle.lint.tokenize.LexError` or
    :class:`sqlstyle.lint.segmenter.StructureError` when the source
    is too malformed to be checked, no partial report is returned in such case.

    :param source: The SQL text to check.
    :param options: How to check it, by default all the rules are run with default settings.
    """
    options = options or LintOptions()
    tokens = list(classify_tokens(tokenize(source)))
    logger.debug("Tokenized %d characters into %d tokens", len(source), len(tokens))
    tree = segment(tokens)
    logger.debug("Segmented source into %d clauses", len(tree.nodes))
    return report(run_rules(tokens, tree, options))


def format(source: str, options: LintOptions | None = None) -> str:
    """Return the source with all the fixable violations fixed.

    Fixing a violation can move things around the source (quoted
    identifiers get shorter, commas get a space after them) which
    in turn might require other fixes, like re-aligning clause keywords.
    So fixes are applied until the source doesn't change anymore,
    which guarantees that formatting an already formatted source
    doesn't change it.

    Raises :class:`sqlstyle.lint.reporter.ConflictError` when
    two fixes would edit the same part of the source.
    """
    for _ in range(MAX_FORMAT_PASSES):
        fixed = lint(source, options).render_fixes(source)
        if fixed == source:
            break
        source = fixed
    else:
        logger.warning("Formatting didn't settle after %d passes", MAX_FORMAT_PASSES)
    return source


class LintResult(NamedTuple):
    """The outcome of linting one of multiple documents.

    Only one between ``report`` and ``error`` is set,
    a document that failed to lint has no violations.
    """

    report: StyleReport | None
    error: SQLStyleError | None

    @property
    def failed(self) -> bool:
        return self.error is not None


def lint_document(source: str, options: LintOptions | None = None) -> LintResult:
    """Like :func:`lint`, but errors are returned as part of the result."""
    try:
        return LintResult(lint(source, options), None)
    except SQLStyleError as e:
        logger.debug("Linting failed: %s", e)
        return LintResult(None, e)


def lint_many(
    sources: Iterable[str],
    options: LintOptions | None = None,
    max_workers: int | None = 1,
) -> list[LintResult]:
    """Lint multiple documents, optionally in parallel.

    Documents are independent, a document that fails to lint
    doesn't prevent the others from being linted.
    Results are returned in the same order as the sources.

    :param sources: The SQL texts to lint.
    :param options: Options used for all the documents.
    :param max_workers: Number of processes to use, ``1`` lints in the
                        current process, ``None`` uses one process per CPU.
    """
    sources = list(sources)
    if max_workers == 1 or len(sources) < 2:
        return [lint_document(source, options) for source in sources]

    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lint_document, sources, repeat(options)))
