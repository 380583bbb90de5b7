"""Collect violations into reports and apply their fixes.

A :class:`StyleReport` is the outcome of linting a single source.
Violations in the report are always sorted by their position and
then by the identifier of the rule that reported them, so that
linting the same source always produces the same report, whatever
order the rules were run in.

Reports can be converted to a :class:`pyarrow.RecordBatch`
to be printed with :func:`sqlstyle.utils.tabulate.tabulate`
or further analysed like any other tabular data::

    >>> report([]).to_recordbatch().column_names
    ['line', 'column', 'severity', 'rule_id', 'message', 'fixable']
"""

import logging
from typing import Iterable, Iterator

import pyarrow as pa

from .errors import SQLStyleError
from .violations import Fix, Severity, Violation

logger = logging.getLogger(__name__)

REPORT_SCHEMA = pa.schema(
    [
        ("line", pa.int64()),
        ("column", pa.int64()),
        ("severity", pa.string()),
        ("rule_id", pa.string()),
        ("message", pa.string()),
        ("fixable", pa.bool_()),
    ]
)


class StyleReport:
    """The violations found in a source, sorted by position."""

    def __init__(self, violations: Iterable[Violation]) -> None:
        """
        :param violations: The violations to report, in any order.
        """
        self.violations = tuple(sorted(violations, key=lambda v: v.sort_key))

    def __iter__(self) -> Iterator[Violation]:
        return iter(self.violations)

    def __len__(self) -> int:
        return len(self.violations)

    def __getitem__(self, idx: int) -> Violation:
        return self.violations[idx]

    def __repr__(self) -> str:
        return f"StyleReport({len(self.violations)} violations)"

    @property
    def compliant(self) -> bool:
        """True when the source respects all the rules that were checked."""
        return not self.violations

    @property
    def errors(self) -> list[Violation]:
        return [v for v in self.violations if v.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Violation]:
        return [v for v in self.violations if v.severity == Severity.WARNING]

    def by_rule(self, rule_id: str) -> list[Violation]:
        return [v for v in self.violations if v.rule_id == rule_id]

    def fixes(self) -> list[Fix]:
        return [v.suggested_fix for v in self.violations if v.suggested_fix is not None]

    def render_fixes(self, source: str) -> str:
        """Return the source with the fixes of all the violations applied.

        :param source: The source the report was produced for.
        """
        return apply_fixes(source, self.violations)

    def to_recordbatch(self) -> pa.RecordBatch:
        """The report as a table with one row for each violation."""
        return pa.RecordBatch.from_pylist(
            [
                {
                    "line": v.position.line,
                    "column": v.position.column,
                    "severity": v.severity.value,
                    "rule_id": v.rule_id,
                    "message": v.message,
                    "fixable": v.suggested_fix is not None,
                }
                for v in self.violations
            ],
            schema=REPORT_SCHEMA,
        )


def report(violations: Iterable[Violation]) -> StyleReport:
    """Build the :class:`StyleReport` of a set of violations."""
    return StyleReport(violations)


def apply_fixes(source: str, violations: Iterable[Violation]) -> str:
    """Apply the suggested fixes of the violations to the source.

    Fixes are applied starting from the end of the source,
    so that applying a fix never moves the offsets of the fixes
    that are still to be applied.

    Two fixes touching the same part of the source can't be
    both applied, in such case :class:`ConflictError` is raised
    instead of picking one of them.
    """
    fixes = sorted(
        {v.suggested_fix for v in violations if v.suggested_fix is not None},
        key=lambda f: (f.start, f.end),
    )
    furthest = None
    for fix in fixes:
        if furthest is not None and furthest.overlaps(fix):
            raise ConflictError(furthest, fix)
        if furthest is None or fix.end >= furthest.end:
            furthest = fix

    logger.debug("Applying %d fixes", len(fixes))
    for fix in reversed(fixes):
        source = source[: fix.start] + fix.replacement + source[fix.end :]
    return source


class ConflictError(SQLStyleError):
    """An exception raised when two fixes edit the same part of the source."""

    def __init__(self, first: Fix, second: Fix) -> None:
        super().__init__(
            f"Conflicting fixes: {first.replacement!r} at {first.start}-{first.end} "
            f"and {second.replacement!r} at {second.start}-{second.end}"
        )
        self.fixes = (first, second)

    def __reduce__(self):
        return (self.__class__, self.fixes)
