import pickle

import pyarrow as pa
import pytest

from sqlstyle.lint.reporter import REPORT_SCHEMA, ConflictError, StyleReport, apply_fixes, report
from sqlstyle.lint.tokenize import Position
from sqlstyle.lint.violations import Fix, Severity, Violation


def violation(line, column, rule_id="keyword_casing", fix=None, severity=Severity.ERROR):
    return Violation(rule_id, severity, f"{rule_id} message", Position(line, column, 0), fix)


def fixes_only(*fixes):
    return [violation(1, 0, fix=fix) for fix in fixes]


def test_report_is_sorted():
    result = report(
        [
            violation(2, 0, "river_alignment"),
            violation(1, 5, "keyword_casing"),
            violation(1, 5, "comma_spacing"),
            violation(1, 0, "quoted_identifier"),
        ]
    )

    assert [(v.position.line, v.position.column, v.rule_id) for v in result] == [
        (1, 0, "quoted_identifier"),
        (1, 5, "comma_spacing"),
        (1, 5, "keyword_casing"),
        (2, 0, "river_alignment"),
    ]


def test_report_accessors():
    result = StyleReport(
        [
            violation(1, 0, "keyword_casing"),
            violation(2, 0, "river_alignment", severity=Severity.WARNING),
        ]
    )

    assert len(result) == 2
    assert result[1].rule_id == "river_alignment"
    assert not result.compliant
    assert [v.rule_id for v in result.errors] == ["keyword_casing"]
    assert [v.rule_id for v in result.warnings] == ["river_alignment"]
    assert result.by_rule("river_alignment") == [result[1]]
    assert repr(result) == "StyleReport(2 violations)"


def test_empty_report():
    result = report([])

    assert result.compliant
    assert list(result) == []
    assert result.fixes() == []


def test_violation_str():
    assert str(violation(3, 4)) == "3:4: error [keyword_casing] keyword_casing message"


def test_apply_fixes():
    source = "select a from staff"
    fixes = fixes_only(Fix(0, 6, "SELECT"), Fix(9, 13, "FROM"))

    assert apply_fixes(source, fixes) == "SELECT a FROM staff"


def test_apply_fixes_in_any_order():
    source = "SELECT a,b"
    fixes = fixes_only(Fix(9, 9, " "), Fix(0, 0, "  "), Fix(7, 8, "first_name"))

    assert apply_fixes(source, fixes) == "  SELECT first_name, b"


def test_apply_adjacent_fixes():
    assert apply_fixes("abcde", fixes_only(Fix(0, 3, "x"), Fix(3, 5, "y"))) == "xy"


def test_apply_duplicated_fixes_once():
    assert apply_fixes("ab", fixes_only(Fix(1, 1, "-"), Fix(1, 1, "-"))) == "a-b"


def test_apply_no_fixes():
    assert apply_fixes("SELECT 1", [violation(1, 0)]) == "SELECT 1"


@pytest.mark.parametrize(
    "first,second",
    [
        (Fix(0, 5, "a"), Fix(3, 8, "b")),
        (Fix(0, 10, "a"), Fix(2, 3, "b")),
        (Fix(4, 4, "a"), Fix(4, 4, "b")),
        (Fix(2, 6, "a"), Fix(4, 4, "b")),
    ],
)
def test_conflicting_fixes(first, second):
    with pytest.raises(ConflictError) as err:
        apply_fixes("0123456789", fixes_only(first, second))

    assert set(err.value.fixes) == {first, second}


def test_conflict_with_earlier_long_fix():
    fixes = fixes_only(Fix(0, 10, "a"), Fix(1, 2, "b"), Fix(8, 9, "c"))

    with pytest.raises(ConflictError):
        apply_fixes("0123456789", fixes)


def test_conflict_error_can_be_pickled():
    error = ConflictError(Fix(0, 5, "a"), Fix(3, 8, "b"))
    restored = pickle.loads(pickle.dumps(error))

    assert restored.fixes == error.fixes
    assert str(restored) == str(error)


def test_render_fixes():
    result = report(fixes_only(Fix(0, 6, "SELECT")))

    assert result.render_fixes("select 1") == "SELECT 1"


def test_report_to_recordbatch():
    result = report(
        [
            violation(2, 3, "river_alignment", severity=Severity.WARNING),
            violation(1, 0, fix=Fix(0, 6, "SELECT")),
        ]
    )
    batch = result.to_recordbatch()

    assert batch.schema == REPORT_SCHEMA
    assert batch.to_pydict() == {
        "line": [1, 2],
        "column": [0, 3],
        "severity": ["error", "warning"],
        "rule_id": ["keyword_casing", "river_alignment"],
        "message": ["keyword_casing message", "river_alignment message"],
        "fixable": [True, False],
    }


def test_empty_report_to_recordbatch():
    batch = report([]).to_recordbatch()

    assert batch.num_rows == 0
    assert isinstance(batch, pa.RecordBatch)
