import pyarrow as pa

from sqlstyle.utils.tabulate import format_value, tabulate


def test_tabulate():
    data = pa.RecordBatch.from_pydict(
        {
            "line": [1, 12],
            "rule_id": ["keyword_casing", "river_alignment"],
            "fixable": [True, False],
        }
    )

    assert tabulate(data).splitlines() == [
        "line | rule_id         | fixable",
        "---- | --------------- | -------",
        "   1 | keyword_casing  | yes",
        "  12 | river_alignment | no",
    ]


def test_tabulate_max_rows():
    data = pa.RecordBatch.from_pydict({"line": list(range(5))})

    assert tabulate(data, max_rows=2).splitlines() == [
        "line",
        "----",
        "   0",
        "   1",
        "... and 3 more rows",
    ]


def test_tabulate_truncates_long_values():
    data = pa.RecordBatch.from_pydict({"message": ["x" * 20]})

    assert tabulate(data, max_width=10).splitlines()[2] == "xxxxxxx..."


def test_tabulate_table():
    data = pa.table({"rule_id": ["comma_spacing"], "column": [4]})

    assert tabulate(data).splitlines()[2] == "comma_spacing |      4"


def test_format_value():
    assert format_value(None) == ""
    assert format_value(True) == "yes"
    assert format_value(1.5) == "1.50"
    assert format_value(7) == "7"
