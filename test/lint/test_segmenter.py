import pytest

from sqlstyle.lint.keywords import classify_tokens
from sqlstyle.lint.segmenter import ClauseType, StructureError, segment
from sqlstyle.lint.tokenize import Position, tokenize


def segment_source(source):
    return segment(list(classify_tokens(tokenize(source))))


def shape(tree, node=None):
    """The tree as nested (type, children) tuples, without the positions."""
    node = node if node is not None else tree.root
    return (node.clause_type.value, [shape(tree, c) for c in tree.children(node)])


def statement_shapes(source):
    tree = segment_source(source)
    return [shape(tree, s)[1] for s in tree.statements()]


def test_segment_select_query():
    tree = segment_source("SELECT id FROM staff WHERE salary >= 18")

    assert tree.to_dict() == {
        "type": "script",
        "start": 0,
        "end": 15,
        "depth": 0,
        "children": [
            {
                "type": "statement",
                "start": 0,
                "end": 15,
                "depth": 0,
                "children": [
                    {"type": "select", "start": 0, "end": 4, "depth": 0, "children": []},
                    {"type": "from", "start": 4, "end": 8, "depth": 0, "children": []},
                    {"type": "where", "start": 8, "end": 15, "depth": 0, "children": []},
                ],
            }
        ],
    }


def test_segment_multiple_statements():
    tree = segment_source("SELECT 1; SELECT 2;\n\n")
    statements = tree.statements()

    assert len(statements) == 2
    assert (statements[0].start_token_index, statements[0].end_token_index) == (0, 4)
    assert (statements[1].start_token_index, statements[1].end_token_index) == (4, 9)
    # The clause stops before the semicolon, the statement includes it.
    assert tree.children(statements[0])[0].end_token_index == 3


def test_segment_empty_statements():
    assert segment_source(";;\n;").statements() == []
    assert segment_source("").statements() == []


def test_segment_unknown_statement():
    assert statement_shapes("VACUUM staff") == [[]]


def test_segment_subquery():
    tree = segment_source("SELECT a FROM (SELECT b FROM staff) x")

    assert shape(tree) == (
        "script",
        [
            (
                "statement",
                [
                    ("select", []),
                    ("from", [("subquery", [("select", []), ("from", [])])]),
                ],
            )
        ],
    )
    (subquery,) = tree.find_all(ClauseType.SUBQUERY)
    assert subquery.nesting_depth == 1
    assert (subquery.start_token_index, subquery.end_token_index) == (6, 15)
    assert [c.nesting_depth for c in tree.children(subquery)] == [1, 1]
    assert tree.children(subquery)[1].end_token_index == 14


def test_segment_nested_groups_depth():
    tree = segment_source(
        "SELECT first_name\n"
        "  FROM staff\n"
        " WHERE salary > (SELECT AVG(salary) FROM staff);"
    )

    (group,) = tree.find_all(ClauseType.GROUP)
    assert group.nesting_depth == 2
    assert tree.parent(group).clause_type == ClauseType.SELECT
    assert tree.parent(tree.parent(group)).clause_type == ClauseType.SUBQUERY


def test_segment_function_call_is_not_a_clause():
    tree = segment_source("SELECT EXTRACT(YEAR FROM hired_date) FROM staff")

    assert shape(tree)[1][0][1] == [("select", [("group", [])]), ("from", [])]


@pytest.mark.parametrize(
    "source,clauses",
    [
        (
            "SELECT a FROM staff LEFT OUTER JOIN dept ON staff.x = dept.x",
            ["select", "from", "join"],
        ),
        (
            "SELECT a FROM staff GROUP BY a HAVING COUNT(*) > 1 ORDER BY a LIMIT 5 OFFSET 2",
            ["select", "from", "group_by", "having", "order_by", "limit", "offset"],
        ),
        ("DELETE FROM staff WHERE a = 1", ["delete", "where"]),
        ("UPDATE staff SET a = 1 WHERE b = 2", ["update", "set", "where"]),
        ("SELECT a FROM staff WHERE a IS DISTINCT FROM b", ["select", "from", "where"]),
        (
            "SELECT a FROM staff UNION SELECT a FROM dept",
            ["select", "from", "union", "select", "from"],
        ),
        ("SELECT a FROM staff FOR UPDATE", ["select", "from"]),
        ("SELECT a FROM staff ORDER_BY", ["select", "from"]),
    ],
)
def test_segment_clauses(source, clauses):
    (statement,) = statement_shapes(source)

    assert [clause for clause, _ in statement] == clauses


def test_segment_insert_values():
    assert statement_shapes("INSERT INTO staff (a, b) VALUES (1, 2)") == [
        [("insert", [("group", [])]), ("values", [("group", [])])]
    ]


def test_segment_with_clause():
    assert statement_shapes("WITH latest AS (SELECT 1) SELECT x FROM latest") == [
        [
            ("with", [("subquery", [("select", [])])]),
            ("select", []),
            ("from", []),
        ]
    ]


def test_segment_create_table():
    tree = segment_source(
        "CREATE TABLE staff (\n"
        "  staff_id INT PRIMARY KEY,\n"
        "  hired_date DATE,\n"
        "  CONSTRAINT uq_hired UNIQUE (hired_date)\n"
        ")"
    )

    assert shape(tree)[1][0][1] == [
        (
            "create_table",
            [
                (
                    "column_list",
                    [
                        ("column_definition", []),
                        ("column_definition", []),
                        ("constraint", [("group", [])]),
                    ],
                )
            ],
        )
    ]

    first, second, constraint = tree.find_all(
        ClauseType.COLUMN_DEFINITION, ClauseType.CONSTRAINT
    )
    assert "".join(t.text for t in tree.tokens_of(first)) == "staff_id INT PRIMARY KEY"
    assert "".join(t.text for t in tree.tokens_of(second)) == "hired_date DATE"
    assert (
        "".join(t.text for t in tree.tokens_of(constraint))
        == "CONSTRAINT uq_hired UNIQUE (hired_date)"
    )


def test_segment_create_temporary_table():
    (statement,) = statement_shapes("CREATE TEMPORARY TABLE scratch (a INT)")

    assert statement == [("create_table", [("column_list", [("column_definition", [])])])]


def test_segment_create_index_is_not_a_table():
    assert statement_shapes("CREATE INDEX idx ON staff (a)") == [[("group", [])]]


def test_segment_unbalanced_open_parenthesis():
    with pytest.raises(StructureError) as err:
        segment_source("SELECT (1")

    assert err.value.message == "Unbalanced parenthesis '('"
    assert err.value.position == Position(1, 7, 7)


def test_segment_unbalanced_close_parenthesis():
    with pytest.raises(StructureError) as err:
        segment_source("SELECT 1)")

    assert err.value.message == "Unbalanced parenthesis ')'"
    assert err.value.position == Position(1, 8, 8)


def test_segment_children_within_parents():
    tree = segment_source(
        "WITH latest AS (SELECT a FROM staff WHERE b IN (SELECT c FROM dept))\n"
        "SELECT x, COUNT(*)\n"
        "  FROM latest\n"
        "  JOIN dept ON (latest.a = dept.a)\n"
        " GROUP BY x;\n"
        "CREATE TABLE scratch (a INT, CHECK (a > 0));"
    )

    for node in tree.walk():
        assert node.start_token_index <= node.end_token_index
        parent = tree.parent(node)
        if parent is None:
            continue
        assert parent.start_token_index <= node.start_token_index
        assert node.end_token_index <= parent.end_token_index
        siblings = tree.children(parent)
        position = siblings.index(node)
        if position > 0:
            assert siblings[position - 1].end_token_index <= node.start_token_index


def test_significant_tokens():
    tree = segment_source("SELECT a /* note */ , b")
    (select,) = tree.find_all(ClauseType.SELECT)

    assert [t.text for _, t in tree.significant_tokens(select)] == ["SELECT", "a", ",", "b"]
    assert all(tree.tokens[idx] is t for idx, t in tree.significant_tokens(select))


def test_walk_is_depth_first():
    tree = segment_source("SELECT (SELECT 1) FROM staff")

    assert [n.clause_type for n in tree.walk()] == [
        ClauseType.SCRIPT,
        ClauseType.STATEMENT,
        ClauseType.SELECT,
        ClauseType.SUBQUERY,
        ClauseType.SELECT,
        ClauseType.FROM,
    ]
