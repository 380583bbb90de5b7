"""Format tabular data into a text table for print.

the `tabulate` function takes a `pyarrow.RecordBatch` and formats it into a text table.
Long values are truncated and numbers are right aligned, so that columns of
line numbers read naturally. It's used by the ``sqlstyle`` command to print
the violations of a source when the table output is requested.

Example:

    >>> import pyarrow as pa
    >>> data = {
    ...     "line": [1, 12],
    ...     "rule_id": ["keyword_casing", "river_alignment"],
    ...     "fixable": [True, False],
    ... }
    >>> table = pa.RecordBatch.from_pydict(data)
    >>> print(tabulate(table))
    line | rule_id         | fixable
    ---- | --------------- | -------
       1 | keyword_casing  | yes
      12 | river_alignment | no
"""

from typing import Any

from pyarrow import RecordBatch


def tabulate(
    recordbatch: RecordBatch, max_rows: int | None = None, max_width: int = 60
) -> str:
    """Format a RecordBatch into a text table.

    Will produce a string like::

        line | column | severity | rule_id        | message
        ---- | ------ | -------- | -------------- | ---------------------------------
           1 |      0 | error    | keyword_casing | Keyword 'select' should be uppe...

    :param recordbatch: The data to format.
    :param max_rows: Only print up to this number of rows, ``None`` prints all of them.
    :param max_width: Values longer than this are truncated.
    """
    cols = recordbatch.column_names
    shown = recordbatch if max_rows is None else recordbatch.slice(length=max_rows)
    pyrows = shown.to_pylist()
    rows = [[format_value(row[c], max_width) for c in cols] for row in pyrows]
    numeric = [
        bool(pyrows) and all(_is_number(row[c]) for row in pyrows) for c in cols
    ]

    colsizes = compute_max_colsize(cols, rows)
    header = [maketablerow(cols, colsizes=colsizes)]
    separator = [maketablerow(["-"] * len(cols), colsizes=colsizes, fillvalue="-")]
    textrows = [maketablerow(row, colsizes=colsizes, rjust=numeric) for row in rows]

    table = "\n".join(header + separator + textrows)
    if recordbatch.num_rows > len(rows):
        table += f"\n... and {recordbatch.num_rows - len(rows)} more rows"
    return table


def compute_max_colsize(cols: list[str], rows: list[list[str]]) -> list[int]:
    """Compute the maximum size of each column in a table."""
    return [
        max([len(row[colidx]) for row in rows] + [len(col)])
        for colidx, col in enumerate(cols)
    ]


def maketablerow(
    cols: list[str],
    colsizes: list[int],
    fillvalue: str = " ",
    rjust: list[bool] | None = None,
) -> str:
    """Make a table row with the given column sizes.

    Columns flagged in ``rjust`` are aligned to the right.
    """
    rjust = rjust or [False] * len(cols)
    row = " | ".join(
        col.rjust(colsizes[idx], fillvalue)
        if rjust[idx]
        else col.ljust(colsizes[idx], fillvalue)
        for idx, col in enumerate(cols)
    )
    return row.rstrip()


def format_value(v: Any, max_width: int = 60) -> str:
    """Format a value to be printed in the table.

    Booleans are printed as yes/no, missing values as empty cells
    and values longer than ``max_width`` are truncated.
    """
    if v is None:
        return ""
    elif isinstance(v, bool):
        return "yes" if v else "no"
    elif isinstance(v, float):
        return f"{v:.2f}"

    v = str(v)
    if len(v) > max_width:
        v = v[: max_width - 3] + "..."
    return v


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)
