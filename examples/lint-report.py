import os

import pyarrow.compute as pc

from sqlstyle.lint import format, lint
from sqlstyle.utils.tabulate import tabulate

QUERY = os.path.join(os.path.dirname(__file__), "queries", "monthly_report.sql")

with open(QUERY, encoding="utf-8") as f:
    source = f.read()

report = lint(source)
print(tabulate(report.to_recordbatch()))

print("---")
print(pc.value_counts(report.to_recordbatch().column("rule_id")))

print("---")
print(format(source))
