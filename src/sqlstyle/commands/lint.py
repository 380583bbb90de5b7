"""Command line interface for checking the style of SQL files.

This module provides a command line interface for checking SQL files
based on :func:`sqlstyle.lint.lint` and fixing them with :func:`sqlstyle.lint.format`.

The violations found are printed to the console one per line, or in a
tabular format using the :mod:`sqlstyle.utils.tabulate` module.
"""

import argparse
import dataclasses
import glob
import logging
import os
import sys

import pyarrow as pa

from sqlstyle.config import ConfigError, find_config, load_options
from sqlstyle.lint import RULES, LintOptions, SQLStyleError, lint_many
from sqlstyle.lint import format as format_source
from sqlstyle.lint.reporter import REPORT_SCHEMA
from sqlstyle.utils import tabulate

logger = logging.getLogger(__name__)

STDIN = "-"

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_FATAL = 2


def main(argv: list[str] | None = None) -> int:
    """Parse the command line arguments and lint the requested files."""
    parser = argparse.ArgumentParser(
        prog="sqlstyle", description="Check and fix the style of SQL files."
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Files, directories or glob patterns to check, - reads from stdin.",
    )
    parser.add_argument("-c", "--config", help="Read the options from this TOML file.")
    parser.add_argument(
        "-f",
        "--format",
        dest="output",
        choices=("text", "table"),
        default="text",
        help="How to print the violations.",
    )
    parser.add_argument(
        "--fix", action="store_true", help="Fix the violations that can be fixed."
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=job_count,
        default=1,
        help="Number of processes used to check the files, 0 uses all the CPUs.",
    )
    parser.add_argument(
        "--rules", help="Comma separated identifiers of the only rules to check."
    )
    parser.add_argument("--max-identifier-length", type=int)
    parser.add_argument("--keyword-case", choices=("upper", "lower"))
    parser.add_argument(
        "--no-river",
        action="store_true",
        help="Don't check the alignment of clause keywords.",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument(
        "--list-rules", action="store_true", help="List the available rules and exit."
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.list_rules:
        print(list_rules())
        return EXIT_OK

    try:
        options = build_options(args)
    except ConfigError as e:
        print(f"sqlstyle: {e}", file=sys.stderr)
        return EXIT_FATAL

    try:
        paths = discover(args.paths or [STDIN])
    except FileNotFoundError as e:
        print(f"sqlstyle: {e}", file=sys.stderr)
        return EXIT_FATAL

    status = EXIT_OK
    names, sources = [], []
    for path in paths:
        try:
            sources.append(read_source(path))
            names.append(path)
        except (OSError, UnicodeDecodeError) as e:
            print(f"{path}: fatal: unable to read file, {e}", file=sys.stderr)
            status = EXIT_FATAL

    if args.fix:
        fixed_names, fixed_sources = [], []
        for name, source in zip(names, sources):
            try:
                fixed = format_source(source, options)
            except SQLStyleError as e:
                print(f"{name}: fatal: {e}", file=sys.stderr)
                status = EXIT_FATAL
                continue
            if name == STDIN:
                sys.stdout.write(fixed)
            elif fixed != source:
                logger.info("Fixed %s", name)
                write_source(name, fixed)
            fixed_names.append(name)
            fixed_sources.append(fixed)
        names, sources = fixed_names, fixed_sources

    results = lint_many(sources, options, max_workers=args.jobs or None)

    reports = []
    for name, result in zip(names, results):
        if result.failed:
            print(f"{name}: fatal: {result.error}", file=sys.stderr)
            status = EXIT_FATAL
            continue
        if not result.report.compliant and status == EXIT_OK:
            status = EXIT_VIOLATIONS
        reports.append((name, result.report))

    # With --fix on stdin the output is the fixed source itself.
    if not (args.fix and names == [STDIN]):
        output = render_table(reports) if args.output == "table" else render_text(reports)
        if output:
            print(output)
    return status


def job_count(value: str) -> int:
    """Parse the number of processes of the --jobs option."""
    jobs = int(value)
    if jobs < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or a positive number, got {jobs}")
    return jobs


def build_options(args: argparse.Namespace) -> LintOptions:
    """Load the options from the settings file and apply the command line overrides."""
    config = args.config or find_config(os.getcwd())
    if config:
        logger.debug("Using settings from %s", config)
        options = load_options(config)
    else:
        options = LintOptions()

    overrides = {}
    if args.rules:
        rules = frozenset(r.strip() for r in args.rules.split(",") if r.strip())
        unknown = sorted(rules - set(RULES))
        if unknown:
            raise ConfigError(f"unknown rules {', '.join(unknown)}")
        overrides["enabled_rules"] = rules
    if args.max_identifier_length is not None:
        overrides["max_identifier_length"] = args.max_identifier_length
    if args.keyword_case is not None:
        overrides["keyword_case"] = args.keyword_case
    if args.no_river:
        overrides["enforce_river_alignment"] = False

    try:
        return dataclasses.replace(options, **overrides)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def discover(paths: list[str]) -> list[str]:
    """Expand directories and glob patterns into the list of files to check.

    Directories are searched recursively for ``*.sql`` files.
    Raises :class:`FileNotFoundError` for paths that match nothing.
    """
    found = []
    for path in paths:
        if path == STDIN or os.path.isfile(path):
            found.append(path)
        elif os.path.isdir(path):
            pattern = os.path.join(path, "**", "*.sql")
            found.extend(sorted(glob.glob(pattern, recursive=True)))
        else:
            matches = sorted(p for p in glob.glob(path, recursive=True) if os.path.isfile(p))
            if not matches:
                raise FileNotFoundError(f"No such file or directory: {path}")
            found.extend(matches)

    # The same file could be matched by multiple paths.
    return list(dict.fromkeys(found))


def read_source(path: str) -> str:
    if path == STDIN:
        return sys.stdin.read()
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def write_source(path: str, source: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(source)


def render_text(reports: list) -> str:
    """One line for each violation, prefixed by the file it was found in."""
    return "\n".join(
        f"{name}:{violation}" for name, report in reports for violation in report
    )


def render_table(reports: list) -> str:
    """All the violations as a single table, with a column for the file."""
    schema = REPORT_SCHEMA.insert(0, pa.field("path", pa.string()))
    rows = [
        {"path": name, **row}
        for name, report in reports
        for row in report.to_recordbatch().to_pylist()
    ]
    table = pa.Table.from_pylist(rows, schema=schema)
    if table.num_rows == 0:
        return ""
    return tabulate.tabulate(table)


def list_rules() -> str:
    """The registered rules, one per line."""
    width = max(len(rule_id) for rule_id in RULES)
    return "\n".join(
        f"{rule.rule_id.ljust(width)}  {'[fixable] ' if rule.fixable else ''}{rule.description}"
        for rule in RULES.values()
    )


if __name__ == "__main__":
    sys.exit(main())
