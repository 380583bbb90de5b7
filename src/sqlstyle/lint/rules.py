"""The style rules checked by the linter.

Each rule is a plain function that receives the tokens of the source,
the :class:`sqlstyle.lint.segmenter.ClauseTree` built from them and the
:class:`sqlstyle.lint.options.LintOptions` of the run, and yields the
:class:`sqlstyle.lint.violations.Violation` it finds::

    @register("no_select_star", "SELECT * should list the columns instead.")
    def check_no_select_star(tokens, tree, options):
        for token in tokens:
            if token.text == "*":
                yield Violation("no_select_star", Severity.WARNING,
                                "List the columns explicitly", token.position)

Rules are registered by identifier in the :data:`RULES` registry,
they are independent from each other and never see the violations
reported by other rules, so the order in which they run doesn't matter.
A rule should never raise, whatever odd source it's given, it can
only report violations.

Rules that know how to resolve what they report attach a
:class:`sqlstyle.lint.violations.Fix` to the violation,
those fixes are applied by :func:`sqlstyle.lint.format`.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

from .keywords import is_reserved
from .options import LintOptions
from .segmenter import ClauseNode, ClauseTree, ClauseType
from .tokenize import Token, TokenKind
from .violations import Fix, Severity, Violation

logger = logging.getLogger(__name__)

CheckFunction = Callable[[list[Token], ClauseTree, LintOptions], Iterable[Violation]]


@dataclass(frozen=True)
class Rule:
    """A style rule registered in :data:`RULES`."""

    rule_id: str
    description: str
    check: CheckFunction
    fixable: bool = False


RULES: dict[str, Rule] = {}


def register(
    rule_id: str, description: str, fixable: bool = False
) -> Callable[[CheckFunction], CheckFunction]:
    """Decorator that registers a check function as a rule.

    :param rule_id: Unique identifier of the rule, used in reports and configuration.
    :param description: One line explanation of what the rule enforces.
    :param fixable: If the rule provides fixes for the violations it reports.
    """

    def _register(check: CheckFunction) -> CheckFunction:
        if rule_id in RULES:
            raise ValueError(f"Rule {rule_id!r} is already registered")
        RULES[rule_id] = Rule(rule_id, description, check, fixable)
        return check

    return _register


def unregister(rule_id: str) -> Rule:
    """Remove a rule from the registry, returning it."""
    return RULES.pop(rule_id)


def get_rule(rule_id: str) -> Rule:
    try:
        return RULES[rule_id]
    except KeyError:
        raise KeyError(f"Unknown rule: {rule_id}") from None


def run_rules(
    tokens: list[Token], tree: ClauseTree, options: LintOptions
) -> list[Violation]:
    """Run all the enabled rules and collect their violations.

    The violations are returned in the order rules produced them,
    see :func:`sqlstyle.lint.reporter.report` to sort them.
    """
    violations = []
    for rule_id, rule in RULES.items():
        if not options.is_enabled(rule_id):
            continue
        found = list(rule.check(tokens, tree, options))
        logger.debug("Rule %s reported %d violations", rule_id, len(found))
        violations.extend(found)
    return violations


def line_leaders(tokens: list[Token]) -> set[int]:
    """Indexes of the tokens that are the first non blank token of their line."""
    leaders = set()
    at_line_start = True
    for idx, token in enumerate(tokens):
        if token.kind == TokenKind.NEWLINE:
            at_line_start = True
        elif token.kind == TokenKind.WHITESPACE:
            continue
        else:
            if at_line_start:
                leaders.add(idx)
            at_line_start = False
    return leaders


def column_name(tree: ClauseTree, node: ClauseNode) -> Token | None:
    """The token naming the column of a ``COLUMN_DEFINITION`` node."""
    significant = tree.significant_tokens(node)
    if significant and significant[0][1].is_word:
        return significant[0][1]
    return None


def column_type(tree: ClauseTree, node: ClauseNode) -> Token | None:
    """The token with the data type of a ``COLUMN_DEFINITION`` node."""
    significant = tree.significant_tokens(node)
    if len(significant) > 1 and significant[1][1].is_word:
        return significant[1][1]
    return None


def _label(tree: ClauseTree, node: ClauseNode) -> str:
    name = column_name(tree, node)
    return name.unquoted_text if name is not None else ""


def _words(tree: ClauseTree, node: ClauseNode) -> list[tuple[int, str]]:
    return [
        (idx, token.normalized_text)
        for idx, token in tree.significant_tokens(node)
        if token.is_word and not token.quoted
    ]


def _find_sequence(words: list[tuple[int, str]], *sequence: str) -> list[int]:
    """Token indexes where the sequence of words starts."""
    found = []
    values = [w for _, w in words]
    for pos in range(len(values) - len(sequence) + 1):
        if tuple(values[pos : pos + len(sequence)]) == sequence:
            found.append(words[pos][0])
    return found


@register(
    "keyword_casing", "Reserved keywords must be written in the configured case.", fixable=True
)
def check_keyword_casing(
    tokens: list[Token], tree: ClauseTree, options: LintOptions
) -> Iterator[Violation]:
    for token in tokens:
        if token.kind != TokenKind.KEYWORD:
            continue
        if options.keyword_case == "upper":
            expected = token.text.upper()
        else:
            expected = token.text.lower()
        if token.text != expected:
            yield Violation(
                "keyword_casing",
                Severity.ERROR,
                f"Keyword {token.text!r} should be {options.keyword_case}case: {expected!r}",
                token.position,
                Fix(token.position.offset, token.end_offset, expected),
            )


CAMEL_CASE = re.compile(r"[a-z][A-Z]|[A-Z][a-z]")


@register(
    "identifier_naming",
    "Identifiers use lowercase words separated by single underscores and are short.",
)
def check_identifier_naming(
    tokens: list[Token], tree: ClauseTree, options: LintOptions
) -> Iterator[Violation]:
    """Report every naming problem of an identifier as a separate violation."""
    for token in tokens:
        if token.kind != TokenKind.IDENTIFIER:
            continue
        name = token.unquoted_text
        if not name:
            continue

        problems = []
        if CAMEL_CASE.search(name):
            problems.append("mixes upper and lower case letters (camelCase)")
        if not name[0].isalpha():
            problems.append("should begin with a letter")
        if name.endswith("_"):
            problems.append("should not end with an underscore")
        if "__" in name:
            problems.append("should not contain multiple consecutive underscores")
        size = len(name.encode("utf-8"))
        if size > options.max_identifier_length:
            problems.append(
                f"is {size} bytes long, more than {options.max_identifier_length}"
            )

        for problem in problems:
            yield Violation(
                "identifier_naming",
                Severity.ERROR,
                f"Identifier {name!r} {problem}",
                token.position,
            )


BARE_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@register(
    "quoted_identifier",
    "Identifiers should not be quoted, and when they must only double quotes are allowed.",
    fixable=True,
)
def check_quoted_identifier(
    tokens: list[Token], tree: ClauseTree, options: LintOptions
) -> Iterator[Violation]:
    for token in tokens:
        if not token.quoted or token.text[0] == '"':
            continue
        name = token.unquoted_text
        fix = None
        if BARE_IDENTIFIER.fullmatch(name) and not is_reserved(name):
            fix = Fix(token.position.offset, token.end_offset, name)
        yield Violation(
            "quoted_identifier",
            Severity.ERROR,
            f"Identifier {token.text} uses non standard quotes, "
            f"write it without quotes or with double quotes",
            token.position,
            fix,
        )


#: Clauses whose keywords line up to form the river.
RIVER_CLAUSES = frozenset(
    {
        ClauseType.SELECT,
        ClauseType.FROM,
        ClauseType.WHERE,
        ClauseType.GROUP_BY,
        ClauseType.ORDER_BY,
        ClauseType.HAVING,
        ClauseType.LIMIT,
        ClauseType.OFFSET,
        ClauseType.INSERT,
        ClauseType.VALUES,
        ClauseType.UPDATE,
        ClauseType.SET,
        ClauseType.DELETE,
    }
)


@register(
    "river_alignment",
    "Clause keywords are right aligned to form a river between keywords and their content.",
    fixable=True,
)
def check_river_alignment(
    tokens: list[Token], tree: ClauseTree, options: LintOptions
) -> Iterator[Violation]:
    """Check that clause keywords of a statement end at the same column.

    The river of a statement (or subquery) is the rightmost column where
    one of its clause keywords ends. Only the first clause and the clauses
    that start their own line are taken into account, so statements
    written on a single line are never reported.

    Keywords that start their line get a fix that indents them to the river.
    """
    if not options.enforce_river_alignment:
        return

    leaders = line_leaders(tokens)
    for container in tree.find_all(ClauseType.STATEMENT, ClauseType.SUBQUERY):
        clauses = [
            c for c in tree.children(container) if c.clause_type in RIVER_CLAUSES
        ]
        aligned = [
            c.start_token_index
            for pos, c in enumerate(clauses)
            if pos == 0 or c.start_token_index in leaders
        ]
        if len(aligned) < 2:
            continue

        river = max(tokens[idx].position.column + tokens[idx].length for idx in aligned)
        for idx in aligned:
            keyword = tokens[idx]
            if keyword.position.column + keyword.length == river:
                continue
            fix = None
            if idx in leaders:
                line_start = keyword.position.offset - keyword.position.column
                fix = Fix(line_start, keyword.position.offset, " " * (river - keyword.length))
            yield Violation(
                "river_alignment",
                Severity.WARNING,
                f"Keyword {keyword.text!r} should end at column {river} "
                f"to align with the other clauses",
                keyword.position,
                fix,
            )


DATE_TYPES = frozenset(
    {"DATE", "DATETIME", "DATETIME2", "SMALLDATETIME", "DATETIMEOFFSET", "TIMESTAMP", "TIMESTAMPTZ"}
)
SERIAL_TYPES = frozenset({"SERIAL", "SMALLSERIAL", "BIGSERIAL"})
IDENTITY_WORDS = frozenset({"IDENTITY", "AUTO_INCREMENT", "AUTOINCREMENT", "REFERENCES"})


@register(
    "suffix_convention",
    "Column names carry the suffix of their role, like _date for dates and _id for keys.",
)
def check_suffix_convention(
    tokens: list[Token], tree: ClauseTree, options: LintOptions
) -> Iterator[Violation]:
    for column in tree.find_all(ClauseType.COLUMN_DEFINITION):
        name = column_name(tree, column)
        datatype = column_type(tree, column)
        if name is None or datatype is None:
            continue

        words = _words(tree, column)
        if datatype.normalized_text in DATE_TYPES:
            role, suffix = "a date", "_date"
        elif (
            datatype.normalized_text in SERIAL_TYPES
            or any(w in IDENTITY_WORDS for _, w in words)
            or _find_sequence(words, "PRIMARY", "KEY")
        ):
            role, suffix = "an identifier", "_id"
        else:
            continue

        if not name.unquoted_text.lower().endswith(suffix):
            yield Violation(
                "suffix_convention",
                Severity.WARNING,
                f"Column {name.unquoted_text!r} holds {role}, its name should end with {suffix!r}",
                name.position,
            )


FLOATING_TYPES = frozenset({"FLOAT", "FLOAT4", "FLOAT8", "REAL", "DOUBLE"})
FLOATING_POINT_NOTE = re.compile(r"float|approximat|scientific", re.IGNORECASE)


@register(
    "data_type_preference",
    "Prefer exact NUMERIC or DECIMAL types over FLOAT and REAL.",
)
def check_data_type_preference(
    tokens: list[Token], tree: ClauseTree, options: LintOptions
) -> Iterator[Violation]:
    """Report floating point columns, unless a comment explains why they are needed.

    The comment can be within the column definition or at the end of its line.
    """
    for column in tree.find_all(ClauseType.COLUMN_DEFINITION):
        datatype = column_type(tree, column)
        if datatype is None or datatype.normalized_text not in FLOATING_TYPES:
            continue

        comments = [t for t in tree.tokens_of(column) if t.kind == TokenKind.COMMENT]
        for token in tokens[column.end_token_index :]:
            if token.kind == TokenKind.NEWLINE:
                break
            if token.kind == TokenKind.COMMENT:
                comments.append(token)
        if any(FLOATING_POINT_NOTE.search(c.text) for c in comments):
            continue

        yield Violation(
            "data_type_preference",
            Severity.WARNING,
            f"Column type {datatype.text} is a floating point type, "
            f"prefer NUMERIC or DECIMAL unless floating point math is really needed",
            datatype.position,
        )


@register(
    "union_temp_table_avoidance",
    "Avoid UNION clauses and temporary tables where possible.",
)
def check_union_temp_table_avoidance(
    tokens: list[Token], tree: ClauseTree, options: LintOptions
) -> Iterator[Violation]:
    for clause in tree.find_all(ClauseType.UNION, ClauseType.CREATE_TABLE):
        keyword = tokens[clause.start_token_index]
        if clause.clause_type == ClauseType.UNION:
            yield Violation(
                "union_temp_table_avoidance",
                Severity.WARNING,
                "Avoid UNION where possible, consider rewriting the query with joins or conditions",
                keyword.position,
            )
            continue

        words = _words(tree, clause)
        table_at = next(
            (pos for pos, (_, w) in enumerate(words) if w == "TABLE"), len(words)
        )
        # SQL Server names local and global temporary tables #name and ##name.
        hashed = any(
            token.kind == TokenKind.PUNCTUATION and token.text.startswith("#")
            for _, token in tree.significant_tokens(clause)
        )
        if hashed or any(w in ("TEMP", "TEMPORARY") for _, w in words[:table_at]):
            yield Violation(
                "union_temp_table_avoidance",
                Severity.WARNING,
                "Avoid temporary tables where possible",
                keyword.position,
            )


@register(
    "constraint_ordering",
    "Primary key first, table constraints after the columns, ON DELETE before ON UPDATE.",
)
def check_constraint_ordering(
    tokens: list[Token], tree: ClauseTree, options: LintOptions
) -> Iterator[Violation]:
    for column_list in tree.find_all(ClauseType.COLUMN_LIST):
        items = tree.children(column_list)
        columns = [i for i in items if i.clause_type == ClauseType.COLUMN_DEFINITION]

        seen_constraint = False
        for item in items:
            if item.clause_type == ClauseType.CONSTRAINT:
                seen_constraint = True
            elif item.clause_type == ClauseType.COLUMN_DEFINITION and seen_constraint:
                yield Violation(
                    "constraint_ordering",
                    Severity.WARNING,
                    f"Column {_label(tree, item)!r} is defined after a table constraint, "
                    f"table constraints go after all the columns",
                    tokens[item.start_token_index].position,
                )

        for pos, column in enumerate(columns):
            if pos > 0 and _find_sequence(_words(tree, column), "PRIMARY", "KEY"):
                yield Violation(
                    "constraint_ordering",
                    Severity.WARNING,
                    f"Primary key column {_label(tree, column)!r} should be the first column",
                    tokens[column.start_token_index].position,
                )

        for item in items:
            words = _words(tree, item)
            on_delete = _find_sequence(words, "ON", "DELETE")
            on_update = _find_sequence(words, "ON", "UPDATE")
            if on_delete and on_update and on_update[0] < on_delete[0]:
                yield Violation(
                    "constraint_ordering",
                    Severity.WARNING,
                    "ON DELETE should come before ON UPDATE",
                    tokens[on_update[0]].position,
                )


@register(
    "comma_spacing",
    "Commas are followed by a space and never preceded by one.",
    fixable=True,
)
def check_comma_spacing(
    tokens: list[Token], tree: ClauseTree, options: LintOptions
) -> Iterator[Violation]:
    blank = (TokenKind.WHITESPACE, TokenKind.NEWLINE)
    for idx, token in enumerate(tokens):
        if token.kind != TokenKind.PUNCTUATION or token.text != ",":
            continue

        if idx > 1 and tokens[idx - 1].kind == TokenKind.WHITESPACE:
            before = tokens[idx - 1]
            # Whitespace at the start of the line is indentation.
            if tokens[idx - 2].kind != TokenKind.NEWLINE:
                yield Violation(
                    "comma_spacing",
                    Severity.WARNING,
                    "Unexpected whitespace before comma",
                    token.position,
                    Fix(before.position.offset, before.end_offset, ""),
                )

        if idx + 1 < len(tokens) and tokens[idx + 1].kind not in blank:
            yield Violation(
                "comma_spacing",
                Severity.WARNING,
                "Missing space after comma",
                token.position,
                Fix(token.end_offset, token.end_offset, " "),
            )


DESCRIPTIVE_PREFIX = re.compile(r"(tbl|sp|usp|vw|fn|udf)_", re.IGNORECASE)


@register(
    "identifier_prefix",
    "Avoid descriptive prefixes and Hungarian notation like tbl_ or sp_.",
)
def check_identifier_prefix(
    tokens: list[Token], tree: ClauseTree, options: LintOptions
) -> Iterator[Violation]:
    for token in tokens:
        if token.kind != TokenKind.IDENTIFIER:
            continue
        match = DESCRIPTIVE_PREFIX.match(token.unquoted_text)
        if match:
            yield Violation(
                "identifier_prefix",
                Severity.WARNING,
                f"Identifier {token.unquoted_text!r} uses the descriptive prefix {match.group(0)!r}",
                token.position,
            )
