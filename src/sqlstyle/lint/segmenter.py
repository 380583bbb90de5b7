"""Group a stream of tokens into statements and clauses.

The segmenter is the nearest thing to a parser that the linter has,
but it's intentionally shallow. It doesn't build an expression tree,
it only needs to know where each clause of a statement starts and ends
and how deep it's nested within parentheses, as that's what style rules
need to know to check things like the alignment of clause keywords.

Given a query like::

    SELECT first_name
      FROM staff
     WHERE salary > (SELECT AVG(salary) FROM staff);

the segmenter would produce a tree like::

    SCRIPT
      STATEMENT
        SELECT                "SELECT first_name"
        FROM                  "FROM staff"
        WHERE                 "WHERE salary > (...)"
          SUBQUERY            "(SELECT AVG(salary) FROM staff)"
            SELECT
              GROUP           "(salary)"
            FROM

The segmenter is permissive by design of what it models: style and not
grammar validity. Clauses in unusual orders or unknown statements are
accepted as they are, the only error it can detect are unbalanced
parentheses, reported as :class:`StructureError`.

Nodes are stored in an arena, the :attr:`ClauseTree.nodes` list,
and refer to their parent and children by index in the arena.
This makes the tree trivial to walk in any direction and to serialize
via :meth:`ClauseTree.to_dict`.
"""

import enum
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .errors import SourceError
from .tokenize import Token, TokenKind


class ClauseType(enum.Enum):
    """The kind of segment a :class:`ClauseNode` represents."""

    SCRIPT = "script"
    STATEMENT = "statement"
    WITH = "with"
    SELECT = "select"
    FROM = "from"
    WHERE = "where"
    JOIN = "join"
    GROUP_BY = "group_by"
    ORDER_BY = "order_by"
    HAVING = "having"
    LIMIT = "limit"
    OFFSET = "offset"
    UNION = "union"
    INTERSECT = "intersect"
    EXCEPT = "except"
    INSERT = "insert"
    VALUES = "values"
    UPDATE = "update"
    SET = "set"
    DELETE = "delete"
    CREATE_TABLE = "create_table"
    COLUMN_LIST = "column_list"
    COLUMN_DEFINITION = "column_definition"
    CONSTRAINT = "constraint"
    SUBQUERY = "subquery"
    GROUP = "group"


#: Nodes that contain clauses, statements and subqueries.
CLAUSE_CONTAINERS = frozenset({ClauseType.STATEMENT, ClauseType.SUBQUERY})

#: Words that can precede JOIN as part of the same clause.
JOIN_MODIFIERS = frozenset({"INNER", "LEFT", "RIGHT", "FULL", "OUTER", "CROSS", "NATURAL"})

#: Words that can appear between CREATE and TABLE.
CREATE_TABLE_MODIFIERS = frozenset(
    {"OR", "REPLACE", "GLOBAL", "LOCAL", "TEMP", "TEMPORARY", "UNLOGGED"}
)

#: Words starting a table level constraint within a CREATE TABLE column list.
CONSTRAINT_LEADERS = frozenset(
    {"CONSTRAINT", "PRIMARY", "FOREIGN", "UNIQUE", "CHECK", "EXCLUDE", "INDEX", "KEY"}
)

SIMPLE_CLAUSES = {
    "SELECT": ClauseType.SELECT,
    "WHERE": ClauseType.WHERE,
    "HAVING": ClauseType.HAVING,
    "LIMIT": ClauseType.LIMIT,
    "OFFSET": ClauseType.OFFSET,
    "UNION": ClauseType.UNION,
    "INTERSECT": ClauseType.INTERSECT,
    "EXCEPT": ClauseType.EXCEPT,
    "INSERT": ClauseType.INSERT,
    "VALUES": ClauseType.VALUES,
    "DELETE": ClauseType.DELETE,
    "STRAIGHT_JOIN": ClauseType.JOIN,
}


@dataclass
class ClauseNode:
    """A segment of the token stream.

    The node covers tokens from ``start_token_index`` (included)
    to ``end_token_index`` (excluded).
    """

    index: int
    clause_type: ClauseType
    start_token_index: int
    end_token_index: int
    nesting_depth: int
    parent: int | None = None
    children: list[int] = field(default_factory=list)

    def __contains__(self, token_index: int) -> bool:
        return self.start_token_index <= token_index < self.end_token_index


class ClauseTree:
    """The clauses of a SQL source, as produced by :func:`segment`.

    The first node of the arena is always the synthetic ``SCRIPT``
    root which covers the whole source, its children are the statements.
    """

    def __init__(self, tokens: list[Token]) -> None:
        """
        :param tokens: The tokens the clauses refer to.
        """
        self.tokens = tokens
        self.nodes: list[ClauseNode] = []

    def add(
        self, clause_type: ClauseType, start: int, depth: int, parent: ClauseNode | None
    ) -> ClauseNode:
        """Add a new node to the arena, linking it to its parent.

        The node initially covers everything up to the end of the source,
        the segmenter narrows it down when it finds where the node ends.
        """
        node = ClauseNode(
            index=len(self.nodes),
            clause_type=clause_type,
            start_token_index=start,
            end_token_index=len(self.tokens),
            nesting_depth=depth,
            parent=parent.index if parent is not None else None,
        )
        self.nodes.append(node)
        if parent is not None:
            parent.children.append(node.index)
        return node

    @property
    def root(self) -> ClauseNode:
        return self.nodes[0]

    def children(self, node: ClauseNode) -> list[ClauseNode]:
        return [self.nodes[idx] for idx in node.children]

    def parent(self, node: ClauseNode) -> ClauseNode | None:
        if node.parent is None:
            return None
        return self.nodes[node.parent]

    def walk(self, node: ClauseNode | None = None) -> Iterator[ClauseNode]:
        """Iterate over a node and all its descendants, depth first."""
        node = node if node is not None else self.root
        yield node
        for child in self.children(node):
            yield from self.walk(child)

    def find_all(self, *clause_types: ClauseType) -> list[ClauseNode]:
        """All the nodes of the given types, in source order."""
        return [n for n in self.walk() if n.clause_type in clause_types]

    def statements(self) -> list[ClauseNode]:
        return self.children(self.root)

    def tokens_of(self, node: ClauseNode) -> list[Token]:
        return self.tokens[node.start_token_index : node.end_token_index]

    def significant_tokens(self, node: ClauseNode) -> list[tuple[int, Token]]:
        """``(index, token)`` pairs of the node, excluding whitespace and comments."""
        return [
            (idx, self.tokens[idx])
            for idx in range(node.start_token_index, node.end_token_index)
            if not self.tokens[idx].is_trivia
        ]

    def to_dict(self, node: ClauseNode | None = None) -> dict:
        """Serialize a subtree (the whole tree by default) to plain dictionaries.

        Each node looks like::

            {"type": "select", "start": 0, "end": 4, "depth": 0, "children": [...]}
        """
        node = node if node is not None else self.root
        return {
            "type": node.clause_type.value,
            "start": node.start_token_index,
            "end": node.end_token_index,
            "depth": node.nesting_depth,
            "children": [self.to_dict(child) for child in self.children(node)],
        }


class _Scope:
    """A region of the source the segmenter is currently within.

    A scope is a statement or a parenthesized group, it tracks
    the clause (or column list item) that is currently open within it.
    """

    def __init__(self, node: ClauseNode) -> None:
        self.node = node
        self.open_child: ClauseNode | None = None
        self.last_significant: int | None = None
        self.previous_word: str | None = None
        self.has_column_list = False

    @property
    def splits_clauses(self) -> bool:
        return self.node.clause_type in CLAUSE_CONTAINERS

    @property
    def splits_items(self) -> bool:
        return self.node.clause_type == ClauseType.COLUMN_LIST

    @property
    def innermost(self) -> ClauseNode:
        """The node new nested groups should be attached to."""
        return self.open_child if self.open_child is not None else self.node


class Segmenter:
    """Build the :class:`ClauseTree` of a token sequence.

    The tokens are scanned only once, keeping a stack of the
    parenthesized groups that are currently open. Within statements
    and subqueries, a clause leading keyword closes the previous clause
    and opens a new one. Within the column list of a ``CREATE TABLE``
    commas separate column definitions and constraints.
    Within any other parenthesized group no clause is detected,
    so that things like ``EXTRACT(YEAR FROM created_date)`` don't
    look like a FROM clause.
    """

    def __init__(self, tokens: Iterable[Token]) -> None:
        """
        :param tokens: The tokens to segment, as produced by the tokenizer.
        """
        self.tokens = list(tokens)
        self._significant = [
            idx for idx, token in enumerate(self.tokens) if not token.is_trivia
        ]
        self._significant_pos = {idx: pos for pos, idx in enumerate(self._significant)}

    def segment(self) -> ClauseTree:
        """Scan the tokens and return the tree of clauses."""
        tree = ClauseTree(self.tokens)
        root = tree.add(ClauseType.SCRIPT, 0, depth=0, parent=None)

        groups: list[_Scope] = []
        statement: _Scope | None = None
        statement_start = 0
        for idx, token in enumerate(self.tokens):
            if token.is_trivia:
                continue

            if self._is_punctuation(token, ";") and not groups:
                if statement is not None:
                    self._close_scope(statement, idx, end=idx + 1)
                    statement = None
                statement_start = idx + 1
                continue

            if statement is None:
                statement = _Scope(
                    tree.add(ClauseType.STATEMENT, statement_start, depth=0, parent=root)
                )
            scope = groups[-1] if groups else statement

            if self._is_punctuation(token, "("):
                if scope.splits_items and scope.open_child is None:
                    self._open_item(tree, scope, idx, token)
                scope.last_significant = idx
                scope.previous_word = None
                groups.append(self._open_group(tree, scope, idx, depth=len(groups) + 1))
                continue

            if self._is_punctuation(token, ")"):
                if not groups:
                    raise StructureError("Unbalanced parenthesis ')'", token.position)
                self._close_scope(groups.pop(), idx, end=idx + 1)
                outer = groups[-1] if groups else statement
                outer.last_significant = idx
                outer.previous_word = None
                continue

            if scope.splits_items:
                if self._is_punctuation(token, ","):
                    self._close_item(scope)
                    continue
                if scope.open_child is None:
                    self._open_item(tree, scope, idx, token)
            elif scope.splits_clauses:
                clause_type = self._clause_at(idx, scope)
                if clause_type is not None:
                    if scope.open_child is not None:
                        scope.open_child.end_token_index = idx
                    scope.open_child = tree.add(
                        clause_type, idx, depth=scope.node.nesting_depth, parent=scope.node
                    )
                    scope.has_column_list = False

            scope.last_significant = idx
            scope.previous_word = self._word(token)

        if groups:
            unmatched = self.tokens[groups[-1].node.start_token_index]
            raise StructureError("Unbalanced parenthesis '('", unmatched.position)
        if statement is not None:
            self._close_scope(statement, len(self.tokens), end=len(self.tokens))
        return tree

    def _open_group(
        self, tree: ClauseTree, scope: _Scope, idx: int, depth: int
    ) -> _Scope:
        parent = scope.innermost
        first_word = self._word_at(self._next_significant(idx, 1))
        if first_word in ("SELECT", "WITH"):
            group_type = ClauseType.SUBQUERY
        elif (
            scope.splits_clauses
            and scope.open_child is not None
            and scope.open_child.clause_type == ClauseType.CREATE_TABLE
            and not scope.has_column_list
        ):
            scope.has_column_list = True
            group_type = ClauseType.COLUMN_LIST
        else:
            group_type = ClauseType.GROUP
        return _Scope(tree.add(group_type, idx, depth=depth, parent=parent))

    def _close_scope(self, scope: _Scope, idx: int, end: int) -> None:
        """Close a statement or group at the token ``idx`` which terminates it."""
        if scope.splits_items:
            self._close_item(scope)
        elif scope.open_child is not None:
            scope.open_child.end_token_index = idx
            scope.open_child = None
        scope.node.end_token_index = end

    def _open_item(
        self, tree: ClauseTree, scope: _Scope, idx: int, token: Token
    ) -> None:
        if self._word(token) in CONSTRAINT_LEADERS:
            item_type = ClauseType.CONSTRAINT
        else:
            item_type = ClauseType.COLUMN_DEFINITION
        scope.open_child = tree.add(
            item_type, idx, depth=scope.node.nesting_depth, parent=scope.node
        )

    def _close_item(self, scope: _Scope) -> None:
        # Items end at their last significant token, the whitespace
        # around commas belongs to the column list itself.
        if scope.open_child is not None:
            scope.open_child.end_token_index = scope.last_significant + 1
            scope.open_child = None

    def _clause_at(self, idx: int, scope: _Scope) -> ClauseType | None:
        """Detect if the token at ``idx`` starts a new clause."""
        word = self._word(self.tokens[idx])
        if word is None:
            return None
        previous = scope.previous_word

        if word == "WITH":
            return ClauseType.WITH if scope.last_significant is None else None
        if word == "FROM":
            # DELETE FROM and IS DISTINCT FROM are not FROM clauses
            return ClauseType.FROM if previous not in ("DELETE", "DISTINCT") else None
        if word in ("GROUP", "ORDER"):
            if self._word_at(self._next_significant(idx, 1)) == "BY":
                return ClauseType.GROUP_BY if word == "GROUP" else ClauseType.ORDER_BY
            return None
        if word == "UPDATE":
            # SELECT ... FOR UPDATE, ON DUPLICATE KEY UPDATE, DO UPDATE
            return ClauseType.UPDATE if previous not in ("FOR", "KEY", "ON", "DO") else None
        if word == "SET":
            return ClauseType.SET if previous not in ("CHARACTER", "CHAR") else None
        if word == "EXCEPT" and scope.last_significant is not None:
            # SELECT * EXCEPT (column) in some dialects
            if self.tokens[scope.last_significant].text == "*":
                return None
        if word == "JOIN":
            return ClauseType.JOIN if previous not in JOIN_MODIFIERS else None
        if word in JOIN_MODIFIERS:
            if previous in JOIN_MODIFIERS:
                return None
            ahead = 1
            while self._word_at(self._next_significant(idx, ahead)) in JOIN_MODIFIERS:
                ahead += 1
            if self._word_at(self._next_significant(idx, ahead)) == "JOIN":
                return ClauseType.JOIN
            return None
        if word == "CREATE":
            ahead = 1
            while self._word_at(self._next_significant(idx, ahead)) in CREATE_TABLE_MODIFIERS:
                ahead += 1
            if self._word_at(self._next_significant(idx, ahead)) == "TABLE":
                return ClauseType.CREATE_TABLE
            return None
        return SIMPLE_CLAUSES.get(word)

    def _next_significant(self, idx: int, ahead: int) -> int | None:
        pos = self._significant_pos[idx] + ahead
        if pos < len(self._significant):
            return self._significant[pos]
        return None

    def _word_at(self, idx: int | None) -> str | None:
        if idx is None:
            return None
        return self._word(self.tokens[idx])

    @staticmethod
    def _word(token: Token) -> str | None:
        """The normalized text of unquoted words, None for anything else."""
        if token.is_word and not token.quoted:
            return token.normalized_text
        return None

    @staticmethod
    def _is_punctuation(token: Token, value: str) -> bool:
        return token.kind == TokenKind.PUNCTUATION and token.text == value


def segment(tokens: Iterable[Token]) -> ClauseTree:
    """Build the :class:`ClauseTree` of a sequence of tokens.

    Raises :class:`StructureError` if parentheses are unbalanced.
    """
    return Segmenter(tokens).segment()


class StructureError(SourceError):
    """An exception raised when the structure of the source can't be determined."""

    pass
