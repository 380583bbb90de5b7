"""Split SQL source text into lexical tokens.

Given a query like ``"SELECT id FROM staff"`` the tokenizer produces::

    [SELECT, " ", id, " ", FROM, " ", staff]

Differently from a tokenizer meant to feed a parser, a style linter cares
about *everything* that is in the source: whitespace, newlines and comments
are emitted as tokens too, so that concatenating the text of all the tokens
gives back exactly the original source. This is what makes it possible to
apply fixes to the source without losing anything the author wrote.

The :class:`Tokenizer` is a simple regex based tokenizer. At every position
it tries a list of regular expressions in order and emits a token for the
first one that matches. Words are always emitted as
:attr:`TokenKind.IDENTIFIER`, deciding which of them are reserved keywords
is the job of :mod:`sqlstyle.lint.keywords`. Dialect specific operators
(like ``@>`` or ``!~``) and any other symbol are emitted as
:attr:`TokenKind.OPERATOR`, so the only sources that can't be tokenized are
the ones with an unterminated string, quoted identifier or block comment.

Tokens carry their position in the source as a :class:`Position`,
lines are 1-based while columns and offsets are 0-based::

    >>> tokens = Tokenizer("SELECT id\\n  FROM staff").tokenize()
    >>> [(t.text, t.position.line, t.position.column) for t in tokens if t.is_word]
    [('SELECT', 1, 0), ('id', 1, 7), ('FROM', 2, 2), ('staff', 2, 7)]
"""

import enum
import re
from dataclasses import dataclass
from typing import Iterator, NamedTuple

from .errors import SourceError


class TokenKind(enum.Enum):
    """The kind of lexical element a :class:`Token` represents."""

    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    STRING_LITERAL = "string_literal"
    NUMBER_LITERAL = "number_literal"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    COMMENT = "comment"
    WHITESPACE = "whitespace"
    NEWLINE = "newline"


#: Kinds that carry no meaning for the structure of a statement.
TRIVIA_KINDS = frozenset({TokenKind.WHITESPACE, TokenKind.NEWLINE, TokenKind.COMMENT})

#: Characters that can be used to quote an identifier, mapped to their closing character.
IDENTIFIER_QUOTES = {'"': '"', "`": "`", "[": "]"}


class Position(NamedTuple):
    """Where a token starts in the source text."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True)
class Token:
    """A lexical token of SQL source text.

    Tokens are immutable, the classifier produces new tokens
    when it has to change the kind of a token.
    """

    kind: TokenKind
    text: str
    normalized_text: str
    position: Position

    @property
    def length(self) -> int:
        """Number of characters of source covered by the token."""
        return len(self.text)

    @property
    def end_offset(self) -> int:
        return self.position.offset + len(self.text)

    @property
    def is_trivia(self) -> bool:
        """Whitespace, newlines and comments."""
        return self.kind in TRIVIA_KINDS

    @property
    def is_word(self) -> bool:
        """Identifiers and keywords, the tokens that have a name."""
        return self.kind in (TokenKind.IDENTIFIER, TokenKind.KEYWORD)

    @property
    def quoted(self) -> bool:
        """If the token is an identifier wrapped in quote characters."""
        return self.kind == TokenKind.IDENTIFIER and self.text[:1] in IDENTIFIER_QUOTES

    @property
    def unquoted_text(self) -> str:
        """The name of an identifier without its quote characters."""
        if self.quoted:
            return self.text[1:-1]
        return self.text

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r}, {self.position.line}:{self.position.column})"


class Tokenizer:
    """A regex based tokenizer for SQL style checking.

    The tokenizer is lazy, tokens are produced while iterating over it,
    and restartable, every new iteration starts again from the beginning
    of the source::

        tokenizer = Tokenizer("SELECT 1")
        first = list(tokenizer)
        second = list(tokenizer)  # same tokens again

    To get all the tokens at once use :meth:`tokenize`.
    """

    # Square brackets quote identifiers, except right after an operand,
    # where they are array subscripts like ``scores[1]``.
    BRACKET_QUOTED = re.compile(r"\[[^\]\r\n]+\]")

    # Order matters, the first pattern that matches wins.
    TOKEN_PATTERNS = [
        (TokenKind.NEWLINE, re.compile(r"\r\n|\r|\n")),
        (TokenKind.WHITESPACE, re.compile(r"[^\S\r\n]+")),
        (TokenKind.COMMENT, re.compile(r"--[^\r\n]*")),
        (TokenKind.COMMENT, re.compile(r"/\*.*?\*/", re.DOTALL)),
        (TokenKind.COMMENT, re.compile(r"#(?=\s|\Z)[^\r\n]*")),
        (TokenKind.STRING_LITERAL, re.compile(r"'(?:[^']|'')*'")),
        (TokenKind.IDENTIFIER, re.compile(r'"(?:[^"]|"")*"')),
        (TokenKind.IDENTIFIER, re.compile(r"`(?:[^`]|``)*`")),
        (TokenKind.IDENTIFIER, BRACKET_QUOTED),
        (
            TokenKind.NUMBER_LITERAL,
            re.compile(r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?"),
        ),
        (TokenKind.IDENTIFIER, re.compile(r"[^\W\d]\w*")),
        (
            TokenKind.PUNCTUATION,
            re.compile(r"\?|:[^\W\d]\w*|\$\d+|@{1,2}[^\W\d]\w*|#{1,2}[^\W\d]\w*"),
        ),
        (
            TokenKind.OPERATOR,
            re.compile(
                r"->>?|#>>?|@>|<@|@@|!~~?\*?|~~?\*?|<<|>>|<>|!=|<=|>=|\|\||::|&&"
                r"|[=<>+\-*%|&^~!@#]|/(?!\*)"
            ),
        ),
        (TokenKind.PUNCTUATION, re.compile(r"[(),;.\[\]{}]")),
        # Any other symbol, only quotes and comment openings are left out
        # so that they can be reported as unterminated.
        (TokenKind.OPERATOR, re.compile(r"[^\s\w'\"`/]")),
    ]

    # Opening characters of the tokens that must always be closed.
    UNTERMINATED = {
        "/": "Unterminated block comment",
        "'": "Unterminated string literal",
        '"': "Unterminated quoted identifier",
        "`": "Unterminated quoted identifier",
    }

    def __init__(self, text: str) -> None:
        """
        :param text: The SQL source to tokenize.
        """
        self.text = text

    def __iter__(self) -> Iterator[Token]:
        text = self.text
        offset = 0
        line = 1
        line_start = 0
        previous = None
        while offset < len(text):
            for kind, pattern in self.TOKEN_PATTERNS:
                if pattern is self.BRACKET_QUOTED and self._is_operand(previous):
                    continue
                match = pattern.match(text, offset)
                if match:
                    break
            else:
                raise self._error_at(offset, line, offset - line_start)

            value = match.group(0)
            previous = Token(
                kind=kind,
                text=value,
                normalized_text=self._normalize(kind, value),
                position=Position(line, offset - line_start, offset),
            )
            yield previous

            # Strings, comments and newlines can span multiple lines,
            # keep track of where the current line starts.
            newlines = list(re.finditer(r"\r\n|\r|\n", value))
            if newlines:
                line += len(newlines)
                line_start = offset + newlines[-1].end()
            offset = match.end()

    def tokenize(self) -> list[Token]:
        """Tokenize the whole source and return the list of tokens."""
        return list(self)

    @staticmethod
    def _normalize(kind: TokenKind, value: str) -> str:
        if kind == TokenKind.IDENTIFIER and value[0] not in IDENTIFIER_QUOTES:
            return value.upper()
        return value

    @staticmethod
    def _is_operand(token: Token | None) -> bool:
        """If a ``[`` right after the token would subscript it."""
        return token is not None and (token.is_word or token.text in (")", "]"))

    def _error_at(self, offset: int, line: int, column: int) -> "LexError":
        # Every other character is matched by a pattern.
        message = self.UNTERMINATED[self.text[offset]]
        return LexError(message, Position(line, column, offset))


def tokenize(source: str) -> Tokenizer:
    """Tokenize SQL source text.

    Returns a lazy and restartable sequence of :class:`Token`,
    iterate over it to get the tokens. :class:`LexError` is raised
    while iterating when a string, quoted identifier
    or block comment is never closed.
    """
    return Tokenizer(source)


class LexError(SourceError):
    """An exception raised when a token of the source is never closed."""

    pass
