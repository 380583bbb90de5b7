import pytest

from sqlstyle.lint.keywords import RESERVED_KEYWORDS, classify, classify_tokens, is_reserved
from sqlstyle.lint.tokenize import TokenKind, Tokenizer


@pytest.mark.parametrize("word", ["SELECT", "select", "Select", "FROM", "varchar", "CREATE"])
def test_reserved_words(word):
    assert is_reserved(word)


@pytest.mark.parametrize("word", ["staff", "first_name", "salary", "c", "k", "x"])
def test_not_reserved_words(word):
    assert not is_reserved(word)


def test_keywords_are_uppercase():
    assert all(word == word.upper() for word in RESERVED_KEYWORDS)


def test_keywords_cannot_be_modified():
    with pytest.raises(AttributeError):
        RESERVED_KEYWORDS.add("STAFF")


def test_classify_tokens():
    tokens = list(classify_tokens(Tokenizer("select first_name from staff").tokenize()))
    words = [(t.kind, t.text) for t in tokens if not t.is_trivia]

    assert words == [
        (TokenKind.KEYWORD, "select"),
        (TokenKind.IDENTIFIER, "first_name"),
        (TokenKind.KEYWORD, "from"),
        (TokenKind.IDENTIFIER, "staff"),
    ]


def test_classify_preserves_text_and_position():
    token = Tokenizer("  where").tokenize()[1]
    keyword = classify(token)

    assert keyword.kind == TokenKind.KEYWORD
    assert keyword.text == "where"
    assert keyword.normalized_text == "WHERE"
    assert keyword.position == token.position


def test_quoted_identifiers_are_never_keywords():
    tokens = [classify(t) for t in Tokenizer('"select" `from` [where]').tokenize()]

    assert all(t.kind == TokenKind.IDENTIFIER for t in tokens if not t.is_trivia)


def test_classify_leaves_other_tokens_untouched():
    token = Tokenizer("'select'").tokenize()[0]

    assert classify(token) is token
