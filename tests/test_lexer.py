from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import pytest

from lox_ref.diagnostics import Phase
from lox_ref.lexer import Scanner, scan
from lox_ref.token_types import TT


@dataclass(frozen=True)
class Case:
    """Unified lexer case payload."""

    name: str
    source: str
    expected: Optional[Tuple[Tuple[TT, object], ...]] = None
    expected_types: Optional[Tuple[TT, ...]] = None


BASIC_TOKEN_CASES: List[Case] = [
    Case("number-int", "123", expected=((TT.NUMBER, 123.0),)),
    Case("number-float", "3.14", expected=((TT.NUMBER, 3.14),)),
    Case("string", '"hello"', expected=((TT.STRING, "hello"),)),
    Case("string-multiline", '"a\nb"', expected=((TT.STRING, "a\nb"),)),
    Case("string-empty", '""', expected=((TT.STRING, ""),)),
    Case("ident-single", "x", expected=((TT.IDENTIFIER, None),)),
    Case("ident-snake", "foo_bar2", expected=((TT.IDENTIFIER, None),)),
    Case("ident-underscore", "_x", expected=((TT.IDENTIFIER, None),)),
    Case("keyword-prefix-ident", "classy", expected=((TT.IDENTIFIER, None),)),
    Case(
        "single-char-ops",
        "(){},.-+;/*?:",
        expected_types=(
            TT.LEFT_PAREN, TT.RIGHT_PAREN, TT.LEFT_BRACE, TT.RIGHT_BRACE,
            TT.COMMA, TT.DOT, TT.MINUS, TT.PLUS, TT.SEMICOLON, TT.SLASH,
            TT.STAR, TT.QUESTION, TT.COLON,
        ),
    ),
    Case(
        "one-or-two-char-ops",
        "! != = == > >= < <=",
        expected_types=(
            TT.BANG, TT.BANG_EQUAL, TT.EQUAL, TT.EQUAL_EQUAL,
            TT.GREATER, TT.GREATER_EQUAL, TT.LESS, TT.LESS_EQUAL,
        ),
    ),
    Case("longest-match", "!==", expected_types=(TT.BANG_EQUAL, TT.EQUAL)),
    Case("trailing-dot", "1.", expected_types=(TT.NUMBER, TT.DOT)),
    Case("leading-dot", ".5", expected_types=(TT.DOT, TT.NUMBER)),
    Case("method-on-number", "1.a", expected_types=(TT.NUMBER, TT.DOT, TT.IDENTIFIER)),
    Case("comment-skipped", "// nothing here\n1", expected_types=(TT.NUMBER,)),
    Case("comment-at-eof", "a // trailing", expected_types=(TT.IDENTIFIER,)),
    Case("slash-not-comment", "a / b", expected_types=(TT.IDENTIFIER, TT.SLASH, TT.IDENTIFIER)),
    Case("whitespace-only", " \t\r\n ", expected_types=()),
]


@pytest.mark.parametrize("case", BASIC_TOKEN_CASES, ids=lambda c: c.name)
def test_basic_tokens(case: Case) -> None:
    tokens, diagnostics = scan(case.source)

    assert not diagnostics
    assert tokens[-1].type is TT.EOF
    body = tokens[:-1]

    if case.expected is not None:
        assert tuple((t.type, t.literal) for t in body) == case.expected
    if case.expected_types is not None:
        assert tuple(t.type for t in body) == case.expected_types


KEYWORDS = [
    "and", "class", "else", "false", "for", "fun", "if", "nil", "or",
    "print", "return", "super", "this", "true", "var", "while",
]


@pytest.mark.parametrize("word", KEYWORDS)
def test_keywords_map_to_their_kind(word: str) -> None:
    tokens, _ = scan(word)
    assert tokens[0].type is TT[word.upper()]
    assert tokens[0].lexeme == word


def test_keyword_table_is_complete() -> None:
    assert sorted(Scanner.KEYWORDS) == sorted(KEYWORDS)


def test_offsets_and_lexemes() -> None:
    tokens, _ = scan('var name = "x";')

    assert [(t.lexeme, t.offset) for t in tokens] == [
        ("var", 0),
        ("name", 4),
        ("=", 9),
        ('"x"', 11),
        (";", 14),
        ("", 15),
    ]


def test_eof_offset_is_source_length() -> None:
    source = "print 1;\n"
    tokens, _ = scan(source)
    assert tokens[-1].type is TT.EOF
    assert tokens[-1].offset == len(source)


def test_unterminated_string_is_dropped() -> None:
    tokens, diagnostics = scan('print "abc')

    assert [t.type for t in tokens] == [TT.PRINT, TT.EOF]
    assert diagnostics.as_pairs() == [(10, "Unterminated string.")]
    assert all(d.phase is Phase.LEXICAL for d in diagnostics)


def test_unexpected_characters_do_not_stop_scanning() -> None:
    tokens, diagnostics = scan("a @ b # c")

    assert [t.type for t in tokens] == [TT.IDENTIFIER] * 3 + [TT.EOF]
    assert diagnostics.as_pairs() == [
        (2, "Unexpected character '@'."),
        (6, "Unexpected character '#'."),
    ]
