"""Tests for the DSL tokenizer."""

import pytest

from dbusgen.errors import DBusIDLSyntaxError
from dbusgen.lexer import TokenType, tokenize


def types_of(source: str) -> list[TokenType]:
    return [token.type for token in tokenize(source)]


class TestTokens:
    def test_object_header(self) -> None:
        assert types_of('Foo("a.b", session) "x.y" { Ping(); }') == [
            TokenType.IDENT, TokenType.LPAREN, TokenType.STRING, TokenType.COMMA,
            TokenType.IDENT, TokenType.RPAREN, TokenType.STRING, TokenType.LBRACE,
            TokenType.IDENT, TokenType.LPAREN, TokenType.RPAREN, TokenType.SEMI,
            TokenType.RBRACE, TokenType.EOF,
        ]

    def test_arrow_and_object_reference(self) -> None:
        assert types_of("Get() -> @net.Device;") == [
            TokenType.IDENT, TokenType.LPAREN, TokenType.RPAREN, TokenType.ARROW,
            TokenType.AT, TokenType.IDENT, TokenType.DOT, TokenType.IDENT,
            TokenType.SEMI, TokenType.EOF,
        ]

    def test_empty_source_is_just_eof(self) -> None:
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type is TokenType.EOF

    def test_comments_are_skipped(self) -> None:
        tokens = tokenize("// line\n/* block\n   comment */ Foo")
        assert [t.type for t in tokens] == [TokenType.IDENT, TokenType.EOF]
        assert tokens[0].span.line == 3

    def test_doc_comments_are_tokens(self) -> None:
        tokens = tokenize("/// first line\n///second\nFoo")
        assert [(t.type, t.value) for t in tokens[:3]] == [
            (TokenType.DOC, "first line"),
            (TokenType.DOC, "second"),
            (TokenType.IDENT, "Foo"),
        ]


class TestPositions:
    def test_line_and_column(self) -> None:
        tokens = tokenize("Foo\n  Bar")
        assert (tokens[0].span.line, tokens[0].span.column) == (1, 1)
        assert (tokens[1].span.line, tokens[1].span.column) == (2, 3)

    def test_offsets(self) -> None:
        token = tokenize('  "abc"')[0]
        assert (token.span.start, token.span.end) == (2, 7)


class TestStrings:
    def test_escapes(self) -> None:
        token = tokenize(r'"a\"b\\c\n"')[0]
        assert token.type is TokenType.STRING
        assert token.value == 'a"b\\c\n'

    def test_unknown_escape(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="unknown escape"):
            tokenize(r'"\q"')

    def test_unterminated_string(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="unterminated string") as info:
            tokenize('Foo "abc')
        assert info.value.span.column == 5

    def test_string_cannot_span_lines(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="unterminated string"):
            tokenize('"abc\ndef"')


class TestErrors:
    def test_unexpected_character(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="unexpected character `\\$`") as info:
            tokenize("Foo\n $")
        assert (info.value.span.line, info.value.span.column) == (2, 2)

    def test_unterminated_block_comment(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="unterminated block comment"):
            tokenize("Foo /* never closed")
