"""Tokenizer for the D-Bus object declaration language"""

import re
from dataclasses import dataclass
from enum import Enum

from .errors import DBusIDLSyntaxError, Span


class TokenType(Enum):
    IDENT = "identifier"
    STRING = "string literal"
    DOC = "doc comment"
    LPAREN = "`(`"
    RPAREN = "`)`"
    LBRACE = "`{`"
    RBRACE = "`}`"
    COMMA = "`,`"
    SEMI = "`;`"
    COLON = "`:`"
    AT = "`@`"
    DOT = "`.`"
    ARROW = "`->`"
    EOF = "end of input"


_PUNCTUATION = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ",": TokenType.COMMA,
    ";": TokenType.SEMI,
    ":": TokenType.COLON,
    "@": TokenType.AT,
    ".": TokenType.DOT,
    "->": TokenType.ARROW,
}

_ESCAPES = {"\\": "\\", '"': '"', "n": "\n", "t": "\t", "0": "\0"}

_TOKEN_RE = re.compile(r"""
    (?P<doc>///[^\n]*)
  | (?P<comment>//[^\n]*|/\*.*?\*/)
  | (?P<space>\s+)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<string>"(?:[^"\\\n]|\\.)*")
  | (?P<punct>->|[(){},;:@.])
""", re.VERBOSE | re.DOTALL)


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    span: Span

    def describe(self) -> str:
        """Human readable form used in error messages"""
        if self.type is TokenType.EOF:
            return "end of input"
        if self.type is TokenType.STRING:
            return "string literal"
        return f"`{self.value}`"


def _unescape(text: str, span: Span) -> str:
    out = []
    chars = iter(text)
    for char in chars:
        if char != "\\":
            out.append(char)
            continue
        escape = next(chars)
        if escape not in _ESCAPES:
            raise DBusIDLSyntaxError(f"unknown escape sequence `\\{escape}`", span)
        out.append(_ESCAPES[escape])
    return "".join(out)


def tokenize(source: str) -> list[Token]:
    """Split DSL source into tokens, ending with an EOF token"""
    tokens = []
    pos = 0
    line = 1
    line_start = 0

    while pos < len(source):
        span = Span(pos, pos + 1, line, pos - line_start + 1)
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            if source.startswith('"', pos):
                raise DBusIDLSyntaxError("unterminated string literal", span)
            if source.startswith("/*", pos):
                raise DBusIDLSyntaxError("unterminated block comment", span)
            raise DBusIDLSyntaxError(f"unexpected character `{source[pos]}`", span)

        kind = match.lastgroup
        text = match.group()
        span = Span(pos, match.end(), line, pos - line_start + 1)

        if kind == "doc":
            doc = text[3:].rstrip("\r")
            tokens.append(Token(TokenType.DOC, doc[1:] if doc.startswith(" ") else doc, span))
        elif kind == "ident":
            tokens.append(Token(TokenType.IDENT, text, span))
        elif kind == "string":
            tokens.append(Token(TokenType.STRING, _unescape(text[1:-1], span), span))
        elif kind == "punct":
            tokens.append(Token(_PUNCTUATION[text], text, span))

        newlines = text.count("\n")
        if newlines:
            line += newlines
            line_start = pos + text.rindex("\n") + 1
        pos = match.end()

    tokens.append(Token(TokenType.EOF, "", Span(pos, pos, line, pos - line_start + 1)))
    return tokens
