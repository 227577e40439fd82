"""Recursive-descent parser for D-Bus object declarations"""

import logging
from typing import Optional

from .errors import DBusIDLSyntaxError, Span
from .lexer import Token, TokenType, tokenize
from .types import (
    AnonymousInterface, Arg, ArrayType, EmptyType, HostType, Interface, InterfaceImpl,
    MapType, Marker, Member, Method, Module, NamedInterface, Object, ObjectType,
    Property, PropertyEntry, Scalar, ScalarType, StringLiteral, StructType, Type,
    VariantType,
)

logger = logging.getLogger(__name__)

MARKERS = ("session", "system")


class DBusParser:
    """Parses the object declaration language.

    A source file holds any number of `object { ... }` blocks (`parse`); a
    bare declaration span can be parsed on its own with `parse_object`.
    Parsing stops at the first error; there is no recovery.
    """

    def __init__(self, content: str):
        self.content = content
        self.tokens = tokenize(content)
        self.pos = 0

    def parse(self) -> Module:
        module = Module()
        while not self._check(TokenType.EOF):
            keyword = self._expect_ident("`object`")
            if keyword.value != "object":
                raise self._error("expected `object`", keyword)
            self._expect(TokenType.LBRACE)
            module.objects.append(self._parse_object(TokenType.RBRACE))
            self._expect(TokenType.RBRACE)
        logger.debug("Parsed %d object declaration(s)", len(module.objects))
        return module

    def parse_object(self) -> Object:
        obj = self._parse_object(TokenType.EOF)
        logger.debug("Parsed object declaration %s", obj.name)
        return obj

    # ------------------------------------------------------------------
    # Token access
    # ------------------------------------------------------------------

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _check(self, token_type: TokenType, value: Optional[str] = None) -> bool:
        token = self.tokens[self.pos]
        return token.type is token_type and (value is None or token.value == value)

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.type is not TokenType.EOF:
            self.pos += 1
        return token

    def _accept(self, token_type: TokenType) -> Optional[Token]:
        if self._check(token_type):
            return self._advance()
        return None

    def _error(self, message: str, token: Optional[Token] = None) -> DBusIDLSyntaxError:
        token = token or self._current()
        return DBusIDLSyntaxError(f"{message}, found {token.describe()}", token.span)

    def _expect(self, token_type: TokenType) -> Token:
        if not self._check(token_type):
            raise self._error(f"expected {token_type.value}")
        return self._advance()

    def _expect_ident(self, what: str = "identifier") -> Token:
        if not self._check(TokenType.IDENT):
            raise self._error(f"expected {what}")
        return self._advance()

    def _span_from(self, start: Span) -> Span:
        previous = self.tokens[self.pos - 1] if self.pos else self._current()
        return start.to(previous.span)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _parse_attributes(self) -> list[str]:
        docs = []
        while self._check(TokenType.DOC):
            docs.append(self._advance().value)
        return docs

    def _parse_object(self, terminator: TokenType) -> Object:
        start = self._current().span
        attributes = self._parse_attributes()
        name = self._expect_ident("object name")

        properties = []
        if self._accept(TokenType.LPAREN):
            properties = self._parse_property_list()

        interfaces = []
        while not self._check(terminator):
            interfaces.append(self._parse_interface_impl())

        return Object(
            name=name.value,
            properties=properties,
            interfaces=interfaces,
            attributes=attributes,
            span=self._span_from(start),
        )

    def _parse_property_list(self) -> list[PropertyEntry]:
        properties = []
        while not self._check(TokenType.RPAREN):
            token = self._current()
            if token.type is TokenType.STRING:
                properties.append(StringLiteral(token.value, token.span))
            elif token.type is TokenType.IDENT and token.value in MARKERS:
                properties.append(Marker(token.value, token.span))
            else:
                raise self._error("expected string literal, `session` or `system`")
            self._advance()
            if not self._accept(TokenType.COMMA):
                break
        self._expect(TokenType.RPAREN)
        return properties

    def _parse_interface_impl(self) -> InterfaceImpl:
        token = self._current()
        if token.type is TokenType.IDENT:
            self._advance()
            self._expect(TokenType.SEMI)
            return NamedInterface(token.value, token.span)
        if token.type is TokenType.STRING:
            self._advance()
            self._expect(TokenType.LBRACE)
            members = []
            while not self._check(TokenType.RBRACE):
                members.append(self._parse_member())
            self._expect(TokenType.RBRACE)
            return AnonymousInterface(Interface(token.value, members, self._span_from(token.span)))
        raise self._error("expected interface name string or interface identifier")

    def _parse_member(self) -> Member:
        start = self._current().span
        attributes = self._parse_attributes()
        mutable = False
        if self._check(TokenType.IDENT, "mut"):
            self._advance()
            mutable = True
        name = self._expect_ident("member name")

        if mutable or self._check(TokenType.COLON):
            self._expect(TokenType.COLON)
            ty = self._parse_type()
            self._expect(TokenType.SEMI)
            return Property(name.value, ty, mutable, attributes, self._span_from(start))

        if not self._check(TokenType.LPAREN):
            raise self._error("expected `:` or `(`")
        self._advance()
        args = []
        while not self._check(TokenType.RPAREN):
            args.append(self._parse_arg())
            if not self._accept(TokenType.COMMA):
                break
        self._expect(TokenType.RPAREN)

        output: Type = EmptyType()
        if self._accept(TokenType.ARROW):
            output = self._parse_type()
        self._expect(TokenType.SEMI)
        return Method(name.value, args, output, attributes, self._span_from(start))

    def _parse_arg(self) -> Arg:
        name = self._expect_ident("argument name")
        self._expect(TokenType.COLON)
        ty = self._parse_type()
        return Arg(name.value, ty, self._span_from(name.span))

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def _parse_type(self) -> Type:
        token = self._current()

        if token.type is TokenType.LPAREN:
            self._advance()
            fields = []
            while not self._check(TokenType.RPAREN):
                fields.append(self._parse_type())
                self._accept(TokenType.COMMA)
            self._expect(TokenType.RPAREN)
            return StructType(fields, self._span_from(token.span))

        if token.type is TokenType.AT:
            self._advance()
            return ObjectType(self._parse_path(), self._span_from(token.span))

        if token.type is not TokenType.IDENT:
            raise self._error("expected type")

        if token.value == "a":
            self._advance()
            if self._accept(TokenType.LBRACE):
                key = self._current()
                scalar = Scalar.from_code(key.value) if key.type is TokenType.IDENT else None
                if scalar is None:
                    raise self._error("expected basic type code as map key")
                self._advance()
                value = self._parse_type()
                self._expect(TokenType.RBRACE)
                return MapType(scalar, value, self._span_from(token.span))
            return ArrayType(self._parse_type(), self._span_from(token.span))

        if token.value == "v":
            self._advance()
            return VariantType(token.span)

        if scalar := Scalar.from_code(token.value):
            self._advance()
            return ScalarType(scalar, token.span)

        return HostType(self._parse_path(), self._span_from(token.span))

    def _parse_path(self) -> str:
        parts = [self._expect_ident("type name").value]
        while self._accept(TokenType.DOT):
            parts.append(self._expect_ident("type name").value)
        return ".".join(parts)


def parse(source: str) -> Module:
    """Parse a DSL file made of `object { ... }` blocks"""
    return DBusParser(source).parse()


def parse_object(source: str) -> Object:
    """Parse a single object declaration spanning the whole of `source`"""
    return DBusParser(source).parse_object()
