"""Tests for the recursive-descent declaration parser."""

import pytest
from hypothesis import HealthCheck, given, settings

from dbusgen.errors import DBusIDLSyntaxError
from dbusgen.parser import parse, parse_object
from dbusgen.types import (
    AnonymousInterface, Arg, ArrayType, EmptyType, HostType, Interface, MapType, Marker,
    Method, NamedInterface, Object, ObjectType, Property, Scalar, ScalarType,
    StringLiteral, StructType, VariantType,
)

from tests.strategies_dbus import s_object


def parse_type(text: str):
    obj = parse_object(f'Foo "x.y" {{ P: {text}; }}')
    return obj.interfaces[0].interface.members[0].type


class TestObjectDeclaration:
    def test_name_only(self) -> None:
        assert parse_object("Network") == Object(name="Network")

    def test_property_list(self) -> None:
        obj = parse_object('Foo("a.b.c", "/a/b", system)')
        assert obj.properties == [StringLiteral("a.b.c"), StringLiteral("/a/b"), Marker("system")]

    def test_property_list_trailing_comma(self) -> None:
        obj = parse_object('Foo(session, "a.b",)')
        assert obj.properties == [Marker("session"), StringLiteral("a.b")]

    def test_empty_property_list(self) -> None:
        assert parse_object("Foo()").properties == []

    def test_invalid_property(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="expected string literal, `session` or `system`, found `bus`"):
            parse_object("Foo(bus)")

    def test_doc_attributes(self) -> None:
        obj = parse_object("/// The root object.\n/// Second line.\nFoo")
        assert obj.attributes == ["The root object.", "Second line."]

    def test_trailing_input(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="expected interface name string or interface identifier"):
            parse_object("Foo )")


class TestInterfaces:
    def test_named_interface(self) -> None:
        obj = parse_object("Foo Introspectable; Peer;")
        assert obj.interfaces == [NamedInterface("Introspectable"), NamedInterface("Peer")]

    def test_named_interface_needs_semicolon(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="expected `;`, found end of input"):
            parse_object("Foo Introspectable")

    def test_anonymous_interface(self) -> None:
        obj = parse_object('Foo "a.b" { Ping(); } "c.d" { }')
        assert obj.interfaces == [
            AnonymousInterface(Interface("a.b", [Method("Ping")])),
            AnonymousInterface(Interface("c.d")),
        ]

    def test_interfaces_keep_order(self) -> None:
        obj = parse_object('Foo Peer; "a.b" { } Introspectable;')
        assert [type(i) for i in obj.interfaces] == [NamedInterface, AnonymousInterface, NamedInterface]

    def test_members_pair_with_their_interface(self) -> None:
        obj = parse_object('Foo "a.b" { X: i; } Peer; "c.d" { Y(); }')
        assert [(iface.name, member.name) for iface, member in obj.members] == [("a.b", "X"), ("c.d", "Y")]


class TestMembers:
    def parse_member(self, text: str):
        return parse_object(f'Foo "x.y" {{ {text} }}').interfaces[0].interface.members[0]

    def test_property(self) -> None:
        assert self.parse_member("Level: i;") == Property("Level", ScalarType(Scalar.INT32))

    def test_mutable_property(self) -> None:
        assert self.parse_member("mut Level: i;") == Property("Level", ScalarType(Scalar.INT32), mutable=True)

    def test_mutable_needs_colon(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="expected `:`, found `i`"):
            self.parse_member("mut Level i;")

    def test_zero_arg_method(self) -> None:
        assert self.parse_member("Ping();") == Method("Ping", [], EmptyType())

    def test_method_with_args_and_output(self) -> None:
        assert self.parse_member("Add(a: i, b: a s) -> @Result;") == Method(
            "Add",
            [Arg("a", ScalarType(Scalar.INT32)), Arg("b", ArrayType(ScalarType(Scalar.STRING)))],
            ObjectType("Result"),
        )

    def test_args_trailing_comma(self) -> None:
        assert self.parse_member("Set(value: s,);").args == [Arg("value", ScalarType(Scalar.STRING))]

    def test_args_need_commas(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="expected `\\)`, found `b`"):
            self.parse_member("Add(a: i b: i);")

    def test_member_without_colon_or_parens(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="expected `:` or `\\(`, found `;`"):
            self.parse_member("Ping;")

    def test_member_doc_attributes(self) -> None:
        member = self.parse_member("/// Current level\nmut Level: i;")
        assert member.attributes == ["Current level"]

    def test_missing_semicolon(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="expected `;`, found `}`"):
            self.parse_member("Ping()")


class TestTypes:
    @pytest.mark.parametrize(
        "code,scalar",
        [(s.value, s) for s in Scalar],
    )
    def test_scalars(self, code: str, scalar: Scalar) -> None:
        assert parse_type(code) == ScalarType(scalar)

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("v", VariantType()),
            ("a s", ArrayType(ScalarType(Scalar.STRING))),
            ("a a y", ArrayType(ArrayType(ScalarType(Scalar.BYTE)))),
            ("a{s v}", MapType(Scalar.STRING, VariantType())),
            ("a { s a i }", MapType(Scalar.STRING, ArrayType(ScalarType(Scalar.INT32)))),
            ("(i, s)", StructType([ScalarType(Scalar.INT32), ScalarType(Scalar.STRING)])),
            ("(i s)", StructType([ScalarType(Scalar.INT32), ScalarType(Scalar.STRING)])),
            ("()", StructType([])),
            ("@Interface", ObjectType("Interface")),
            ("@net.Device", ObjectType("net.Device")),
            ("a @Interface", ArrayType(ObjectType("Interface"))),
            ("DebugLevel", HostType("DebugLevel")),
            ("pkg.types.Level", HostType("pkg.types.Level")),
            ("a{s (i, @Obj)}", MapType(Scalar.STRING, StructType([ScalarType(Scalar.INT32), ObjectType("Obj")]))),
        ],
    )
    def test_types(self, text: str, expected) -> None:
        assert parse_type(text) == expected

    @pytest.mark.parametrize("text", ["a{v s}", "a{(i) s}", "a{Host s}", "a{a s}"])
    def test_map_key_must_be_scalar(self, text: str) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="expected basic type code as map key"):
            parse_type(text)

    def test_unclosed_map(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="expected `}`"):
            parse_type("a{s i")

    def test_missing_type(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="expected type, found `;`"):
            parse_type("")


class TestModule:
    def test_objects(self) -> None:
        module = parse('object { Foo("a.b") "a.b" { Ping(); } }\nobject { Bar }')
        assert [obj.name for obj in module.objects] == ["Foo", "Bar"]
        assert module.objects[0].interfaces[0].interface.members == [Method("Ping")]

    def test_empty_file(self) -> None:
        assert parse("// nothing here\n").objects == []

    def test_wrong_keyword(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="expected `object`, found `objekt`"):
            parse("objekt { Foo }")

    def test_unclosed_block(self) -> None:
        with pytest.raises(DBusIDLSyntaxError, match="end of input"):
            parse('object { Foo "a.b" { }')


class TestSpans:
    def test_member_span(self) -> None:
        obj = parse_object('Foo\n"a.b" {\n    mut Level: i;\n}')
        member = obj.interfaces[0].interface.members[0]
        assert (member.span.line, member.span.column) == (3, 5)

    def test_spans_do_not_affect_equality(self) -> None:
        assert parse_object("Foo \"a.b\" { X: i; }") == parse_object("Foo\n\n  \"a.b\"\n{\nX : i ;\n}")


ROUND_TRIP = [
    "Network",
    'Foo("a.b.c", "/a/b", system)',
    'Foo(session) Peer; "a.b" { mut Level: i; Ping(); GetX() -> s; }',
    'Foo "a.b" { Add(a: i, b: a{s v}) -> a @Bar; Pair() -> (i, (s, v)); Empty() -> (); }',
    'Foo "with \\"quotes\\" and \\\\" { Host: pkg.Level; Items: a a y; }',
]


class TestRoundTrip:
    @pytest.mark.parametrize("source", ROUND_TRIP)
    def test_object_round_trip(self, source: str) -> None:
        obj = parse_object(source)
        assert parse_object(str(obj)) == obj

    @pytest.mark.parametrize("source", ROUND_TRIP)
    def test_printing_is_stable(self, source: str) -> None:
        text = str(parse_object(source))
        assert str(parse_object(text)) == text

    def test_module_round_trip(self) -> None:
        module = parse("object { " + ROUND_TRIP[1] + " }\nobject { " + ROUND_TRIP[2] + " }")
        assert parse(str(module)) == module

    @settings(suppress_health_check=[HealthCheck.too_slow], deadline=None, max_examples=200)
    @given(obj=s_object())
    def test_any_tree_round_trips(self, obj: Object) -> None:
        text = str(obj)
        assert parse_object(text) == obj
        assert str(parse_object(text)) == text
