"""Data types for D-Bus object declarations.

Every node carries the span it was parsed from. Spans and doc attributes are
excluded from equality, so two trees compare equal when their structure does.
`str()` on a node renders it back to DSL text, without attributes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .errors import Span


def quote(value: str) -> str:
    """Render a string literal the way the lexer reads it"""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n").replace("\t", "\\t")
    return f'"{escaped}"'


class Scalar(Enum):
    """Basic D-Bus types, keyed by their signature code"""
    BYTE = "y"
    BOOL = "b"
    INT16 = "n"
    UINT16 = "q"
    INT32 = "i"
    UINT32 = "u"
    DOUBLE = "d"
    UNIX_FD = "h"
    STRING = "s"
    OBJECT_PATH = "o"
    SIGNATURE = "g"

    @classmethod
    def from_code(cls, code: str) -> Optional["Scalar"]:
        """Look up a scalar by its one-letter code"""
        try:
            return cls(code)
        except ValueError:
            return None


# ══════════════════════════════════════════════════════════════
# Types
# ══════════════════════════════════════════════════════════════

@dataclass
class VariantType:
    """Dynamically-typed boxed value (`v`)"""
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return "v"


@dataclass
class HostType:
    """A type defined by the host program, referenced by (dotted) name"""
    path: str
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return self.path


@dataclass
class ObjectType:
    """Handle to another declared object, carried on the wire as its path"""
    path: str
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"@{self.path}"


@dataclass
class ScalarType:
    scalar: Scalar
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return self.scalar.value


@dataclass
class StructType:
    fields: list["Type"] = field(default_factory=list)
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return "(" + ", ".join(str(f) for f in self.fields) + ")"


@dataclass
class ArrayType:
    element: "Type"
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"a {self.element}"


@dataclass
class MapType:
    key: Scalar
    value: "Type"
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"a{{{self.key.value} {self.value}}}"


@dataclass
class EmptyType:
    """No value; the output of methods declared without `->`"""
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return ""


Type = Union[VariantType, HostType, ObjectType, ScalarType, StructType, ArrayType, MapType, EmptyType]


# ══════════════════════════════════════════════════════════════
# Members and interfaces
# ══════════════════════════════════════════════════════════════

@dataclass
class Arg:
    """Method argument"""
    name: str
    type: Type
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"{self.name}: {self.type}"


@dataclass
class Property:
    """Interface property, writable when `mutable`"""
    name: str
    type: Type
    mutable: bool = False
    attributes: list[str] = field(default_factory=list, compare=False)
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        prefix = "mut " if self.mutable else ""
        return f"{prefix}{self.name}: {self.type};"


@dataclass
class Method:
    """Interface method"""
    name: str
    args: list[Arg] = field(default_factory=list)
    output: Type = field(default_factory=EmptyType)
    attributes: list[str] = field(default_factory=list, compare=False)
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.args)
        if isinstance(self.output, EmptyType):
            return f"{self.name}({args});"
        return f"{self.name}({args}) -> {self.output};"


Member = Union[Property, Method]


@dataclass
class Interface:
    """A D-Bus interface and its members, in declaration order"""
    name: str
    members: list[Member] = field(default_factory=list)
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        body = "".join(f"    {m}\n" for m in self.members)
        return f"{quote(self.name)} {{\n{body}}}"


@dataclass
class AnonymousInterface:
    """Interface declared inline, owning its members"""
    interface: Interface

    @property
    def span(self) -> Optional[Span]:
        return self.interface.span

    def __str__(self) -> str:
        return str(self.interface)


@dataclass
class NamedInterface:
    """Reference to an interface implemented elsewhere in the host program"""
    name: str
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return f"{self.name};"


InterfaceImpl = Union[AnonymousInterface, NamedInterface]


# ══════════════════════════════════════════════════════════════
# Objects
# ══════════════════════════════════════════════════════════════

@dataclass
class StringLiteral:
    value: str
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return quote(self.value)


@dataclass
class Marker:
    """`session` or `system` in an object's property list"""
    name: str
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return self.name


PropertyEntry = Union[StringLiteral, Marker]


@dataclass
class Object:
    """A remote object declaration.

    `properties` is the raw property list as written. The classified fields
    (`destination`, `path`, `session`, `system`) are filled in by the
    declaration validator.
    """
    name: str
    properties: list[PropertyEntry] = field(default_factory=list)
    interfaces: list[InterfaceImpl] = field(default_factory=list)
    attributes: list[str] = field(default_factory=list, compare=False)
    destination: Optional[StringLiteral] = None
    path: Optional[StringLiteral] = None
    session: bool = False
    system: bool = False
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    @property
    def members(self) -> list[tuple[Interface, Member]]:
        """All members of the anonymous interfaces, paired with their interface"""
        return [
            (impl.interface, member)
            for impl in self.interfaces
            if isinstance(impl, AnonymousInterface)
            for member in impl.interface.members
        ]

    def __str__(self) -> str:
        head = self.name
        if self.properties:
            head += "(" + ", ".join(str(p) for p in self.properties) + ")"
        return "\n".join([head] + [str(i) for i in self.interfaces])


@dataclass
class Module:
    """All object declarations of one DSL file"""
    objects: list[Object] = field(default_factory=list)

    def __str__(self) -> str:
        return "\n\n".join(f"object {{\n{obj}\n}}" for obj in self.objects)
