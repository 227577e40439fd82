"""Type mapping from declared D-Bus types to signatures and Python annotations"""

from .types import (
    ArrayType, EmptyType, HostType, MapType, ObjectType, Scalar, ScalarType,
    StructType, Type, VariantType,
)

# Prefix under which generated modules import dbusgen.runtime
RUNTIME = "_dbus"


class TypeMapper:
    """Maps declared types to D-Bus signatures and Python types"""

    PYTHON_TYPES = {
        Scalar.BYTE: 'int',
        Scalar.BOOL: 'bool',
        Scalar.INT16: 'int',
        Scalar.UINT16: 'int',
        Scalar.INT32: 'int',
        Scalar.UINT32: 'int',
        Scalar.DOUBLE: 'float',
        Scalar.UNIX_FD: 'int',
        Scalar.STRING: 'str',
        Scalar.OBJECT_PATH: 'str',
        Scalar.SIGNATURE: 'str',
    }

    @classmethod
    def signature_parts(cls, ty: Type) -> list[tuple[bool, str]]:
        """Signature of a type as (is_literal, text) parts.

        Literal parts are signature codes; the others name host types whose
        signature is only known at run time.
        """
        if isinstance(ty, ScalarType):
            return [(True, ty.scalar.value)]
        if isinstance(ty, VariantType):
            return [(True, 'v')]
        if isinstance(ty, ObjectType):
            return [(True, 'o')]
        if isinstance(ty, HostType):
            return [(False, ty.path)]
        if isinstance(ty, ArrayType):
            return [(True, 'a')] + cls.signature_parts(ty.element)
        if isinstance(ty, MapType):
            return [(True, f'a{{{ty.key.value}')] + cls.signature_parts(ty.value) + [(True, '}')]
        if isinstance(ty, StructType):
            parts = [(True, '(')]
            for f in ty.fields:
                parts.extend(cls.signature_parts(f))
            return parts + [(True, ')')]
        if isinstance(ty, EmptyType):
            return []
        raise TypeError(f"unknown type node {ty!r}")

    @classmethod
    def signature(cls, ty: Type) -> str:
        """Static signature of a type; host types must not appear in it"""
        parts = cls.signature_parts(ty)
        if not all(literal for literal, _ in parts):
            raise ValueError(f"signature of `{ty}` depends on host types")
        return "".join(text for _, text in parts)

    @classmethod
    def signature_expr(cls, types: list[Type]) -> str:
        """Python expression evaluating to the joined signature of `types`"""
        pieces: list[str] = []
        literal = ""
        for ty in types:
            for is_literal, text in cls.signature_parts(ty):
                if is_literal:
                    literal += text
                    continue
                if literal:
                    pieces.append(f'"{literal}"')
                    literal = ""
                pieces.append(f"{RUNTIME}.signature_of({text})")
        if literal or not pieces:
            pieces.append(f'"{literal}"')
        return " + ".join(pieces)

    @classmethod
    def to_python(cls, ty: Type) -> str:
        """Convert a declared type to a Python type hint"""
        if isinstance(ty, ScalarType):
            return cls.PYTHON_TYPES[ty.scalar]
        if isinstance(ty, VariantType):
            return f"{RUNTIME}.Variant"
        if isinstance(ty, (HostType, ObjectType)):
            return ty.path
        if isinstance(ty, ArrayType):
            return f"list[{cls.to_python(ty.element)}]"
        if isinstance(ty, MapType):
            return f"dict[{cls.PYTHON_TYPES[ty.key]}, {cls.to_python(ty.value)}]"
        if isinstance(ty, StructType):
            if not ty.fields:
                return "tuple[()]"
            return "tuple[" + ", ".join(cls.to_python(f) for f in ty.fields) + "]"
        if isinstance(ty, EmptyType):
            return "None"
        raise TypeError(f"unknown type node {ty!r}")

    @classmethod
    def is_unwrapped(cls, ty: Type) -> bool:
        """Whether a method reply is a one-element tuple to unwrap"""
        return not isinstance(ty, (StructType, EmptyType))
