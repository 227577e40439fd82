"""Wire encodings for host types.

`dbus_enum` sends an enum member as its name (`s`); `dbus_dict` sends a
dataclass as a string-keyed dictionary, one entry per field, leaving out
fields that are None.
"""

import dataclasses
import typing
from enum import Enum

from .errors import UnsupportedFeatureError, WireDecodeError
from .runtime import Variant, signature_for_annotation, to_wire


class NamedEnum(Enum):
    """Enum whose auto() values are the member names"""

    @staticmethod
    def _generate_next_value_(name, start, count, last_values):
        return name


def _reject_generics(cls) -> None:
    if getattr(cls, "__parameters__", ()):
        raise UnsupportedFeatureError(f"{cls.__name__}: generics are not supported")


def dbus_enum(cls):
    """Encode an enum by member name.

    Members must carry their own name as value (see NamedEnum); any other
    value would be a discriminant, which the wire format has no room for.
    """
    if not (isinstance(cls, type) and issubclass(cls, Enum)):
        raise UnsupportedFeatureError(f"{getattr(cls, '__name__', cls)!s}: non enums are not supported")
    _reject_generics(cls)
    for name, member in cls.__members__.items():
        if member.value != name:
            raise UnsupportedFeatureError(f"{cls.__name__}.{name}: discriminants aren't supported")

    def __dbus_value__(self) -> str:
        return self.name

    def __dbus_from__(klass, raw):
        try:
            return klass[raw]
        except KeyError:
            raise WireDecodeError(f"{raw!r} is not a member of {klass.__name__}") from None

    cls.__dbus_signature__ = "s"
    cls.__dbus_value__ = __dbus_value__
    cls.__dbus_from__ = classmethod(__dbus_from__)
    return cls


def dbus_field(signature: str, default=None, **kwargs):
    """Dataclass field with an explicit D-Bus signature"""
    return dataclasses.field(default=default, metadata={"dbus_signature": signature}, **kwargs)


def dbus_dict(cls=None, *, value_signature: str = "v"):
    """Encode a dataclass as `a{s<value_signature>}`.

    With the default `v` value signature every field is wrapped as a variant
    of the field's own signature; values that already are a Variant are sent
    unchanged.
    """

    def wrap(cls):
        if not dataclasses.is_dataclass(cls):
            raise UnsupportedFeatureError(f"{cls.__name__}: only dataclasses can be encoded as dictionaries")
        _reject_generics(cls)

        hints = typing.get_type_hints(cls)
        entries = []
        for f in dataclasses.fields(cls):
            signature = f.metadata.get("dbus_signature") or signature_for_annotation(hints[f.name])
            entries.append((f.name, signature))

        def __dbus_value__(self) -> dict:
            result = {}
            for name, signature in entries:
                value = getattr(self, name)
                if value is None:
                    continue
                if value_signature != "v":
                    result[name] = to_wire(value)
                elif isinstance(value, Variant):
                    result[name] = to_wire(value)
                else:
                    result[name] = Variant(signature, to_wire(value))
            return result

        cls.__dbus_signature__ = f"a{{s{value_signature}}}"
        cls.__dbus_value__ = __dbus_value__
        return cls

    return wrap if cls is None else wrap(cls)
