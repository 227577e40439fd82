"""Declaration validator.

Classifies the string literals of an object's property list as destination
or path, rejects repeated destinations, paths and markers, and makes sure the
Python names generated for an object cannot clash with each other or with the
runtime base class.
"""

import dataclasses
import keyword
import logging
import re
from typing import Optional

from .errors import DBusIDLValidationError, Span
from .runtime import DbusObject
from .type_mapper import RUNTIME
from .types import (
    ArrayType, HostType, MapType, Marker, Method, Module, NamedInterface, Object, ObjectType,
    Property, StringLiteral, StructType, Type,
)

logger = logging.getLogger(__name__)

PATH_RE = re.compile(r"(/[A-Za-z0-9_]+)+")
DESTINATION_RE = re.compile(r"([A-Za-z_-][A-Za-z0-9_-]*\.)+[A-Za-z_-][A-Za-z0-9_-]*")

INTERFACE_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*\.)+[A-Za-z_][A-Za-z0-9_]*")

PATH_ERROR = (
    "Path starts with `/`, must only consist of `/` separated non zero length segments "
    "containing only ASCII letters, numbers or `_`, and must not end in `/`. "
    "REGEX: `(/[a-zA-Z0-9_]+)+`"
)
DESTINATION_ERROR = (
    "Destinations must only consist of `.` separated non zero length segments containing "
    "only ASCII letters, numbers, `-` or `_` that do not start with a number. Destinations "
    "may neither start nor end in `.`. REGEX: `([a-zA-Z_-][a-zA-Z0-9_-]*\\.)+[a-zA-Z_-][a-zA-Z0-9_-]*`"
)

# Attributes every generated class inherits; members must not shadow them.
RESERVED_NAMES = frozenset(
    name for name in dir(DbusObject) if not (name.startswith("__") and name.endswith("__"))
) | {"DESTINATION", "PATH", "_connection", "_destination", "_path", "_timeout"}


def classify(literal: StringLiteral) -> str:
    """Return "path" or "destination" for a property string, or raise"""
    if literal.value.startswith("/"):
        if not PATH_RE.fullmatch(literal.value):
            raise DBusIDLValidationError(PATH_ERROR, literal.span, "Destinations must not start with `/`.")
        return "path"
    if not DESTINATION_RE.fullmatch(literal.value):
        raise DBusIDLValidationError(DESTINATION_ERROR, literal.span, "Paths must start with `/`.")
    return "destination"


def _duplicate(new_message: str, new: Optional[Span], old_message: str, old: Optional[Span]) -> DBusIDLValidationError:
    error = DBusIDLValidationError(new_message, new)
    error.combine(DBusIDLValidationError(old_message, old))
    return error


def classify_properties(obj: Object) -> Object:
    """Fill in destination, path and the capability markers from the raw property list"""
    destination: Optional[StringLiteral] = None
    path: Optional[StringLiteral] = None
    markers: dict[str, Marker] = {}

    for entry in obj.properties:
        if isinstance(entry, Marker):
            if old_marker := markers.get(entry.name):
                raise _duplicate(
                    f"{entry.name} was already set", entry.span,
                    f"{entry.name} was already set here", old_marker.span,
                )
            markers[entry.name] = entry
        elif classify(entry) == "path":
            if path is not None:
                raise _duplicate("path already defined", entry.span, "path was defined here", path.span)
            path = entry
        else:
            if destination is not None:
                raise _duplicate(
                    "destination already defined", entry.span,
                    "destination was defined here", destination.span,
                )
            destination = entry

    return dataclasses.replace(
        obj,
        destination=destination,
        path=path,
        session="session" in markers,
        system="system" in markers,
    )


def _check_identifier(name: str, what: str, span: Optional[Span]) -> None:
    if keyword.iskeyword(name):
        raise DBusIDLValidationError(f"{what} `{name}` is a reserved word in Python", span)
    if name == RUNTIME:
        raise DBusIDLValidationError(f"{what} `{name}` is reserved for the runtime module", span)


def _type_names(ty: Type) -> set[str]:
    """Module-level names the generated code looks up for a type"""
    if isinstance(ty, (HostType, ObjectType)):
        return {ty.path.split(".")[0]}
    if isinstance(ty, ArrayType):
        return _type_names(ty.element)
    if isinstance(ty, MapType):
        return _type_names(ty.value)
    if isinstance(ty, StructType):
        return set().union(*(_type_names(f) for f in ty.fields))
    return set()


def _check_shadowing(name: str, used: set[str], what: str, span: Optional[Span]) -> None:
    if name in used:
        raise DBusIDLValidationError(
            f"{what} `{name}` hides the type `{name}` used by the same member", span,
            "rename the argument",
        )


def check_interface_name(name: str, span: Optional[Span]) -> None:
    if not INTERFACE_RE.fullmatch(name):
        raise DBusIDLValidationError(
            f"invalid interface name {name!r}", span,
            "Interface names are `.` separated segments of ASCII letters, numbers or `_` "
            "that do not start with a number. REGEX: `([a-zA-Z_][a-zA-Z0-9_]*\\.)+[a-zA-Z_][a-zA-Z0-9_]*`",
        )


def check_names(obj: Object) -> None:
    """Reject generated Python names that would collide"""
    _check_identifier(obj.name, "object name", obj.span)

    named: dict[str, Optional[Span]] = {}
    for impl in obj.interfaces:
        if isinstance(impl, NamedInterface):
            _check_identifier(impl.name, "interface name", impl.span)
            if impl.name in named:
                raise _duplicate(
                    f"interface `{impl.name}` is implemented twice", impl.span,
                    f"interface `{impl.name}` was implemented here", named[impl.name],
                )
            named[impl.name] = impl.span
        else:
            check_interface_name(impl.interface.name, impl.span)

    seen: dict[str, Optional[Span]] = {}

    def claim(name: str, span: Optional[Span]) -> None:
        if name in RESERVED_NAMES:
            raise DBusIDLValidationError(
                f"`{name}` collides with an attribute of every D-Bus object", span,
                "rename the member or move it to a named interface",
            )
        if name in seen:
            raise _duplicate(f"`{name}` is defined twice", span, f"`{name}` was defined here", seen[name])
        seen[name] = span

    for _, member in obj.members:
        _check_identifier(member.name, "member name", member.span)
        # Class-private names are mangled, dunders belong to the runtime.
        if member.name.startswith("__"):
            raise DBusIDLValidationError(f"member name `{member.name}` must not start with `__`", member.span)
        if isinstance(member, Property):
            claim(f"get_{member.name}", member.span)
            if member.mutable:
                claim(f"set_{member.name}", member.span)
                _check_shadowing("value", _type_names(member.type), "setter argument", member.span)
        elif isinstance(member, Method):
            claim(member.name, member.span)
            used = _type_names(member.output).union(*(_type_names(a.type) for a in member.args))
            args: dict[str, Optional[Span]] = {}
            for arg in member.args:
                _check_identifier(arg.name, "argument name", arg.span)
                if arg.name == "self":
                    raise DBusIDLValidationError("argument name `self` is reserved", arg.span)
                _check_shadowing(arg.name, used, "argument", arg.span)
                if arg.name in args:
                    raise _duplicate(
                        f"argument `{arg.name}` is defined twice", arg.span,
                        f"argument `{arg.name}` was defined here", args[arg.name],
                    )
                args[arg.name] = arg.span


def validate_object(obj: Object) -> Object:
    """Validate one declaration, returning it with its properties classified"""
    obj = classify_properties(obj)
    check_names(obj)
    logger.debug(
        "Validated %s (destination=%s, path=%s, session=%s, system=%s)",
        obj.name,
        obj.destination.value if obj.destination else None,
        obj.path.value if obj.path else None,
        obj.session,
        obj.system,
    )
    return obj


def validate(module: Module) -> Module:
    """Validate every declaration of a module"""
    objects = []
    names: dict[str, Object] = {}
    for obj in module.objects:
        if old := names.get(obj.name):
            raise _duplicate(
                f"object `{obj.name}` is declared twice", obj.span,
                f"object `{obj.name}` was declared here", old.span,
            )
        names[obj.name] = obj
        objects.append(validate_object(obj))
    return Module(objects)
