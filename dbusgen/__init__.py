"""
D-Bus Interface Code Generator Package

Parses declarations of remote D-Bus objects (interfaces, methods, properties,
typed arguments in signature-code syntax) and generates:
  1. Typed Python client classes on top of dbusgen.runtime
  2. In-memory modules of those classes (load_bindings)
"""

from .errors import (
    DBusIDLError, DBusIDLSyntaxError, DBusIDLValidationError, Span,
    UnsupportedFeatureError, WireDecodeError,
)
from .types import (
    AnonymousInterface, Arg, ArrayType, EmptyType, HostType, Interface, MapType, Marker,
    Method, Module, NamedInterface, Object, ObjectType, Property, Scalar, ScalarType,
    StringLiteral, StructType, VariantType,
)
from .parser import DBusParser, parse, parse_object
from .validator import classify, validate, validate_object
from .type_mapper import TypeMapper
from .python_generator import PythonGenerator, load_bindings


def compile_module(source: str) -> Module:
    """Parse and validate a DSL file"""
    return validate(parse(source))


__all__ = [
    'DBusIDLError', 'DBusIDLSyntaxError', 'DBusIDLValidationError', 'Span',
    'UnsupportedFeatureError', 'WireDecodeError',
    'AnonymousInterface', 'Arg', 'ArrayType', 'EmptyType', 'HostType', 'Interface',
    'MapType', 'Marker', 'Method', 'Module', 'NamedInterface', 'Object', 'ObjectType',
    'Property', 'Scalar', 'ScalarType', 'StringLiteral', 'StructType', 'VariantType',
    'DBusParser', 'parse', 'parse_object',
    'classify', 'validate', 'validate_object',
    'TypeMapper', 'PythonGenerator', 'load_bindings', 'compile_module',
]
