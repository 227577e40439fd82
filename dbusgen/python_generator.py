"""Python Generator - generates D-Bus client classes from object declarations"""

import json
import logging
import re
import types
from typing import Optional

from .transform import apply, decoder, marshaller, transformer
from .type_mapper import RUNTIME, TypeMapper
from .types import (
    AnonymousInterface, EmptyType, Interface, Method, Module, NamedInterface, Object,
    Property,
)
from .validator import validate, validate_object

logger = logging.getLogger(__name__)

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")


def _literal(value: str) -> str:
    """Python string literal for generated code"""
    return json.dumps(value)


def _escape_doc(line: str) -> str:
    line = line.replace("\\", "\\\\").replace('"', '\\"')
    return _CONTROL_RE.sub(lambda m: f"\\x{ord(m.group()):02x}", line)


def _docstring(attributes: list[str], indent: int) -> list[str]:
    """Docstring lines for forwarded doc attributes"""
    if not attributes:
        return []
    pad = " " * indent
    text = [_escape_doc(line) for line in attributes]
    if len(text) == 1:
        return [f'{pad}"""{text[0]}"""']
    return [f'{pad}"""{text[0]}'] + [f"{pad}{line}" if line else "" for line in text[1:]] + [f'{pad}"""']


def _tuple(items: list[str]) -> str:
    return "(" + ", ".join(items) + ("," if len(items) == 1 else "") + ")"


class PythonGenerator:
    """Generates Python client classes on top of dbusgen.runtime"""

    def __init__(self, module: Module, namespace: str, imports: Optional[list[str]] = None):
        self.module = module
        self.namespace = namespace
        self.imports = imports or []

    def generate(self) -> str:
        """Generate complete Python module"""
        module = validate(self.module)
        # Build every class before emitting anything: all or nothing.
        classes = [self._generate_class(obj) for obj in module.objects]

        lines = [
            '"""',
            f"AUTO-GENERATED D-Bus client bindings for {self.namespace}",
            "DO NOT EDIT - Generated from DSL",
            '"""',
            "",
            "from __future__ import annotations",
            "",
            f"from dbusgen import runtime as {RUNTIME}",
        ]
        for name in self.imports:
            lines.append(f"from {name} import *")
        lines.extend(["", ""])

        for class_lines in classes:
            lines.extend(class_lines)

        logger.debug("Generated %d class(es) for %s", len(classes), self.namespace)
        return "\n".join(lines)

    def generate_object(self, obj: Object) -> str:
        """Generate the class for a single declaration"""
        return "\n".join(self._generate_class(validate_object(obj)))

    def _generate_class(self, obj: Object) -> list[str]:
        """Generate Python client class for an object"""
        bases = [impl.name for impl in obj.interfaces if isinstance(impl, NamedInterface)]
        bases.append(f"{RUNTIME}.DbusObject")
        if obj.destination:
            bases.append(f"{RUNTIME}.CommonDestination")
        if obj.path:
            bases.append(f"{RUNTIME}.CommonPath")
        if obj.session:
            bases.append(f"{RUNTIME}.CommonlySession")
        if obj.system:
            bases.append(f"{RUNTIME}.CommonlySystem")

        body = []
        if doc := _docstring(obj.attributes, 4):
            body.extend(doc + [""])

        constants = []
        if obj.destination:
            constants.append(f"    DESTINATION = {_literal(obj.destination.value)}")
        if obj.path:
            constants.append(f"    PATH = {_literal(obj.path.value)}")
        if constants:
            body.extend(constants + [""])

        for impl in obj.interfaces:
            if isinstance(impl, AnonymousInterface):
                body.extend(self._generate_interface(impl.interface))

        if not body:
            body = ["    pass", ""]

        logger.debug("Emitting class %s(%s)", obj.name, ", ".join(bases))
        return [
            "# ══════════════════════════════════════════════════════════════",
            f"# {obj.name}",
            "# ══════════════════════════════════════════════════════════════",
            "",
            f"class {obj.name}({', '.join(bases)}):",
        ] + body + [""]

    def _generate_interface(self, interface: Interface) -> list[str]:
        lines = [f"    # {interface.name}", ""]
        for member in interface.members:
            if isinstance(member, Property):
                lines.extend(self._generate_property(interface, member))
            elif isinstance(member, Method):
                lines.extend(self._generate_method(interface, member))
        return lines

    def _generate_property(self, interface: Interface, prop: Property) -> list[str]:
        """Generate getter, and setter for mutable properties"""
        transform = transformer(prop.type)
        py_type = TypeMapper.to_python(prop.type)
        iface, name = _literal(interface.name), _literal(prop.name)

        value = apply(transform, apply(decoder(prop.type), f"self.get({iface}, {name})"))
        lines = [f"    def get_{prop.name}(self) -> {py_type}:"]
        lines.extend(_docstring(prop.attributes, 8))
        lines.extend([f"        return {value}", ""])

        if prop.mutable:
            signature = TypeMapper.signature_expr([prop.type])
            wire = apply(marshaller(prop.type), "value")
            lines.append(f"    def set_{prop.name}(self, value: {py_type}) -> None:")
            lines.extend(_docstring(prop.attributes, 8))
            lines.extend([f"        self.set({iface}, {name}, {signature}, {wire})", ""])

        return lines

    def _generate_method(self, interface: Interface, method: Method) -> list[str]:
        """Generate method wrapper"""
        transform = transformer(method.output)
        params = ["self"] + [f"{a.name}: {TypeMapper.to_python(a.type)}" for a in method.args]
        ret_type = TypeMapper.to_python(method.output)

        lines = [f"    def {method.name}({', '.join(params)}) -> {ret_type}:"]
        lines.extend(_docstring(method.attributes, 8))

        signature = TypeMapper.signature_expr([a.type for a in method.args])
        args = _tuple([apply(marshaller(a.type), a.name) for a in method.args])
        call = f"self.method_call({_literal(interface.name)}, {_literal(method.name)}, {signature}, {args})"

        if isinstance(method.output, EmptyType):
            lines.append(f"        {call}")
        else:
            lines.append(f"        reply = {call}")
            result = "reply[0]" if TypeMapper.is_unwrapped(method.output) else "reply"
            lines.append(f"        return {apply(transform, apply(decoder(method.output), result))}")

        lines.append("")
        return lines


def load_bindings(source: str, name: str = "dbus_bindings", namespace: Optional[dict] = None) -> types.ModuleType:
    """Execute generated source into a new in-memory module.

    `namespace` is copied into the module first, which is how host types can
    be provided without an import.
    """
    module = types.ModuleType(name)
    if namespace:
        module.__dict__.update(namespace)
    exec(compile(source, f"<{name}>", "exec"), module.__dict__)
    return module
