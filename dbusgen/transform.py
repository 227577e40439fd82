"""Type-directed post-processing steps for generated calls.

Each builder returns either None (identity) or a step: a function taking a
Python expression and returning the expression that processes it. Steps for
container types are composed from the steps of their element types.

    marshaller   host value   -> wire value   (arguments, property values)
    decoder      wire value   -> host value   (replies)
    transformer  host value   -> declared shape (replies; object references)
"""

from typing import Callable, Optional

from .errors import UnsupportedFeatureError
from .type_mapper import RUNTIME
from .types import (
    ArrayType, HostType, MapType, ObjectType, StructType, Type, VariantType,
)

Step = Callable[[str], str]


def _map_items(sub: Optional[Step], depth: int) -> Optional[Step]:
    if sub is None:
        return None
    var = f"item{depth}"
    return lambda expr: f"[{sub(var)} for {var} in {expr}]"


def transformer(ty: Type, depth: int = 0) -> Optional[Step]:
    """Step turning a decoded reply into the declared shape"""
    if isinstance(ty, ObjectType):
        return lambda expr: f"self.sub_object({ty.path}, {expr})"
    if isinstance(ty, ArrayType):
        return _map_items(transformer(ty.element, depth + 1), depth)
    if isinstance(ty, StructType):
        raise UnsupportedFeatureError(f"struct results (`{ty}`) are not supported yet", ty.span)
    if isinstance(ty, MapType):
        raise UnsupportedFeatureError(f"map results (`{ty}`) are not supported yet", ty.span)
    return None


def decoder(ty: Type, depth: int = 0) -> Optional[Step]:
    """Step turning a received wire value into host values"""
    if isinstance(ty, HostType):
        return lambda expr: f"{RUNTIME}.from_wire({ty.path}, {expr})"
    if isinstance(ty, VariantType):
        return lambda expr: f"{RUNTIME}.from_wire({RUNTIME}.Variant, {expr})"
    if isinstance(ty, ArrayType):
        return _map_items(decoder(ty.element, depth + 1), depth)
    return None


def marshaller(ty: Type, depth: int = 0) -> Optional[Step]:
    """Step turning a host value into the value jeepney sends"""
    if isinstance(ty, (ObjectType, HostType)):
        return lambda expr: f"{RUNTIME}.to_wire({expr})"
    if isinstance(ty, ArrayType):
        return _map_items(marshaller(ty.element, depth + 1), depth)
    if isinstance(ty, MapType):
        sub = marshaller(ty.value, depth + 1)
        if sub is None:
            return None
        key, value = f"key{depth}", f"value{depth}"
        return lambda expr: f"{{{key}: {sub(value)} for {key}, {value} in {expr}.items()}}"
    if isinstance(ty, StructType):
        subs = [marshaller(f, depth + 1) for f in ty.fields]
        if not any(subs):
            return None

        def struct_step(expr: str) -> str:
            items = [
                sub(f"{expr}[{index}]") if sub else f"{expr}[{index}]"
                for index, sub in enumerate(subs)
            ]
            return "(" + ", ".join(items) + ("," if len(items) == 1 else "") + ")"
        return struct_step
    return None


def apply(step: Optional[Step], expr: str) -> str:
    """Apply an optional step to an expression"""
    return step(expr) if step else expr
