"""
Type descriptors: the values the inference engine assigns to expressions.

Descriptors are immutable and compare structurally, so they can be used as
cache values and dictionary keys. `render()` produces TypeScript syntax and
is deterministic: equal descriptors render to identical strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

PRIMITIVE_KINDS = ("number", "string", "boolean", "null", "void")

# Global TypeScript types and the number of type arguments each one takes.
GLOBAL_TYPE_ARITY: Dict[str, int] = {
    "Array": 1,
    "ReadonlyArray": 1,
    "Promise": 1,
    "Set": 1,
    "Partial": 1,
    "Map": 2,
    "Record": 2,
    "Object": 0,
    "String": 0,
    "Number": 0,
    "Boolean": 0,
    "Function": 0,
    "Date": 0,
    "RegExp": 0,
    "Error": 0,
}

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


class TypeDescriptor:
    """Base class of all descriptor variants."""

    def render(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class AnyType(TypeDescriptor):
    def render(self) -> str:
        return "any"


@dataclass(frozen=True)
class Primitive(TypeDescriptor):
    kind: str

    def __post_init__(self) -> None:
        if self.kind not in PRIMITIVE_KINDS:
            raise ValueError(f"Unknown primitive kind: {self.kind!r}")

    def render(self) -> str:
        return self.kind


@dataclass(frozen=True)
class ObjectShape(TypeDescriptor):
    """Structural record type; field order follows the source."""

    fields: Tuple[Tuple[str, TypeDescriptor], ...] = ()

    def field_type(self, name: str) -> Optional[TypeDescriptor]:
        for field_name, field_type in self.fields:
            if field_name == name:
                return field_type
        return None

    def render(self) -> str:
        if not self.fields:
            return "{}"
        members = "; ".join(f"{render_key(name)}: {ty.render()}" for name, ty in self.fields)
        return f"{{ {members} }}"


@dataclass(frozen=True)
class ArrayShape(TypeDescriptor):
    """Array type; `element_types` holds each distinct element type once, in first-seen order."""

    element_types: Tuple[TypeDescriptor, ...]

    def render(self) -> str:
        if len(self.element_types) == 1:
            return f"Array<{self.element_types[0].render()}>"
        return f"Array<{' | '.join(_union_member(ty) for ty in self.element_types)}>"


@dataclass(frozen=True)
class FunctionShape(TypeDescriptor):
    params: Tuple[Tuple[str, TypeDescriptor], ...]
    return_type: TypeDescriptor

    def render(self) -> str:
        params = ", ".join(f"{name}: {ty.render()}" for name, ty in self.params)
        return f"({params}) => {self.return_type.render()}"


@dataclass(frozen=True)
class InterfaceRef(TypeDescriptor):
    """Reference to a synthesized interface in the analysis record."""

    name: str

    def render(self) -> str:
        return self.name


ANY = AnyType()
NUMBER = Primitive("number")
STRING = Primitive("string")
BOOLEAN = Primitive("boolean")
NULL = Primitive("null")
VOID = Primitive("void")


def array_of(element_types: Iterable[TypeDescriptor]) -> ArrayShape:
    """
    Build an array type from per-element types.

    Duplicates collapse; `any` is dropped as soon as one concrete element type
    exists, and an array with no concrete element types is `Array<any>`.
    """
    unique = tuple(dict.fromkeys(element_types))
    concrete = tuple(ty for ty in unique if ty != ANY)
    return ArrayShape(concrete or (ANY,))


def object_shape(fields: Iterable[Tuple[str, TypeDescriptor]]) -> ObjectShape:
    """Build an object type; a repeated key keeps its first position and its last type."""
    merged: Dict[str, TypeDescriptor] = {}
    for name, ty in fields:
        merged[name] = ty
    return ObjectShape(tuple(merged.items()))


def render_key(name: str) -> str:
    if _IDENTIFIER_RE.match(name):
        return name
    escaped = name.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _union_member(ty: TypeDescriptor) -> str:
    if isinstance(ty, FunctionShape):
        return f"({ty.render()})"
    return ty.render()


__all__ = [
    "ANY",
    "AnyType",
    "ArrayShape",
    "BOOLEAN",
    "FunctionShape",
    "GLOBAL_TYPE_ARITY",
    "InterfaceRef",
    "NULL",
    "NUMBER",
    "ObjectShape",
    "PRIMITIVE_KINDS",
    "Primitive",
    "STRING",
    "TypeDescriptor",
    "VOID",
    "array_of",
    "object_shape",
    "render_key",
]
