"""
Expression type inference.

`InferenceEngine.infer` maps an expression node to a `TypeDescriptor`.
Results are memoized by node kind and structural fingerprint, so repeated
shapes anywhere in a batch are inferred once.
"""

from __future__ import annotations

import threading
from typing import Dict, Hashable, List, Mapping, Optional, Tuple

from . import ast
from .types import ANY, BOOLEAN, NULL, NUMBER, STRING, TypeDescriptor, array_of, object_shape

Context = Mapping[str, TypeDescriptor]
CacheKey = Tuple[str, Hashable]

_EMPTY_CONTEXT: Dict[str, TypeDescriptor] = {}

# Node kinds the engine assigns a type to; everything else is `any`.
MODELED_KINDS = (
    ast.NumericLiteral,
    ast.StringLiteral,
    ast.BooleanLiteral,
    ast.NullLiteral,
    ast.ObjectExpression,
    ast.ArrayExpression,
    ast.BinaryExpression,
    ast.Identifier,
)


class InferenceCache:
    """
    Memo table from (node kind, structural fingerprint) to descriptor.

    Entries are pure functions of node shape (and, for identifiers, of the
    resolved context value), so one cache may be shared between files and
    threads; the table is guarded by a re-entrant lock.
    """

    def __init__(self) -> None:
        self._entries: Dict[CacheKey, TypeDescriptor] = {}
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def get(self, key: CacheKey) -> Optional[TypeDescriptor]:
        with self._lock:
            value = self._entries.get(key)
            if value is None:
                self.misses += 1
            else:
                self.hits += 1
            return value

    def put(self, key: CacheKey, value: TypeDescriptor) -> None:
        with self._lock:
            self._entries[key] = value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def property_key(prop: ast.ObjectProperty) -> str:
    key = prop.key
    if isinstance(key, ast.Identifier):
        return key.name
    if isinstance(key, ast.StringLiteral):
        return key.value
    return key.raw


def left_spine(node: ast.BinaryExpression) -> List[ast.BinaryExpression]:
    """The binary expressions along `node`'s left operands, innermost first."""
    links = [node]
    while isinstance(links[-1].left, ast.BinaryExpression):
        links.append(links[-1].left)
    links.reverse()
    return links


def structural_fingerprint(node: Optional[ast.Node], context: Context = _EMPTY_CONTEXT) -> Hashable:
    """
    Position-independent key for a node's shape.

    Literal values, object keys, array elements and operators contribute;
    locations do not. Identifiers contribute their resolved context type.
    """
    if node is None:
        return ("undefined",)
    kind = ast.node_kind(node)
    if isinstance(node, (ast.NumericLiteral, ast.StringLiteral)):
        return (kind, node.raw)
    if isinstance(node, ast.BooleanLiteral):
        return (kind, node.value)
    if isinstance(node, ast.ObjectExpression):
        return (
            kind,
            tuple((property_key(prop), structural_fingerprint(prop.value, context)) for prop in node.properties),
        )
    if isinstance(node, ast.ArrayExpression):
        return (kind, tuple(structural_fingerprint(element, context) for element in node.elements))
    if isinstance(node, ast.BinaryExpression):
        # A left-nested chain is flattened to its first operand plus (operator, right) links.
        links = left_spine(node)
        return (
            kind,
            structural_fingerprint(links[0].left, context),
            tuple((link.operator, structural_fingerprint(link.right, context)) for link in links),
        )
    if isinstance(node, ast.Identifier):
        return (kind, node.name, context.get(node.name, ANY))
    return (kind,)


class InferenceEngine:
    """Computes type descriptors for expressions, memoized through an `InferenceCache`."""

    def __init__(self, cache: Optional[InferenceCache] = None) -> None:
        self.cache = cache if cache is not None else InferenceCache()

    def infer(self, node: Optional[ast.Node], context: Optional[Context] = None) -> TypeDescriptor:
        if not isinstance(node, MODELED_KINDS):
            return ANY
        context = context if context is not None else _EMPTY_CONTEXT
        key = (ast.node_kind(node), structural_fingerprint(node, context))
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        result = self._infer_uncached(node, context)
        self.cache.put(key, result)
        return result

    def _infer_uncached(self, node: ast.Node, context: Context) -> TypeDescriptor:
        if isinstance(node, ast.NumericLiteral):
            return NUMBER
        if isinstance(node, ast.StringLiteral):
            return STRING
        if isinstance(node, ast.BooleanLiteral):
            return BOOLEAN
        if isinstance(node, ast.NullLiteral):
            return NULL
        if isinstance(node, ast.ObjectExpression):
            return object_shape((property_key(prop), self.infer(prop.value, context)) for prop in node.properties)
        if isinstance(node, ast.ArrayExpression):
            return array_of(self.infer(element, context) for element in node.elements)
        if isinstance(node, ast.BinaryExpression):
            links = left_spine(node)
            result = self.infer(links[0].left, context)
            for link in links:
                if link.operator != "+":
                    result = ANY
                    continue
                right = self.infer(link.right, context)
                result = STRING if STRING in (result, right) else NUMBER
            return result
        if isinstance(node, ast.Identifier):
            return context.get(node.name, ANY)
        return ANY


__all__ = [
    "InferenceCache",
    "InferenceEngine",
    "MODELED_KINDS",
    "left_spine",
    "property_key",
    "structural_fingerprint",
]
