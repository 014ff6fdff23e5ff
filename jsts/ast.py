"""Syntax tree nodes for the JavaScript subset, with pre-order traversal and cloning."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from typing import Dict, Iterator, List, Optional, Union


@dataclass(frozen=True)
class Located:
    line: int
    column: int


# Location used for nodes synthesized by the annotator.
SYNTHETIC = Located(0, 0)


class Node:
    loc: Located


class Stmt(Node):
    pass


class Expr(Node):
    # Set by the parser when the source wrapped the expression in parentheses.
    parenthesized = False


class TypeNode(Node):
    pass


# --- Type syntax -----------------------------------------------------------


@dataclass
class TSKeywordType(TypeNode):
    loc: Located
    keyword: str


@dataclass
class TSTypeReference(TypeNode):
    loc: Located
    name: str
    type_args: List[TypeNode] = field(default_factory=list)


@dataclass
class TSUnionType(TypeNode):
    loc: Located
    types: List[TypeNode]


@dataclass
class TSArrayType(TypeNode):
    loc: Located
    element_type: TypeNode


@dataclass
class TSPropertySignature(TypeNode):
    loc: Located
    key: str
    type_annotation: TypeNode
    optional: bool = False


@dataclass
class TSTypeLiteral(TypeNode):
    loc: Located
    members: List[TSPropertySignature]


@dataclass
class TSFunctionType(TypeNode):
    loc: Located
    params: List["Identifier"]
    return_type: TypeNode


# --- Expressions -------------------------------------------------------------


@dataclass
class Identifier(Expr):
    loc: Located
    name: str
    type_annotation: Optional[TypeNode] = None


@dataclass
class NumericLiteral(Expr):
    loc: Located
    value: Union[int, float]
    raw: str


@dataclass
class StringLiteral(Expr):
    loc: Located
    value: str
    raw: str


@dataclass
class BooleanLiteral(Expr):
    loc: Located
    value: bool


@dataclass
class NullLiteral(Expr):
    loc: Located


@dataclass
class TemplateLiteral(Expr):
    loc: Located
    raw: str


@dataclass
class ThisExpression(Expr):
    loc: Located


@dataclass
class ArrayExpression(Expr):
    loc: Located
    elements: List[Optional[Expr]]  # None marks a hole


@dataclass
class ObjectProperty(Node):
    loc: Located
    key: Union[Identifier, StringLiteral, NumericLiteral]
    value: Expr
    shorthand: bool = False


@dataclass
class ObjectExpression(Expr):
    loc: Located
    properties: List[ObjectProperty]


@dataclass
class AssignmentPattern(Node):
    """Parameter with a default value."""

    loc: Located
    left: Identifier
    right: Expr


Param = Union[Identifier, AssignmentPattern]


@dataclass
class FunctionExpression(Expr):
    loc: Located
    id: Optional[Identifier]
    params: List[Param]
    body: "BlockStatement"
    return_type: Optional[TypeNode] = None


@dataclass
class ArrowFunctionExpression(Expr):
    loc: Located
    params: List[Param]
    body: Union["BlockStatement", Expr]


@dataclass
class UnaryExpression(Expr):
    loc: Located
    operator: str
    argument: Expr


@dataclass
class UpdateExpression(Expr):
    loc: Located
    operator: str
    prefix: bool
    argument: Expr


@dataclass
class BinaryExpression(Expr):
    loc: Located
    operator: str
    left: Expr
    right: Expr


@dataclass
class LogicalExpression(Expr):
    loc: Located
    operator: str
    left: Expr
    right: Expr


@dataclass
class AssignmentExpression(Expr):
    loc: Located
    operator: str
    left: Expr
    right: Expr


@dataclass
class ConditionalExpression(Expr):
    loc: Located
    test: Expr
    consequent: Expr
    alternate: Expr


@dataclass
class CallExpression(Expr):
    loc: Located
    callee: Expr
    arguments: List[Expr]


@dataclass
class NewExpression(Expr):
    loc: Located
    callee: Expr
    arguments: List[Expr]


@dataclass
class MemberExpression(Expr):
    loc: Located
    value: Expr
    property: Expr
    computed: bool = False


@dataclass
class SequenceExpression(Expr):
    loc: Located
    expressions: List[Expr]


# --- Statements --------------------------------------------------------------


@dataclass
class VariableDeclarator(Node):
    loc: Located
    id: Identifier
    init: Optional[Expr] = None


@dataclass
class VariableDeclaration(Stmt):
    loc: Located
    kind: str  # var | let | const
    declarations: List[VariableDeclarator]


@dataclass
class BlockStatement(Stmt):
    loc: Located
    body: List[Stmt]


@dataclass
class FunctionDeclaration(Stmt):
    loc: Located
    id: Optional[Identifier]
    params: List[Param]
    body: BlockStatement
    return_type: Optional[TypeNode] = None


@dataclass
class TSInterfaceDeclaration(Stmt):
    loc: Located
    id: Identifier
    body: List[TSPropertySignature]


@dataclass
class ReturnStatement(Stmt):
    loc: Located
    argument: Optional[Expr] = None


@dataclass
class ThrowStatement(Stmt):
    loc: Located
    argument: Expr


@dataclass
class BreakStatement(Stmt):
    loc: Located


@dataclass
class ContinueStatement(Stmt):
    loc: Located


@dataclass
class EmptyStatement(Stmt):
    loc: Located


@dataclass
class ExpressionStatement(Stmt):
    loc: Located
    expression: Expr


@dataclass
class IfStatement(Stmt):
    loc: Located
    test: Expr
    consequent: Stmt
    alternate: Optional[Stmt] = None


@dataclass
class WhileStatement(Stmt):
    loc: Located
    test: Expr
    body: Stmt


@dataclass
class ForStatement(Stmt):
    loc: Located
    init: Optional[Union[VariableDeclaration, Expr]]
    test: Optional[Expr]
    update: Optional[Expr]
    body: Stmt


@dataclass
class ExportNamedDeclaration(Stmt):
    loc: Located
    declaration: Union[VariableDeclaration, FunctionDeclaration]


@dataclass
class ExportDefaultDeclaration(Stmt):
    loc: Located
    declaration: Union[VariableDeclaration, FunctionDeclaration]


@dataclass
class Program(Node):
    loc: Located
    body: List[Stmt]


def node_kind(node: Optional[Node]) -> str:
    """Kind name recorded in analysis facts (`"undefined"` for an absent node)."""
    if node is None:
        return "undefined"
    return type(node).__name__


def iter_children(node: Node) -> Iterator[Node]:
    """Direct child nodes in field (source) order."""
    for f in fields(node):
        if f.name == "loc":
            continue
        value = getattr(node, f.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, Node):
                    yield item


def walk(root: Node) -> Iterator[Node]:
    """Pre-order traversal in source order."""
    stack: List[Node] = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(iter_children(node))))


def clone(root: Node) -> Node:
    """
    Deep copy of a tree.

    Children are copied before their parents without recursion, so long
    operator chains copy as safely as shallow trees. Locations are shared.
    """
    copies: Dict[int, Node] = {}
    for node in reversed(list(walk(root))):
        twin = copy.copy(node)
        for f in fields(node):
            value = getattr(node, f.name)
            if isinstance(value, Node):
                setattr(twin, f.name, copies[id(value)])
            elif isinstance(value, list):
                setattr(twin, f.name, [copies[id(item)] if isinstance(item, Node) else item for item in value])
        copies[id(node)] = twin
    return copies[id(root)]
