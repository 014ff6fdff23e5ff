"""
Annotation pass: attaches TypeScript type syntax to a copy of a parsed program.

The copy receives the types an `AnalysisRecord` lists for declarators,
parameters and returns. Interfaces the analysis synthesized are placed
before the first statement.
"""

from __future__ import annotations

from typing import List, Sequence

from . import ast
from .analyzer import AnalysisRecord, DeclarationFact, FunctionFact
from .types import AnyType, ArrayShape, FunctionShape, InterfaceRef, ObjectShape, Primitive, TypeDescriptor


class MalformedAnalysisError(Exception):
    """The analysis record does not describe the tree being annotated."""


class Annotator:
    """
    Attaches type syntax to a copy of the analyzed program.

    Declarations and function declarations are matched to the record's facts
    by encounter order; names must agree. Annotations already present in the
    source are kept.
    """

    def __init__(self, record: AnalysisRecord) -> None:
        self.record = record

    def annotate(self, program: ast.Program) -> ast.Program:
        annotated = ast.clone(program)
        declarations = _collect(annotated, ast.VariableDeclaration)
        functions = _collect(annotated, ast.FunctionDeclaration)
        _check_count("variable declarations", declarations, self.record.variable_declarations)
        _check_count("function declarations", functions, self.record.function_definitions)
        for node, fact in zip(declarations, self.record.variable_declarations):
            self._annotate_declaration(node, fact)
        for node, fact in zip(functions, self.record.function_definitions):
            self._annotate_function(node, fact)
        interfaces = [self._interface_declaration(name, shape) for name, shape in self.record.interfaces.items()]
        annotated.body[:0] = interfaces
        return annotated

    def _annotate_declaration(self, node: ast.VariableDeclaration, fact: DeclarationFact) -> None:
        if node.kind != fact.kind or len(node.declarations) != len(fact.declarators):
            raise MalformedAnalysisError(
                f"{node.loc.line}:{node.loc.column}: declaration does not match its analysis fact"
            )
        for declarator, declarator_fact in zip(node.declarations, fact.declarators):
            ident = declarator.id
            if ident.name != declarator_fact.name:
                raise MalformedAnalysisError(
                    f"{ident.loc.line}:{ident.loc.column}: expected declarator '{declarator_fact.name}', found '{ident.name}'"
                )
            if ident.type_annotation is None:
                ident.type_annotation = self.type_node(declarator_fact.annotation)

    def _annotate_function(self, node: ast.FunctionDeclaration, fact: FunctionFact) -> None:
        name = node.id.name if node.id is not None else "anonymous"
        if name != fact.name or len(node.params) != len(fact.params):
            raise MalformedAnalysisError(
                f"{node.loc.line}:{node.loc.column}: function '{name}' does not match its analysis fact"
            )
        for param, param_fact in zip(node.params, fact.params):
            ident = param.left if isinstance(param, ast.AssignmentPattern) else param
            if ident.name != param_fact.name:
                raise MalformedAnalysisError(
                    f"{ident.loc.line}:{ident.loc.column}: expected parameter '{param_fact.name}', found '{ident.name}'"
                )
            if ident.type_annotation is None:
                ident.type_annotation = self.type_node(param_fact.type)
        if node.return_type is None:
            node.return_type = self.type_node(fact.return_type)

    def _interface_declaration(self, name: str, shape: object) -> ast.TSInterfaceDeclaration:
        if not isinstance(shape, ObjectShape):
            raise MalformedAnalysisError(f"interface '{name}' is not an object shape: {shape!r}")
        return ast.TSInterfaceDeclaration(
            loc=ast.SYNTHETIC,
            id=ast.Identifier(ast.SYNTHETIC, name),
            body=self._members(shape),
        )

    def _members(self, shape: ObjectShape) -> List[ast.TSPropertySignature]:
        return [ast.TSPropertySignature(ast.SYNTHETIC, key, self.type_node(ty)) for key, ty in shape.fields]

    def type_node(self, descriptor: TypeDescriptor) -> ast.TypeNode:
        """Type syntax for a descriptor."""
        loc = ast.SYNTHETIC
        if isinstance(descriptor, AnyType):
            return ast.TSKeywordType(loc, "any")
        if isinstance(descriptor, Primitive):
            return ast.TSKeywordType(loc, descriptor.kind)
        if isinstance(descriptor, InterfaceRef):
            if descriptor.name not in self.record.interfaces:
                raise MalformedAnalysisError(f"reference to unknown interface '{descriptor.name}'")
            return ast.TSTypeReference(loc, descriptor.name)
        if isinstance(descriptor, ObjectShape):
            return ast.TSTypeLiteral(loc, self._members(descriptor))
        if isinstance(descriptor, ArrayShape):
            if not descriptor.element_types:
                raise MalformedAnalysisError("array type without element types")
            members = [self.type_node(ty) for ty in descriptor.element_types]
            element = members[0] if len(members) == 1 else ast.TSUnionType(loc, members)
            return ast.TSTypeReference(loc, "Array", [element])
        if isinstance(descriptor, FunctionShape):
            params = [
                ast.Identifier(loc, name, type_annotation=self.type_node(ty)) for name, ty in descriptor.params
            ]
            return ast.TSFunctionType(loc, params, self.type_node(descriptor.return_type))
        raise MalformedAnalysisError(f"unsupported type descriptor: {descriptor!r}")


def _collect(program: ast.Program, node_cls: type) -> list:
    return [node for node in ast.walk(program) if isinstance(node, node_cls)]


def _check_count(what: str, nodes: Sequence[object], facts: Sequence[object]) -> None:
    if len(nodes) != len(facts):
        raise MalformedAnalysisError(f"analysis record lists {len(facts)} {what}, the tree has {len(nodes)}")


def annotate(program: ast.Program, record: AnalysisRecord) -> ast.Program:
    return Annotator(record).annotate(program)


__all__ = ["Annotator", "MalformedAnalysisError", "annotate"]
