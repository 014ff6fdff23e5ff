"""
Analysis pass: one read-only pre-order walk over a program.

The collector records declaration, function, return and literal facts, a
name -> type table and the interfaces synthesized for object-initialized
variables. The resulting `AnalysisRecord` is immutable and is the only
input the annotator needs besides the tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from . import ast
from .infer import InferenceEngine, property_key
from .types import ANY, GLOBAL_TYPE_ARITY, NUMBER, VOID, FunctionShape, InterfaceRef, ObjectShape, TypeDescriptor


@dataclass(frozen=True)
class DeclaratorFact:
    name: str
    init_kind: str  # node kind of the initializer, "undefined" when absent
    type: TypeDescriptor
    annotation: TypeDescriptor  # what the declaration site is annotated with


@dataclass(frozen=True)
class DeclarationFact:
    kind: str
    declarators: Tuple[DeclaratorFact, ...]


@dataclass(frozen=True)
class ParamFact:
    name: str
    type: TypeDescriptor


@dataclass(frozen=True)
class FunctionFact:
    name: str  # "anonymous" for `export default function () {}`
    params: Tuple[ParamFact, ...]
    return_type: TypeDescriptor

    @property
    def shape(self) -> FunctionShape:
        return FunctionShape(tuple((p.name, p.type) for p in self.params), self.return_type)

    @property
    def signature(self) -> str:
        return self.shape.render()


@dataclass(frozen=True)
class ReturnFact:
    argument_kind: str  # "none" for a bare `return`
    type: TypeDescriptor


@dataclass(frozen=True)
class PropertyFact:
    key: str
    value_kind: str
    type: TypeDescriptor


@dataclass(frozen=True)
class ObjectLiteralFact:
    properties: Tuple[PropertyFact, ...]
    type: TypeDescriptor


@dataclass(frozen=True)
class ArrayLiteralFact:
    element_kinds: Tuple[str, ...]  # "undefined" marks a hole
    type: TypeDescriptor


@dataclass(frozen=True)
class AnalysisRecord:
    variable_declarations: Tuple[DeclarationFact, ...]
    function_definitions: Tuple[FunctionFact, ...]
    return_statements: Tuple[ReturnFact, ...]
    object_literals: Tuple[ObjectLiteralFact, ...]
    array_literals: Tuple[ArrayLiteralFact, ...]
    type_annotations: Mapping[str, TypeDescriptor]
    interfaces: Mapping[str, ObjectShape]

    def as_dict(self) -> Dict[str, Any]:
        """JSON-friendly view with every descriptor rendered."""
        return {
            "variable_declarations": [
                {
                    "kind": decl.kind,
                    "declarations": [
                        {
                            "name": d.name,
                            "init_kind": d.init_kind,
                            "type": d.type.render(),
                            "annotation": d.annotation.render(),
                        }
                        for d in decl.declarators
                    ],
                }
                for decl in self.variable_declarations
            ],
            "function_definitions": [
                {
                    "name": fn.name,
                    "params": [{"name": p.name, "type": p.type.render()} for p in fn.params],
                    "return_type": fn.return_type.render(),
                    "signature": fn.signature,
                }
                for fn in self.function_definitions
            ],
            "return_statements": [
                {"argument_kind": ret.argument_kind, "type": ret.type.render()} for ret in self.return_statements
            ],
            "object_literals": [
                {
                    "properties": [
                        {"key": p.key, "value_kind": p.value_kind, "type": p.type.render()} for p in obj.properties
                    ],
                    "type": obj.type.render(),
                }
                for obj in self.object_literals
            ],
            "array_literals": [
                {"element_kinds": list(arr.element_kinds), "type": arr.type.render()} for arr in self.array_literals
            ],
            "type_annotations": {name: ty.render() for name, ty in self.type_annotations.items()},
            "interfaces": {name: shape.render() for name, shape in self.interfaces.items()},
        }


def _param_name(param: ast.Param) -> str:
    if isinstance(param, ast.AssignmentPattern):
        return param.left.name
    return param.name


def function_body(fn: ast.Node) -> Iterator[ast.Node]:
    """Every node in a function's body, including the bodies of nested functions."""
    return ast.walk(fn.body)


class AnalysisCollector:
    def __init__(self, engine: Optional[InferenceEngine] = None) -> None:
        self.engine = engine if engine is not None else InferenceEngine()
        self.variable_declarations: List[DeclarationFact] = []
        self.function_definitions: List[FunctionFact] = []
        self.return_statements: List[ReturnFact] = []
        self.object_literals: List[ObjectLiteralFact] = []
        self.array_literals: List[ArrayLiteralFact] = []
        self.type_annotations: Dict[str, TypeDescriptor] = {}
        self.interfaces: Dict[str, ObjectShape] = {}
        self.reserved_names: Set[str] = set(GLOBAL_TYPE_ARITY)

    def collect(self, program: ast.Program) -> AnalysisRecord:
        # Interfaces already declared in the source keep their names.
        self.reserved_names.update(
            node.id.name for node in ast.walk(program) if isinstance(node, ast.TSInterfaceDeclaration)
        )
        for node in ast.walk(program):
            if isinstance(node, ast.VariableDeclaration):
                self._visit_declaration(node)
            elif isinstance(node, ast.FunctionDeclaration):
                self._visit_function(node)
            elif isinstance(node, ast.ReturnStatement):
                self._visit_return(node)
            elif isinstance(node, ast.ObjectExpression):
                self._visit_object(node)
            elif isinstance(node, ast.ArrayExpression):
                self._visit_array(node)
        return AnalysisRecord(
            variable_declarations=tuple(self.variable_declarations),
            function_definitions=tuple(self.function_definitions),
            return_statements=tuple(self.return_statements),
            object_literals=tuple(self.object_literals),
            array_literals=tuple(self.array_literals),
            type_annotations=MappingProxyType(dict(self.type_annotations)),
            interfaces=MappingProxyType(dict(self.interfaces)),
        )

    def _visit_declaration(self, node: ast.VariableDeclaration) -> None:
        facts = []
        for decl in node.declarations:
            name = decl.id.name
            inferred = self.engine.infer(decl.init)
            annotation = inferred
            if isinstance(decl.init, ast.ObjectExpression) and isinstance(inferred, ObjectShape):
                annotation = InterfaceRef(self._interface_name(name, inferred))
            self.type_annotations[name] = annotation
            facts.append(DeclaratorFact(name, ast.node_kind(decl.init), inferred, annotation))
        self.variable_declarations.append(DeclarationFact(node.kind, tuple(facts)))

    def _interface_name(self, variable: str, shape: ObjectShape) -> str:
        base = variable[:1].upper() + variable[1:]
        candidate = base
        suffix = 2
        while candidate in self.reserved_names or self.interfaces.get(candidate, shape) != shape:
            candidate = f"{base}{suffix}"
            suffix += 1
        self.interfaces[candidate] = shape
        return candidate

    def _visit_function(self, node: ast.FunctionDeclaration) -> None:
        names = [_param_name(param) for param in node.params]
        hints = parameter_hints(node, names)
        params = tuple(ParamFact(name, hints.get(name, ANY)) for name in names)
        return_type = VOID
        for inner in function_body(node):
            # A bare `return;` does not override a value-returning site.
            if isinstance(inner, ast.ReturnStatement) and inner.argument is not None:
                return_type = self.engine.infer(inner.argument, hints)
        fn_name = node.id.name if node.id is not None else "anonymous"
        for param in params:
            self.type_annotations[param.name] = param.type
        self.type_annotations[f"{fn_name}_return"] = return_type
        self.function_definitions.append(FunctionFact(fn_name, params, return_type))

    def _visit_return(self, node: ast.ReturnStatement) -> None:
        if node.argument is None:
            self.return_statements.append(ReturnFact("none", VOID))
        else:
            self.return_statements.append(ReturnFact(ast.node_kind(node.argument), self.engine.infer(node.argument)))

    def _visit_object(self, node: ast.ObjectExpression) -> None:
        properties = tuple(
            PropertyFact(property_key(prop), ast.node_kind(prop.value), self.engine.infer(prop.value))
            for prop in node.properties
        )
        self.object_literals.append(ObjectLiteralFact(properties, self.engine.infer(node)))

    def _visit_array(self, node: ast.ArrayExpression) -> None:
        kinds = tuple(ast.node_kind(element) for element in node.elements)
        self.array_literals.append(ArrayLiteralFact(kinds, self.engine.infer(node)))


def parameter_hints(fn: ast.FunctionDeclaration, names: Sequence[str]) -> Dict[str, TypeDescriptor]:
    """Parameters used as a direct operand of `+` anywhere in the function body are numbers."""
    wanted = set(names)
    hints: Dict[str, TypeDescriptor] = {}
    for inner in function_body(fn):
        if isinstance(inner, ast.BinaryExpression) and inner.operator == "+":
            for operand in (inner.left, inner.right):
                if isinstance(operand, ast.Identifier) and operand.name in wanted:
                    hints[operand.name] = NUMBER
    return hints


def analyze(program: ast.Program, engine: Optional[InferenceEngine] = None) -> AnalysisRecord:
    return AnalysisCollector(engine).collect(program)


__all__ = [
    "AnalysisCollector",
    "AnalysisRecord",
    "ArrayLiteralFact",
    "DeclarationFact",
    "DeclaratorFact",
    "FunctionFact",
    "ObjectLiteralFact",
    "ParamFact",
    "PropertyFact",
    "ReturnFact",
    "analyze",
    "function_body",
    "parameter_hints",
]
