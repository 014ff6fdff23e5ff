"""
Post-emission check of generated TypeScript.

The emitted text is re-parsed with the typescript dialect, then type
references are resolved against the interfaces declared in the same file
and the known global types. Codes follow the TypeScript compiler's.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional

from . import ast
from .core.diagnostics import Diagnostic
from .core.span import Span
from .parser import ParseFailure, ParserOptions, parse_program
from .types import GLOBAL_TYPE_ARITY

_TYPESCRIPT = ParserOptions(plugins=("typescript",))


def verify(text: str, filename: Optional[str] = None) -> List[Diagnostic]:
    try:
        program = parse_program(text, _TYPESCRIPT, filename=filename)
    except ParseFailure as failure:
        return [replace(failure.to_diagnostic(), code="TS1005", phase="verifier")]

    diagnostics: List[Diagnostic] = []
    declared: Dict[str, ast.TSInterfaceDeclaration] = {}
    for node in ast.walk(program):
        if not isinstance(node, ast.TSInterfaceDeclaration):
            continue
        name = node.id.name
        if name in declared:
            diagnostics.append(_diagnostic(f"Duplicate identifier '{name}'.", "TS2300", node, filename))
        declared[name] = node

    for node in ast.walk(program):
        if not isinstance(node, ast.TSTypeReference):
            continue
        if node.name in declared:
            arity = 0
        elif node.name in GLOBAL_TYPE_ARITY:
            arity = GLOBAL_TYPE_ARITY[node.name]
        else:
            diagnostics.append(_diagnostic(f"Cannot find name '{node.name}'.", "TS2304", node, filename))
            continue
        if arity == 0 and node.type_args:
            diagnostics.append(_diagnostic(f"Type '{node.name}' is not generic.", "TS2315", node, filename))
        elif arity and len(node.type_args) != arity:
            diagnostics.append(
                _diagnostic(
                    f"Generic type '{node.name}' requires {arity} type argument(s).", "TS2314", node, filename
                )
            )
    return diagnostics


def _diagnostic(message: str, code: str, node: ast.Node, filename: Optional[str]) -> Diagnostic:
    return Diagnostic(
        message=message,
        code=code,
        phase="verifier",
        span=Span.from_loc(node.loc, file=filename),
    )


__all__ = ["verify"]
