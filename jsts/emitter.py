"""
Source emission for annotated programs.

Compact mode drops every optional space and newline (`let x:number=42;`);
pretty mode indents blocks by two spaces and spaces out operators. Literals
are written from their raw source text, and expressions the source wrapped
in parentheses stay wrapped.
"""

from __future__ import annotations

from typing import List, Optional

from . import ast
from .types import render_key

_INDENT = "  "


class Emitter:
    # Left-nested operator chains print without recursing down the left operand.
    CHAIN_KINDS = (ast.BinaryExpression, ast.LogicalExpression)

    def __init__(self, compact: bool = False) -> None:
        self.compact = compact
        self.sp = "" if compact else " "
        self._depth = 0

    def program(self, program: ast.Program) -> str:
        statements = [self.statement(stmt) for stmt in program.body]
        if self.compact:
            return "".join(statements)
        return "\n".join(statements) + "\n" if statements else ""

    # --- statements ---------------------------------------------------------

    def statement(self, node: ast.Stmt) -> str:
        sp = self.sp
        if isinstance(node, ast.VariableDeclaration):
            return self._declaration(node) + ";"
        if isinstance(node, ast.FunctionDeclaration):
            return self._function("function", node)
        if isinstance(node, ast.TSInterfaceDeclaration):
            return f"interface {node.id.name}{sp}{self._interface_body(node.body)}"
        if isinstance(node, ast.BlockStatement):
            return self.block(node)
        if isinstance(node, ast.ReturnStatement):
            if node.argument is None:
                return "return;"
            return f"return {self.expression(node.argument)};"
        if isinstance(node, ast.ThrowStatement):
            return f"throw {self.expression(node.argument)};"
        if isinstance(node, ast.BreakStatement):
            return "break;"
        if isinstance(node, ast.ContinueStatement):
            return "continue;"
        if isinstance(node, ast.EmptyStatement):
            return ";"
        if isinstance(node, ast.ExpressionStatement):
            expr = node.expression
            text = self.expression(expr)
            if not expr.parenthesized and isinstance(expr, (ast.ObjectExpression, ast.FunctionExpression)):
                text = f"({text})"
            return text + ";"
        if isinstance(node, ast.IfStatement):
            text = f"if{sp}({self.expression(node.test)}){self._body(node.consequent)}"
            if node.alternate is not None:
                if not isinstance(node.consequent, ast.BlockStatement):
                    text += self._before_else()
                elif not self.compact:
                    text += " "
                text += "else" + self._body(node.alternate, keyword=True)
            return text
        if isinstance(node, ast.WhileStatement):
            return f"while{sp}({self.expression(node.test)}){self._body(node.body)}"
        if isinstance(node, ast.ForStatement):
            init = ""
            if isinstance(node.init, ast.VariableDeclaration):
                init = self._declaration(node.init)
            elif node.init is not None:
                init = self.expression(node.init)
            test = self.expression(node.test) if node.test is not None else ""
            update = self.expression(node.update) if node.update is not None else ""
            header = f"{init};{sp if test else ''}{test};{sp if update else ''}{update}"
            return f"for{sp}({header}){self._body(node.body)}"
        if isinstance(node, ast.ExportNamedDeclaration):
            return "export " + self.statement(node.declaration)
        if isinstance(node, ast.ExportDefaultDeclaration):
            return "export default " + self.statement(node.declaration)
        raise ValueError(f"Cannot emit statement node: {ast.node_kind(node)}")

    def block(self, node: ast.BlockStatement) -> str:
        if not node.body:
            return "{}"
        if self.compact:
            return "{" + "".join(self.statement(stmt) for stmt in node.body) + "}"
        self._depth += 1
        lines = [self._indent() + self.statement(stmt) for stmt in node.body]
        self._depth -= 1
        return "{\n" + "\n".join(lines) + "\n" + self._indent() + "}"

    def _body(self, node: ast.Stmt, keyword: bool = False) -> str:
        """Statement following `if (...)`, `else`, `while (...)` or `for (...)`."""
        if isinstance(node, ast.BlockStatement):
            return self.sp + self.block(node)
        if keyword or not self.compact:
            return " " + self.statement(node)
        return self.statement(node)

    def _before_else(self) -> str:
        return "" if self.compact else "\n" + self._indent()

    def _declaration(self, node: ast.VariableDeclaration) -> str:
        declarators = [self._binding(decl.id, decl.init) for decl in node.declarations]
        return f"{node.kind} " + ("," + self.sp).join(declarators)

    def _binding(self, ident: ast.Identifier, value: Optional[ast.Expr]) -> str:
        text = ident.name + self._annotation(ident.type_annotation)
        if value is not None:
            text += f"{self.sp}={self.sp}{self.expression(value)}"
        return text

    def _annotation(self, node: Optional[ast.TypeNode]) -> str:
        if node is None:
            return ""
        return f":{self.sp}{self.type(node)}"

    def _params(self, params: List[ast.Param]) -> str:
        parts = []
        for param in params:
            if isinstance(param, ast.AssignmentPattern):
                parts.append(self._binding(param.left, param.right))
            else:
                parts.append(self._binding(param, None))
        return ("," + self.sp).join(parts)

    def _function(self, keyword: str, node) -> str:
        name = f" {node.id.name}" if node.id is not None else ""
        if not name and not self.compact:
            name = " "
        signature = f"{keyword}{name}({self._params(node.params)}){self._annotation(node.return_type)}"
        return signature + self.sp + self.block(node.body)

    def _interface_body(self, members: List[ast.TSPropertySignature]) -> str:
        if not members:
            return "{}"
        if self.compact:
            return "{" + "".join(self._member(m) + ";" for m in members) + "}"
        self._depth += 1
        lines = [self._indent() + self._member(m) + ";" for m in members]
        self._depth -= 1
        return "{\n" + "\n".join(lines) + "\n" + self._indent() + "}"

    def _member(self, node: ast.TSPropertySignature) -> str:
        optional = "?" if node.optional else ""
        return f"{render_key(node.key)}{optional}:{self.sp}{self.type(node.type_annotation)}"

    def _indent(self) -> str:
        return _INDENT * self._depth

    # --- expressions --------------------------------------------------------

    def expression(self, node: ast.Expr) -> str:
        text = self._expression(node)
        if node.parenthesized:
            return f"({text})"
        return text

    def _expression(self, node: ast.Expr) -> str:
        sp = self.sp
        if isinstance(node, ast.Identifier):
            return node.name
        if isinstance(node, (ast.NumericLiteral, ast.StringLiteral, ast.TemplateLiteral)):
            return node.raw
        if isinstance(node, ast.BooleanLiteral):
            return "true" if node.value else "false"
        if isinstance(node, ast.NullLiteral):
            return "null"
        if isinstance(node, ast.ThisExpression):
            return "this"
        if isinstance(node, ast.ArrayExpression):
            items = ["" if element is None else self.expression(element) for element in node.elements]
            if node.elements and node.elements[-1] is None:
                items.append("")
            return "[" + ("," + sp).join(items) + "]"
        if isinstance(node, ast.ObjectExpression):
            if not node.properties:
                return "{}"
            props = ("," + sp).join(self._property(prop) for prop in node.properties)
            return f"{{{props}}}" if self.compact else f"{{ {props} }}"
        if isinstance(node, ast.FunctionExpression):
            return self._function("function", node)
        if isinstance(node, ast.ArrowFunctionExpression):
            if isinstance(node.body, ast.BlockStatement):
                body = self.block(node.body)
            else:
                body = self.expression(node.body)
                if isinstance(node.body, ast.ObjectExpression) and not node.body.parenthesized:
                    body = f"({body})"
            return f"({self._params(node.params)}){sp}=>{sp}{body}"
        if isinstance(node, ast.UnaryExpression):
            argument = self.expression(node.argument)
            if node.operator.isalpha() or argument.startswith(node.operator):
                return f"{node.operator} {argument}"
            return node.operator + argument
        if isinstance(node, ast.UpdateExpression):
            argument = self.expression(node.argument)
            return node.operator + argument if node.prefix else argument + node.operator
        if isinstance(node, (ast.BinaryExpression, ast.LogicalExpression)):
            spine = [node]
            while isinstance(spine[-1].left, self.CHAIN_KINDS) and not spine[-1].left.parenthesized:
                spine.append(spine[-1].left)
            text = self.expression(spine[-1].left)
            for link in reversed(spine):
                text = self._infix(text, link.operator, self.expression(link.right))
            return text
        if isinstance(node, ast.AssignmentExpression):
            return self._infix(self.expression(node.left), node.operator, self.expression(node.right))
        if isinstance(node, ast.ConditionalExpression):
            return (
                f"{self.expression(node.test)}{sp}?{sp}{self.expression(node.consequent)}"
                f"{sp}:{sp}{self.expression(node.alternate)}"
            )
        if isinstance(node, ast.CallExpression):
            return f"{self.expression(node.callee)}({self._arguments(node.arguments)})"
        if isinstance(node, ast.NewExpression):
            return f"new {self.expression(node.callee)}({self._arguments(node.arguments)})"
        if isinstance(node, ast.MemberExpression):
            value = self.expression(node.value)
            if node.computed:
                return f"{value}[{self.expression(node.property)}]"
            return f"{value}.{self.expression(node.property)}"
        if isinstance(node, ast.SequenceExpression):
            return ("," + sp).join(self.expression(expr) for expr in node.expressions)
        raise ValueError(f"Cannot emit expression node: {ast.node_kind(node)}")

    def _infix(self, left: str, operator: str, right: str) -> str:
        if operator.isalpha() or not self.compact:
            return f"{left} {operator} {right}"
        glue = operator
        # Keep `a - -b` and `a + ++b` from fusing into `--`/`++`.
        if operator[-1] in "+-" and right.startswith(operator[-1]):
            glue += " "
        if operator[0] in "+-" and left.endswith(operator[0]):
            glue = " " + glue
        return left + glue + right

    def _property(self, prop: ast.ObjectProperty) -> str:
        if prop.shorthand:
            return self.expression(prop.value)
        if isinstance(prop.key, ast.Identifier):
            key = prop.key.name
        else:
            key = prop.key.raw
        return f"{key}:{self.sp}{self.expression(prop.value)}"

    def _arguments(self, arguments: List[ast.Expr]) -> str:
        return ("," + self.sp).join(self.expression(arg) for arg in arguments)

    # --- types --------------------------------------------------------------

    def type(self, node: ast.TypeNode) -> str:
        sp = self.sp
        if isinstance(node, ast.TSKeywordType):
            return node.keyword
        if isinstance(node, ast.TSTypeReference):
            if not node.type_args:
                return node.name
            return f"{node.name}<" + ("," + sp).join(self.type(arg) for arg in node.type_args) + ">"
        if isinstance(node, ast.TSUnionType):
            return f"{sp}|{sp}".join(self._grouped_type(member) for member in node.types)
        if isinstance(node, ast.TSArrayType):
            element = node.element_type
            text = self.type(element)
            if isinstance(element, (ast.TSUnionType, ast.TSFunctionType)):
                text = f"({text})"
            return text + "[]"
        if isinstance(node, ast.TSTypeLiteral):
            if not node.members:
                return "{}"
            if self.compact:
                return "{" + "".join(self._member(m) + ";" for m in node.members) + "}"
            return "{ " + "; ".join(self._member(m) for m in node.members) + " }"
        if isinstance(node, ast.TSFunctionType):
            params = ("," + sp).join(
                param.name + self._annotation(param.type_annotation) for param in node.params
            )
            return f"({params}){sp}=>{sp}{self.type(node.return_type)}"
        raise ValueError(f"Cannot emit type node: {ast.node_kind(node)}")

    def _grouped_type(self, node: ast.TypeNode) -> str:
        if isinstance(node, ast.TSFunctionType):
            return f"({self.type(node)})"
        return self.type(node)


def emit(program: ast.Program, compact: bool = False) -> str:
    return Emitter(compact=compact).program(program)


__all__ = ["Emitter", "emit"]
