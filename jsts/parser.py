"""
JavaScript front end: lark LALR grammar plus a post-lexer.

The post-lexer retypes keywords used as property names, marks arrow
parameter lists, tells object-literal braces from blocks and inserts the
statement terminators that newlines imply. `_build_*` helpers turn the lark
tree into `jsts.ast` nodes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Type, Union

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from . import ast
from .core.diagnostics import Diagnostic
from .core.span import Span

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

KNOWN_PLUGINS = ("jsx", "flow", "typescript")
DEFAULT_PLUGINS = ("jsx", "flow")

# Type names that map to keyword type nodes rather than references.
KEYWORD_TYPES = frozenset(
    {"any", "unknown", "never", "number", "string", "boolean", "object", "undefined", "symbol", "bigint"}
)

# Keyword terminals of the grammar; any of them may still name a property.
RESERVED_WORDS = frozenset(
    {
        "VAR", "LET", "CONST", "FUNCTION", "RETURN", "IF", "ELSE", "WHILE", "FOR", "THROW", "BREAK",
        "CONTINUE", "NEW", "EXPORT", "DEFAULT", "INTERFACE", "TRUE", "FALSE", "NULL", "THIS", "TYPEOF",
        "VOID", "DELETE", "INSTANCEOF",
    }
)


@dataclass(frozen=True)
class ParserOptions:
    """Dialect plugins accepted by the parser (jsx, flow, typescript)."""

    plugins: Tuple[str, ...] = DEFAULT_PLUGINS

    def __post_init__(self) -> None:
        unknown = sorted(set(self.plugins) - set(KNOWN_PLUGINS))
        if unknown:
            raise ValueError(f"Unknown parser plugin(s): {', '.join(unknown)}")
        object.__setattr__(self, "plugins", tuple(dict.fromkeys(self.plugins)))

    @property
    def allows_type_annotations(self) -> bool:
        return "flow" in self.plugins or "typescript" in self.plugins


class ParseFailure(Exception):
    """Source text could not be turned into a syntax tree."""

    def __init__(self, message: str, span: Optional[Span] = None) -> None:
        super().__init__(message)
        self.message = message
        self.span = span or Span()

    def __str__(self) -> str:
        if self.span.line is not None:
            return f"{self.span.line}:{self.span.column}: {self.message}"
        return self.message

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(message=self.message, code="E-PARSE", phase="parser", span=self.span)


_KEY_PRECEDERS = ("LBRACE", "COMMA", "SEMI")
_MEMBER_ENDINGS = ("NAME", "VOID", "NULL", "RPAR", "RSQB", "RBRACE", "MORETHAN")


def _mark_property_names(tokens: List[Token]) -> List[Token]:
    """Retype keywords used as property names (`m.delete`, `{ new: 1 }`) to NAME."""
    significant = [index for index, token in enumerate(tokens) if token.type != "NEWLINE"]
    for position, index in enumerate(significant):
        token = tokens[index]
        if token.type not in RESERVED_WORDS:
            continue
        prev = tokens[significant[position - 1]].type if position else None
        after = [tokens[i].type for i in significant[position + 1 : position + 3]]
        # Members of a type body may be separated by newlines alone.
        starts_line = position > 0 and index - significant[position - 1] > 1
        starts_member = prev in _KEY_PRECEDERS or (starts_line and prev in _MEMBER_ENDINGS)
        is_key = starts_member and (after[:1] == ["COLON"] or after == ["QMARK", "COLON"])
        if prev == "DOT" or is_key:
            tokens[index] = Token.new_borrow_pos("NAME", token.value, token)
    return tokens


def _mark_arrow_params(tokens: List[Token]) -> List[Token]:
    """Retype the `(` of every parenthesized list that is followed by `=>`."""
    opens: List[int] = []
    for index, token in enumerate(tokens):
        if token.type == "LPAR":
            opens.append(index)
        elif token.type == "RPAR" and opens:
            start = opens.pop()
            following = next((t for t in tokens[index + 1 :] if t.type != "NEWLINE"), None)
            if following is not None and following.type == "ARROW":
                tokens[start] = Token.new_borrow_pos("_ARROW_LPAR", tokens[start].value, tokens[start])
    return tokens


class TerminatorInserter:
    always_accept = ("NEWLINE", "SEMI")

    TERMINABLE = {
        "NAME",
        "NUMBER",
        "STRING",
        "TEMPLATE",
        "TRUE",
        "FALSE",
        "NULL",
        "THIS",
        "RPAR",
        "RSQB",
        "RBRACE",
        "INCDEC",
        "RETURN",
        "BREAK",
        "CONTINUE",
    }

    # A newline before one of these never ends the statement.
    CONTINUATION = {
        "DOT",
        "COMMA",
        "QMARK",
        "COLON",
        "EQUAL",
        "COMPOUND_ASSIGN",
        "EQ_OP",
        "AND_OP",
        "OR_OP",
        "NULLISH",
        "MUL_OP",
        "ADD_OP",
        "LESSTHAN",
        "MORETHAN",
        "INSTANCEOF",
        "ARROW",
        "RPAR",
        "RSQB",
        "VBAR",
    }

    # After one of these a `{` opens an object literal and `function` an expression.
    EXPR_PRECEDERS = {
        "EQUAL",
        "COMPOUND_ASSIGN",
        "LPAR",
        "_ARROW_LPAR",
        "COMMA",
        "COLON",
        "LSQB",
        "QMARK",
        "RETURN",
        "THROW",
        "EQ_OP",
        "AND_OP",
        "OR_OP",
        "NULLISH",
        "MUL_OP",
        "ADD_OP",
        "LESSTHAN",
        "MORETHAN",
        "BANG",
        "TILDE",
        "TYPEOF",
        "VOID",
        "DELETE",
        "INSTANCEOF",
    }

    HEADER_KEYWORDS = {"IF", "WHILE", "FOR"}
    FUNCTION_KEYWORDS = {"FUNCTION", "_FUNC_EXPR"}

    # Inside a function's return type a `{` after one of these starts a type literal.
    TYPE_BRACE_PRECEDERS = {"COLON", "LESSTHAN", "COMMA", "VBAR"}

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.stack: List[str] = []
        self.recent: List[str] = []
        self.can_terminate = False
        self.closed_block = False
        self.awaiting_body = False
        self.pending: Optional[Token] = None

    def process(self, stream):
        self._reset()
        last = None
        for token in stream:
            ttype = token.type
            if ttype == "NEWLINE":
                if self.pending is None and self.can_terminate and self._in_statement_list():
                    self.pending = token
                continue
            if self.pending is not None:
                pending, self.pending = self.pending, None
                if not self._continues(ttype):
                    yield self._terminator("", pending)
            if ttype == "SEMI":
                yield self._terminator(token.value, token)
                continue
            if ttype == "RBRACE" and self.can_terminate and self.stack and self.stack[-1] == "block":
                yield self._terminator("", token)
            token = self._retype(token)
            yield token
            self._track(token.type)
            last = token
        if last is not None and (self.pending is not None or self.can_terminate):
            yield self._terminator("", self.pending or last)

    def _terminator(self, value: str, borrow: Token) -> Token:
        self.can_terminate = False
        self.closed_block = False
        self._remember("TERMINATOR")
        return Token.new_borrow_pos("TERMINATOR", value, borrow)

    def _remember(self, ttype: str) -> None:
        self.recent = (self.recent + [ttype])[-2:]

    def _previous(self, depth: int = 1) -> Optional[str]:
        return self.recent[-depth] if len(self.recent) >= depth else None

    def _in_statement_list(self) -> bool:
        return not self.stack or self.stack[-1] == "block"

    def _continues(self, ttype: str) -> bool:
        return ttype in self.CONTINUATION or (ttype == "ELSE" and self.closed_block)

    def _retype(self, token: Token) -> Token:
        prev = self._previous()
        if token.type == "LBRACE" and self.awaiting_body:
            if prev in self.TYPE_BRACE_PRECEDERS:
                return Token.new_borrow_pos("_OBJ_LBRACE", token.value, token)
            self.awaiting_body = False
            return token
        if token.type == "LBRACE" and prev in self.EXPR_PRECEDERS:
            return Token.new_borrow_pos("_OBJ_LBRACE", token.value, token)
        if token.type == "FUNCTION" and (prev in self.EXPR_PRECEDERS or prev == "ARROW"):
            return Token.new_borrow_pos("_FUNC_EXPR", token.value, token)
        return token

    def _paren_kind(self) -> str:
        prev = self._previous()
        if prev in self.HEADER_KEYWORDS:
            return "header"
        if prev in self.FUNCTION_KEYWORDS or (prev == "NAME" and self._previous(2) in self.FUNCTION_KEYWORDS):
            return "signature"
        return "paren"

    def _track(self, ttype: str) -> None:
        closed = None
        if ttype in ("LPAR", "_ARROW_LPAR"):
            self.stack.append(self._paren_kind())
        elif ttype == "LSQB":
            self.stack.append("bracket")
        elif ttype == "LBRACE":
            self.stack.append("block")
        elif ttype == "_OBJ_LBRACE":
            self.stack.append("object")
        elif ttype in ("RPAR", "RSQB", "RBRACE") and self.stack:
            closed = self.stack.pop()
        self.closed_block = closed == "block"
        if closed == "signature":
            self.awaiting_body = True
        self.can_terminate = ttype in self.TERMINABLE and closed not in ("header", "signature")
        self._remember(ttype)


class JsPostLex:
    """Property-name and arrow-parameter marking followed by statement terminator insertion."""

    always_accept = TerminatorInserter.always_accept

    def process(self, stream):
        tokens = _mark_arrow_params(_mark_property_names(list(stream)))
        # Fresh inserter per parse: the shared parser may run on several threads.
        return TerminatorInserter().process(iter(tokens))


_PARSER = Lark(
    _GRAMMAR_SRC,
    parser="lalr",
    lexer="basic",
    start="program",
    propagate_positions=True,
    maybe_placeholders=False,
    postlex=JsPostLex(),
)


def parse_program(
    source: str,
    options: Optional[ParserOptions] = None,
    filename: Optional[str] = None,
) -> ast.Program:
    options = options or ParserOptions()
    try:
        tree = _PARSER.parse(source)
    except UnexpectedInput as err:
        raise ParseFailure(_describe_error(err), _error_span(err, filename)) from err
    try:
        program = _build_program(tree)
    except ValueError as err:
        raise ParseFailure(str(err), Span(file=filename)) from err
    if not options.allows_type_annotations:
        typed = _first_type_syntax(program)
        if typed is not None:
            raise ParseFailure(
                "Type annotations require the 'flow' or 'typescript' plugin",
                Span.from_loc(typed.loc, file=filename),
            )
    return program


def _describe_error(err: UnexpectedInput) -> str:
    if isinstance(err, UnexpectedCharacters):
        return f"Unexpected character {err.char!r}"
    if isinstance(err, UnexpectedToken):
        token = err.token
        if token.type == "$END":
            return "Unexpected end of input"
        if token.type == "TERMINATOR" and not token.value:
            return "Unexpected end of statement"
        return f"Unexpected token {token.value!r}"
    if isinstance(err, UnexpectedEOF):
        return "Unexpected end of input"
    return str(err)


def _error_span(err: UnexpectedInput, filename: Optional[str]) -> Span:
    line = getattr(err, "line", None)
    column = getattr(err, "column", None)
    return Span(
        file=filename,
        line=line if isinstance(line, int) and line > 0 else None,
        column=column if isinstance(column, int) and column > 0 else None,
        raw=err,
    )


def _first_type_syntax(program: ast.Program) -> Optional[ast.Node]:
    for node in ast.walk(program):
        if isinstance(node, (ast.TypeNode, ast.TSInterfaceDeclaration)):
            return node
    return None


def _build_program(tree: Tree) -> ast.Program:
    body = [stmt for stmt in map(_build_stmt, _trees(tree)) if stmt is not None]
    return ast.Program(loc=ast.Located(1, 1), body=body)


def _build_stmt(tree: Tree) -> Optional[ast.Stmt]:
    kind = _name(tree)
    loc = _loc(tree)
    if kind == "statement":
        return _build_stmt(_trees(tree)[0])
    if kind == "empty_stmt":
        # Terminators inserted at line ends carry an empty value.
        return ast.EmptyStatement(loc) if tree.children[0].value == ";" else None
    if kind == "var_decl":
        return _build_var_decl(tree)
    if kind == "function_decl":
        return _build_function(tree, ast.FunctionDeclaration)
    if kind == "interface_decl":
        name_tok = _token(tree, "NAME")
        members_node = _child(tree, "type_members")
        return ast.TSInterfaceDeclaration(
            loc=loc,
            id=ast.Identifier(_loc(name_tok), name_tok.value),
            body=_build_type_members(members_node),
        )
    if kind == "export_decl":
        decl = _trees(tree)[0]
        built = _build_var_decl(decl) if _name(decl) == "var_decl" else _build_function(decl, ast.FunctionDeclaration)
        if _token(tree, "DEFAULT") is not None:
            return ast.ExportDefaultDeclaration(loc, built)
        return ast.ExportNamedDeclaration(loc, built)
    if kind == "return_stmt":
        args = _trees(tree)
        return ast.ReturnStatement(loc, _build_expr(args[0]) if args else None)
    if kind == "throw_stmt":
        return ast.ThrowStatement(loc, _build_expr(_trees(tree)[0]))
    if kind == "break_stmt":
        return ast.BreakStatement(loc)
    if kind == "continue_stmt":
        return ast.ContinueStatement(loc)
    if kind == "if_stmt":
        parts = _trees(tree)
        alternate = _build_body(parts[2]) if len(parts) > 2 else None
        return ast.IfStatement(loc, _build_expr(parts[0]), _build_body(parts[1]), alternate)
    if kind == "while_stmt":
        test, body = _trees(tree)
        return ast.WhileStatement(loc, _build_expr(test), _build_body(body))
    if kind == "for_stmt":
        init_node, test_node, update_node, body = _trees(tree)
        init = None
        init_parts = _trees(init_node)
        if init_parts:
            first = init_parts[0]
            init = _build_var_decl(first) if _name(first) == "var_decl" else _build_expr(first)
        return ast.ForStatement(
            loc,
            init=init,
            test=_build_optional_expr(test_node),
            update=_build_optional_expr(update_node),
            body=_build_body(body),
        )
    if kind == "block":
        return _build_block(tree)
    if kind == "expr_stmt":
        return ast.ExpressionStatement(loc, _build_expr(_trees(tree)[0]))
    raise ValueError(f"Unsupported statement node: {kind}")


def _build_body(tree: Tree) -> ast.Stmt:
    return _build_stmt(tree) or ast.EmptyStatement(_loc(tree))


def _build_block(tree: Tree) -> ast.BlockStatement:
    body = [stmt for stmt in map(_build_stmt, _trees(tree)) if stmt is not None]
    return ast.BlockStatement(_loc(tree), body)


def _build_optional_expr(tree: Tree) -> Optional[ast.Expr]:
    parts = _trees(tree)
    return _build_expr(parts[0]) if parts else None


def _build_var_decl(tree: Tree) -> ast.VariableDeclaration:
    kind_tok = tree.children[0]
    declarators = []
    for decl in _trees(tree):
        ident, init = _build_binding(decl)
        declarators.append(ast.VariableDeclarator(_loc(decl), ident, init))
    return ast.VariableDeclaration(_loc(tree), kind_tok.value, declarators)


def _build_binding(tree: Tree) -> Tuple[ast.Identifier, Optional[ast.Expr]]:
    """`NAME [type_ann] ["=" expr]` shared by declarators and parameters."""
    name_tok = _token(tree, "NAME")
    annotation = _build_type_ann(_child(tree, "type_ann"))
    values = [c for c in _trees(tree) if _name(c) != "type_ann"]
    ident = ast.Identifier(_loc(name_tok), name_tok.value, type_annotation=annotation)
    return ident, (_build_expr(values[0]) if values else None)


def _build_params(tree: Optional[Tree]) -> List[ast.Param]:
    if tree is None:
        return []
    params: List[ast.Param] = []
    for param in _trees(tree):
        ident, default = _build_binding(param)
        params.append(ast.AssignmentPattern(_loc(param), ident, default) if default is not None else ident)
    return params


FunctionNode = Union[ast.FunctionDeclaration, ast.FunctionExpression]


def _build_function(tree: Tree, node_cls: Type[FunctionNode]) -> FunctionNode:
    name_tok = _token(tree, "NAME")
    return node_cls(
        loc=_loc(tree),
        id=ast.Identifier(_loc(name_tok), name_tok.value) if name_tok is not None else None,
        params=_build_params(_child(tree, "params")),
        body=_build_block(_child(tree, "block")),
        return_type=_build_type_ann(_child(tree, "type_ann")),
    )


def _build_type_ann(tree: Optional[Tree]) -> Optional[ast.TypeNode]:
    if tree is None:
        return None
    return _build_type(_trees(tree)[0])


def _build_type_members(tree: Optional[Tree]) -> List[ast.TSPropertySignature]:
    if tree is None:
        return []
    members = []
    for member in _trees(tree):
        key_node, type_node = _trees(member)
        members.append(
            ast.TSPropertySignature(
                loc=_loc(member),
                key=_prop_key_text(key_node),
                type_annotation=_build_type(type_node),
                optional=_token(member, "QMARK") is not None,
            )
        )
    return members


def _build_type(tree: Tree) -> ast.TypeNode:
    kind = _name(tree)
    loc = _loc(tree)
    if kind == "type_ref":
        name = tree.children[0].value
        args_node = _child(tree, "type_args")
        args = [_build_type(arg) for arg in _trees(args_node)] if args_node is not None else []
        if not args and name in KEYWORD_TYPES:
            return ast.TSKeywordType(loc, name)
        return ast.TSTypeReference(loc, name, args)
    if kind == "null_type":
        return ast.TSKeywordType(loc, "null")
    if kind == "void_type":
        return ast.TSKeywordType(loc, "void")
    if kind == "union_type":
        return ast.TSUnionType(loc, [_build_type(part) for part in _trees(tree)])
    if kind == "array_type":
        return ast.TSArrayType(loc, _build_type(_trees(tree)[0]))
    if kind == "type_literal":
        return ast.TSTypeLiteral(loc, _build_type_members(_child(tree, "type_members")))
    if kind == "fn_type":
        params_node = _child(tree, "fn_type_params")
        params = []
        if params_node is not None:
            for param in _trees(params_node):
                name_tok = _token(param, "NAME")
                params.append(
                    ast.Identifier(_loc(name_tok), name_tok.value, type_annotation=_build_type(_trees(param)[0]))
                )
        return ast.TSFunctionType(loc, params, _build_type(_trees(tree)[-1]))
    raise ValueError(f"Unsupported type node: {kind}")


def _build_expr(tree: Tree) -> ast.Expr:
    kind = _name(tree)
    loc = _loc(tree)
    if kind == "number":
        raw = tree.children[0].value
        return ast.NumericLiteral(loc, _number_value(raw), raw)
    if kind == "string":
        raw = tree.children[0].value
        return ast.StringLiteral(loc, _decode_string(raw), raw)
    if kind == "template":
        return ast.TemplateLiteral(loc, tree.children[0].value)
    if kind in ("true", "false"):
        return ast.BooleanLiteral(loc, kind == "true")
    if kind == "null":
        return ast.NullLiteral(loc)
    if kind == "this":
        return ast.ThisExpression(loc)
    if kind == "name":
        return ast.Identifier(loc, tree.children[0].value)
    if kind == "paren":
        inner = _build_expr(_trees(tree)[0])
        inner.parenthesized = True
        return inner
    if kind == "array":
        elements: List[Optional[ast.Expr]] = [
            None if _name(item) == "hole" else _build_expr(item) for item in _trees(tree)
        ]
        # A trailing comma does not add a hole.
        if elements and elements[-1] is None:
            elements.pop()
        return ast.ArrayExpression(loc, elements)
    if kind == "object":
        return ast.ObjectExpression(loc, [_build_property(prop) for prop in _trees(tree)])
    if kind == "function_expr":
        return _build_function(tree, ast.FunctionExpression)
    if kind == "arrow":
        first = tree.children[0]
        if isinstance(first, Token):
            params: List[ast.Param] = [ast.Identifier(_loc(first), first.value)]
        else:
            params = _build_params(_child(tree, "params"))
        body_node = tree.children[-1]
        body = _build_block(body_node) if _name(body_node) == "block" else _build_expr(body_node)
        return ast.ArrowFunctionExpression(loc, params, body)
    if kind == "assign":
        left, op, right = tree.children
        return ast.AssignmentExpression(loc, op.value, _build_expr(left), _build_expr(right))
    if kind == "cond_expr":
        test, consequent, alternate = _trees(tree)
        return ast.ConditionalExpression(loc, _build_expr(test), _build_expr(consequent), _build_expr(alternate))
    if kind in ("binary", "logical"):
        # Operator chains nest to the left; build them bottom-up along that spine.
        spine = [tree]
        while _name(spine[-1].children[0]) in ("binary", "logical"):
            spine.append(spine[-1].children[0])
        expr = _build_expr(spine[-1].children[0])
        for link in reversed(spine):
            _, op, right = link.children
            operator = "".join(tok.value for tok in op.children) if isinstance(op, Tree) else op.value
            node_cls = ast.LogicalExpression if _name(link) == "logical" else ast.BinaryExpression
            expr = node_cls(_loc(link), operator, expr, _build_expr(right))
        return expr
    if kind == "unary_op":
        op, argument = tree.children
        return ast.UnaryExpression(loc, op.value, _build_expr(argument))
    if kind == "prefix_update":
        op, argument = tree.children
        return ast.UpdateExpression(loc, op.value, True, _build_expr(argument))
    if kind == "postfix_update":
        argument, op = tree.children
        return ast.UpdateExpression(loc, op.value, False, _build_expr(argument))
    if kind in ("call", "new"):
        callee, arguments = _trees(tree)
        args = [_build_expr(arg) for arg in _trees(arguments)]
        node_cls = ast.NewExpression if kind == "new" else ast.CallExpression
        return node_cls(loc, _build_expr(callee), args)
    if kind == "member":
        value = _trees(tree)[0]
        name_tok = _token(tree, "NAME")
        return ast.MemberExpression(loc, _build_expr(value), ast.Identifier(_loc(name_tok), name_tok.value))
    if kind == "index":
        value, index = _trees(tree)
        return ast.MemberExpression(loc, _build_expr(value), _build_expr(index), computed=True)
    if kind == "sequence":
        left, right = _trees(tree)
        first = _build_expr(left)
        if isinstance(first, ast.SequenceExpression) and not first.parenthesized:
            first.expressions.append(_build_expr(right))
            return first
        return ast.SequenceExpression(loc, [first, _build_expr(right)])
    raise ValueError(f"Unsupported expression node: {kind}")


def _build_property(tree: Tree) -> ast.ObjectProperty:
    loc = _loc(tree)
    if _name(tree) == "shorthand_property":
        name_tok = tree.children[0]
        return ast.ObjectProperty(
            loc,
            key=ast.Identifier(loc, name_tok.value),
            value=ast.Identifier(loc, name_tok.value),
            shorthand=True,
        )
    key_node, value_node = _trees(tree)
    return ast.ObjectProperty(loc, key=_build_prop_key(key_node), value=_build_expr(value_node))


def _build_prop_key(tree: Tree) -> Union[ast.Identifier, ast.StringLiteral, ast.NumericLiteral]:
    kind = _name(tree)
    loc = _loc(tree)
    raw = tree.children[0].value
    if kind == "key_string":
        return ast.StringLiteral(loc, _decode_string(raw), raw)
    if kind == "key_number":
        return ast.NumericLiteral(loc, _number_value(raw), raw)
    return ast.Identifier(loc, raw)


def _prop_key_text(tree: Tree) -> str:
    key = _build_prop_key(tree)
    if isinstance(key, ast.Identifier):
        return key.name
    if isinstance(key, ast.StringLiteral):
        return key.value
    return key.raw


def _number_value(raw: str) -> Union[int, float]:
    lowered = raw.lower()
    if lowered.startswith(("0x", "0b", "0o")):
        return int(raw, 0)
    if "." in lowered or "e" in lowered:
        return float(raw)
    return int(raw)


_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|.)", re.DOTALL)
_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
    "\n": "",
    "\r\n": "",
}


def _decode_string(raw: str) -> str:
    """Decode a quoted STRING token using JavaScript escape rules."""

    def replace(match: "re.Match[str]") -> str:
        escape = match.group(1)
        if escape.startswith("u{"):
            code = int(escape[2:-1], 16)
            if code > 0x10FFFF:
                raise ValueError(f"Invalid unicode escape: \\{escape}")
            return chr(code)
        if len(escape) > 2 and escape[0] in "ux":
            return chr(int(escape[1:], 16))
        return _SIMPLE_ESCAPES.get(escape, escape)

    return _ESCAPE_RE.sub(replace, raw[1:-1])


def _trees(tree: Tree) -> List[Tree]:
    return [child for child in tree.children if isinstance(child, Tree)]


def _child(tree: Tree, name: str) -> Optional[Tree]:
    return next((child for child in _trees(tree) if _name(child) == name), None)


def _token(tree: Tree, ttype: str) -> Optional[Token]:
    return next((child for child in tree.children if isinstance(child, Token) and child.type == ttype), None)


def _loc(node: Union[Tree, Token]) -> ast.Located:
    if isinstance(node, Token):
        return ast.Located(line=node.line or 0, column=node.column or 0)
    meta = node.meta
    return ast.Located(line=getattr(meta, "line", 0), column=getattr(meta, "column", 0))


def _name(node: Union[Tree, Token]) -> str:
    if isinstance(node, Tree):
        data = node.data
        if isinstance(data, Token):
            return data.value
        return data
    if isinstance(node, Token):
        return node.type
    return str(node)


def iter_tokens(source: str) -> Iterator[Token]:
    """Tokens as the parser sees them, after terminator insertion."""
    return _PARSER.lex(source)


__all__ = [
    "DEFAULT_PLUGINS",
    "KNOWN_PLUGINS",
    "ParseFailure",
    "ParserOptions",
    "iter_tokens",
    "parse_program",
]
