from __future__ import annotations

import pytest

from jsts import ast
from jsts.analyzer import analyze
from jsts.annotator import annotate
from jsts.emitter import emit
from jsts.parser import ParserOptions, parse_program

SAMPLE = """let x = 42;
const obj = { a: 1, b: 'test' };
function add(a, b) { return a + b; }
const arr = [1, 'two', true];
"""

COMPACT = (
    "interface Obj{a:number;b:string;}"
    "let x:number=42;"
    "const obj:Obj={a:1,b:'test'};"
    "function add(a:number,b:number):number{return a+b;}"
    "const arr:Array<number|string|boolean>=[1,'two',true];"
)

PRETTY = """interface Obj {
  a: number;
  b: string;
}
let x: number = 42;
const obj: Obj = { a: 1, b: 'test' };
function add(a: number, b: number): number {
  return a + b;
}
const arr: Array<number | string | boolean> = [1, 'two', true];
"""


def _annotated(source: str) -> ast.Program:
    program = parse_program(source)
    return annotate(program, analyze(program))


def _compact(source: str) -> str:
    return emit(parse_program(source), compact=True)


def test_sample_compact():
    assert emit(_annotated(SAMPLE), compact=True) == COMPACT


def test_sample_pretty():
    assert emit(_annotated(SAMPLE)) == PRETTY


def test_emitted_text_reparses_to_the_same_output():
    typescript = ParserOptions(plugins=("typescript",))
    for compact in (True, False):
        text = emit(_annotated(SAMPLE), compact=compact)
        assert emit(parse_program(text, typescript), compact=compact) == text


def test_empty_program():
    assert emit(parse_program("")) == ""
    assert emit(parse_program(""), compact=True) == ""


def test_pretty_keeps_plain_javascript_layout():
    source = "if (a) {\n  b();\n} else {\n  c();\n}\nwhile (n > 0) {\n  n--;\n}\n"
    assert emit(parse_program(source)) == source


@pytest.mark.parametrize(
    "source, expected",
    [
        ("let a = b - -c;", "let a=b- -c;"),
        ("let a = b + ++c;", "let a=b+ ++c;"),
        ("let a = (b + c) * d;", "let a=(b+c)*d;"),
        ("let t = typeof x;", "let t=typeof x;"),
        ("let ok = a instanceof B;", "let ok=a instanceof B;"),
        ("let a = [1, , 2];", "let a=[1,,2];"),
        ("let b = [1, ,];", "let b=[1,,];"),
        ("const f = () => ({ a: 1 });", "const f=()=>({a:1});"),
        ("const g = (a, b) => { return a; };", "const g=(a,b)=>{return a;};"),
        ("for (let i = 0; i < n; i++) { total += i; }", "for(let i=0;i<n;i++){total+=i;}"),
        ("for (;;) { break; }", "for(;;){break;}"),
        ("if (a) { x(); } else if (b) { y(); }", "if(a){x();}else if(b){y();}"),
        ("if (a) x(); else y();", "if(a)x();else y();"),
        ("let s = a ? 'y' : null;", "let s=a?'y':null;"),
        ("items[0] = new Item(1, 'x');", "items[0]=new Item(1,'x');"),
        ("export default function (a) { return a; }", "export default function(a){return a;}"),
        ("let m = `v ${a}`, n;", "let m=`v ${a}`,n;"),
        ("m.delete('a');\nx.default = o.new;", "m.delete('a');x.default=o.new;"),
        ("let o = { new: 1, default: 2 };", "let o={new:1,default:2};"),
        ("let a = 1 - 2 + (3 + 4) * 5;", "let a=1-2+(3+4)*5;"),
    ],
)
def test_compact_forms(source: str, expected: str):
    assert _compact(source) == expected


def test_pretty_expression_statement_wrapping():
    assert emit(parse_program("({ a: 1 });")) == "({ a: 1 });\n"
    assert emit(parse_program("(function () {});")) == "(function () {});\n"


def test_type_syntax_round_trip():
    source = "let a: { n: number; s?: string } = x;\nlet b: (v: string) => void = y;\nlet c: (number | string)[] = z;\n"
    program = parse_program(source, ParserOptions(plugins=("typescript",)))
    assert emit(program) == source


def test_long_operator_chain():
    terms = [str(i) for i in range(3000)]
    program = parse_program("let s = " + " + ".join(terms) + ";")
    assert emit(program, compact=True) == "let s=" + "+".join(terms) + ";"
    assert emit(annotate(program, analyze(program)), compact=True).startswith("let s:number=0+1+2+")


def test_reserved_word_keys_in_synthesized_interfaces():
    text = emit(_annotated("const opts = { default: 'x', new: true };"), compact=True)
    assert text == "interface Opts{default:string;new:boolean;}const opts:Opts={default:'x',new:true};"
    assert emit(parse_program(text, ParserOptions(plugins=("typescript",))), compact=True) == text
