from __future__ import annotations

from jsts.verifier import verify

COMPACT = (
    "interface Obj{a:number;b:string;}"
    "let x:number=42;"
    "const obj:Obj={a:1,b:'test'};"
    "function add(a:number,b:number):number{return a+b;}"
    "const arr:Array<number|string|boolean>=[1,'two',true];"
)


def test_generated_output_verifies():
    assert verify(COMPACT) == []


def test_global_generics_verify():
    assert verify("let m: Map<string, Array<number>> = x;\nlet p: Promise<void> = y;\nlet d: Date = z;") == []


def test_unknown_type_name():
    diags = verify("let x: Foo = 1;", "out.ts")
    assert [d.code for d in diags] == ["TS2304"]
    assert diags[0].message == "Cannot find name 'Foo'."
    assert diags[0].phase == "verifier"
    assert diags[0].span.file == "out.ts"
    assert diags[0].span.line == 1


def test_duplicate_interface():
    diags = verify("interface A { a: number }\ninterface A { b: string }")
    assert [d.code for d in diags] == ["TS2300"]
    assert diags[0].message == "Duplicate identifier 'A'."
    assert diags[0].span.line == 2


def test_type_argument_counts():
    diags = verify("let x: Array<number, string> = [];")
    assert [d.code for d in diags] == ["TS2314"]
    diags = verify("interface A { a: number }\nlet y: A<number> = z;")
    assert [d.code for d in diags] == ["TS2315"]


def test_references_inside_nested_types_are_checked():
    diags = verify("function f(a: { inner: Missing }): Array<Other> { return []; }")
    assert [d.message for d in diags] == ["Cannot find name 'Missing'.", "Cannot find name 'Other'."]


def test_syntax_error_is_reported():
    diags = verify("let = ;", "bad.ts")
    assert len(diags) == 1
    assert diags[0].code == "TS1005"
    assert diags[0].phase == "verifier"
    assert diags[0].format().startswith("bad.ts:1:")
