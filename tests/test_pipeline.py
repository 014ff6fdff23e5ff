from __future__ import annotations

import json
from pathlib import Path

import pytest

from jsts import pipeline
from jsts.annotator import MalformedAnalysisError
from jsts.infer import InferenceEngine
from jsts.pipeline import (
    PipelineOptions,
    output_path,
    process_file,
    process_files,
    resolve_inputs,
    transpile_source,
    write_atomic,
)

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


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text)
    return path


def test_transpile_source_end_to_end():
    result = transpile_source(SAMPLE)
    assert result.text == COMPACT
    assert list(result.record.interfaces) == ["Obj"]
    assert len(result.program.body) == 4
    assert len(result.annotated.body) == 5


def test_transpile_is_idempotent_with_shared_engine():
    engine = InferenceEngine()
    first = transpile_source(SAMPLE, engine=engine)
    second = transpile_source(SAMPLE, engine=engine)
    assert first.text == second.text
    assert first.record == second.record


def test_pretty_output():
    text = transpile_source(SAMPLE, options=PipelineOptions(compact=False)).text
    assert text.startswith("interface Obj {\n  a: number;\n")
    assert "function add(a: number, b: number): number {\n  return a + b;\n}\n" in text


def test_process_file_writes_output(tmp_path: Path):
    src = _write(tmp_path, "sample.js", SAMPLE)
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    result = process_file(src, out_dir)
    assert result.ok
    assert result.output == str(out_dir / "sample.ts")
    assert (out_dir / "sample.ts").read_text() == COMPACT + "\n"
    assert not (out_dir / "sample.analysis.json").exists()


def test_process_file_emits_analysis(tmp_path: Path):
    src = _write(tmp_path, "sample.js", SAMPLE)
    result = process_file(src, tmp_path, PipelineOptions(emit_analysis=True))
    assert result.ok
    data = json.loads((tmp_path / "sample.analysis.json").read_text())
    assert data["interfaces"] == {"Obj": "{ a: number; b: string }"}
    assert data["function_definitions"][0]["name"] == "add"


def test_parse_failure_is_reported_per_file(tmp_path: Path):
    src = _write(tmp_path, "broken.js", "let = 5;")
    result = process_file(src, tmp_path)
    assert not result.ok
    assert result.stage == "parse"
    assert result.output is None
    assert result.diagnostics[0].code == "E-PARSE"
    assert result.diagnostics[0].span.file == str(src)
    assert not (tmp_path / "broken.ts").exists()


def test_missing_input_is_a_read_failure(tmp_path: Path):
    result = process_file(tmp_path / "absent.js", tmp_path)
    assert result.status == "failed"
    assert result.stage == "read"


def test_verification_failure_keeps_output(tmp_path: Path):
    src = _write(tmp_path, "typed.js", "let x: Foo = 1;")
    result = process_file(src, tmp_path)
    assert not result.ok
    assert result.stage == "verify"
    assert result.output == str(tmp_path / "typed.ts")
    assert (tmp_path / "typed.ts").read_text() == "let x:Foo=1;\n"
    assert [d.code for d in result.diagnostics] == ["TS2304"]
    assert "Cannot find name 'Foo'." in result.error


def test_verification_can_be_disabled(tmp_path: Path):
    src = _write(tmp_path, "typed.js", "let x: Foo = 1;")
    assert process_file(src, tmp_path, PipelineOptions(verify=False)).ok


def test_malformed_analysis_is_an_annotate_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    def broken(program, record):
        raise MalformedAnalysisError("analysis record lists 0 variable declarations, the tree has 1")

    monkeypatch.setattr(pipeline, "annotate", broken)
    src = _write(tmp_path, "a.js", "let a = 1;")
    result = process_file(src, tmp_path)
    assert result.stage == "annotate"
    assert result.diagnostics[0].phase == "annotator"


def test_process_files_keeps_going_and_keeps_order(tmp_path: Path):
    good = _write(tmp_path, "a.js", SAMPLE)
    bad = _write(tmp_path, "b.js", "const = ;")
    also_good = _write(tmp_path, "c.js", "let n = 1;")
    out_dir = tmp_path / "nested" / "out"
    results = process_files([good, bad, also_good], out_dir)
    assert [r.status for r in results] == ["success", "failed", "success"]
    assert [Path(r.input).name for r in results] == ["a.js", "b.js", "c.js"]
    assert (out_dir / "c.ts").read_text() == "let n:number=1;\n"


def test_long_operator_chain_is_processed(tmp_path: Path):
    deep = _write(tmp_path, "deep.js", "const s = " + " + ".join(["1"] * 3000) + ";")
    good = _write(tmp_path, "good.js", "let n = 1;")
    results = process_files([deep, good], tmp_path / "out")
    assert [r.status for r in results] == ["success", "success"]
    assert (tmp_path / "out" / "deep.ts").read_text().startswith("const s:number=1+1+1+")


@pytest.mark.parametrize("jobs", [1, 2])
def test_excessive_nesting_fails_only_that_file(tmp_path: Path, jobs: int):
    deep = _write(tmp_path, "deep.js", "const v = " + "(" * 3000 + "1" + ")" * 3000 + ";")
    good = _write(tmp_path, "good.js", "let n = 1;")
    out_dir = tmp_path / "out"
    results = process_files([deep, good], out_dir, PipelineOptions(jobs=jobs))
    assert [r.status for r in results] == ["failed", "success"]
    assert results[0].stage == "parse"
    assert results[0].output is None
    assert [d.code for d in results[0].diagnostics] == ["E-DEPTH"]
    assert results[0].diagnostics[0].span.file == str(deep)
    assert not (out_dir / "deep.ts").exists()
    assert (out_dir / "good.ts").read_text() == "let n:number=1;\n"


def test_process_files_in_parallel(tmp_path: Path):
    paths = [_write(tmp_path, f"f{i}.js", f"let v{i} = {{ k: {i} }};") for i in range(6)]
    results = process_files(paths, tmp_path / "out", PipelineOptions(jobs=3))
    assert [Path(r.input).name for r in results] == [f"f{i}.js" for i in range(6)]
    assert all(r.ok for r in results)
    assert (tmp_path / "out" / "f4.ts").read_text() == "interface V4{k:number;}let v4:V4={k:4};\n"


def test_jobs_must_be_positive():
    with pytest.raises(ValueError):
        PipelineOptions(jobs=0)


def test_result_json(tmp_path: Path):
    src = _write(tmp_path, "broken.js", "let = 5;")
    data = process_file(src, tmp_path).to_json()
    assert data["status"] == "failed"
    assert data["stage"] == "parse"
    assert data["diagnostics"][0]["line"] == 1
    json.dumps(data)


def test_output_path():
    assert output_path("src/app.js", "build") == Path("build/app.ts")


def test_resolve_inputs(tmp_path: Path):
    _write(tmp_path, "b.js", "")
    _write(tmp_path, "a.js", "")
    _write(tmp_path, "notes.txt", "")
    assert [Path(p).name for p in resolve_inputs(tmp_path)] == ["a.js", "b.js"]
    assert resolve_inputs(tmp_path / "a.js") == [str(tmp_path / "a.js")]
    assert [Path(p).name for p in resolve_inputs(str(tmp_path / "*.txt"))] == ["notes.txt"]
    assert resolve_inputs(tmp_path / "missing.js") == []


def test_write_atomic_replaces_target(tmp_path: Path):
    target = tmp_path / "out.ts"
    target.write_text("old")
    write_atomic(target, "new")
    assert target.read_text() == "new"
    assert [p.name for p in tmp_path.iterdir()] == ["out.ts"]


def test_write_atomic_cleans_up_on_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    def fail(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(pipeline.os, "replace", fail)
    with pytest.raises(OSError):
        write_atomic(tmp_path / "out.ts", "text")
    assert list(tmp_path.iterdir()) == []
