from __future__ import annotations

import json
from pathlib import Path

import pytest

from jsts.jstsc import main

SAMPLE = """let x = 42;
const obj = { a: 1, b: 'test' };
function add(a, b) { return a + b; }
const arr = [1, 'two', true];
"""


def _sources(tmp_path: Path, **files: str) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    for name, text in files.items():
        (src / f"{name}.js").write_text(text)
    return src


def test_success_exit_code_and_report(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    src = _sources(tmp_path, sample=SAMPLE)
    out = tmp_path / "out"
    assert main(["-i", str(src), "-o", str(out)]) == 0
    err = capsys.readouterr().err
    assert "✔" in err
    assert "1 succeeded, 0 failed" in err
    assert (out / "sample.ts").read_text().startswith("interface Obj{")


def test_failure_exit_code_and_report(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    src = _sources(tmp_path, good=SAMPLE, bad="let = 5;")
    assert main(["-i", str(src), "-o", str(tmp_path / "out")]) == 1
    err = capsys.readouterr().err
    assert "✖" in err
    assert "Failed: 1:5: Unexpected token '='" in err
    assert "bad.js:1:5: error: Unexpected token '='" in err
    assert "1 succeeded, 1 failed" in err


def test_no_matching_inputs(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    assert main(["-i", str(tmp_path / "*.js"), "-o", str(tmp_path / "out")]) == 1
    assert "no input files" in capsys.readouterr().err


def test_json_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    src = _sources(tmp_path, bad="let = 5;")
    assert main(["-i", str(src), "--json", "-o", str(tmp_path / "out")]) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["exit_code"] == 1
    (result,) = payload["results"]
    assert result["stage"] == "parse"
    assert result["diagnostics"][0]["code"] == "E-PARSE"


def test_pretty_and_analysis_flags(tmp_path: Path):
    src = _sources(tmp_path, sample=SAMPLE)
    out = tmp_path / "out"
    assert main(["-i", str(src / "sample.js"), "-o", str(out), "--pretty", "--emit-analysis", "-j", "2"]) == 0
    assert (out / "sample.ts").read_text().startswith("interface Obj {\n")
    assert json.loads((out / "sample.analysis.json").read_text())["type_annotations"]["x"] == "number"


def test_plugins_and_verification_flags(tmp_path: Path):
    src = _sources(tmp_path, typed="let x: Foo = 1;")
    out = tmp_path / "out"
    assert main(["-i", str(src), "-o", str(out)]) == 1
    assert main(["-i", str(src), "-o", str(out), "--no-verify"]) == 0
    assert main(["-i", str(src), "-o", str(out), "--plugin", "jsx", "--no-verify"]) == 1


def test_deeply_nested_input_does_not_abort_the_batch(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    src = _sources(tmp_path, deep="let v = " + "[" * 3000 + "]" * 3000 + ";", good=SAMPLE)
    out = tmp_path / "out"
    assert main(["-i", str(src), "-o", str(out)]) == 1
    err = capsys.readouterr().err
    assert "deep.js: error: expression nesting is too deep to process" in err
    assert "1 succeeded, 1 failed" in err
    assert (out / "good.ts").exists()


def test_invalid_arguments(tmp_path: Path):
    with pytest.raises(SystemExit):
        main(["-i", str(tmp_path), "-o", str(tmp_path), "--plugin", "decorators"])
    with pytest.raises(SystemExit):
        main(["-i", str(tmp_path), "-o", str(tmp_path), "--jobs", "0"])
