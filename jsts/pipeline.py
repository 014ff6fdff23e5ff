"""
Batch driver: parse -> analyze -> annotate -> emit -> (verify) for each file.

Per-file failures never escape `process_file`; they come back as a failed
`FileResult` naming the stage (read, parse, annotate, write, verify) so one
bad input does not stop the rest of a batch.
"""

from __future__ import annotations

import contextlib
import glob
import json
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from . import ast
from .analyzer import AnalysisRecord, analyze
from .annotator import MalformedAnalysisError, annotate
from .core.diagnostics import Diagnostic
from .core.span import Span
from .emitter import emit
from .infer import InferenceEngine
from .parser import ParseFailure, ParserOptions, parse_program
from .verifier import verify

PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class PipelineOptions:
    parser: ParserOptions = field(default_factory=ParserOptions)
    compact: bool = True
    verify: bool = True
    emit_analysis: bool = False
    jobs: int = 1

    def __post_init__(self) -> None:
        if self.jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {self.jobs}")


@dataclass(frozen=True)
class Transpiled:
    program: ast.Program
    record: AnalysisRecord
    annotated: ast.Program
    text: str


class VerificationFailure(Exception):
    """Emitted output was rejected by the verifier."""

    def __init__(self, path: str, diagnostics: Sequence[Diagnostic]) -> None:
        self.path = path
        self.diagnostics = list(diagnostics)
        super().__init__(f"{path}: " + "; ".join(diag.message for diag in self.diagnostics))


@dataclass
class FileResult:
    input: str
    output: Optional[str]
    status: str  # success | failed
    error: Optional[str] = None
    stage: Optional[str] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_json(self) -> Dict[str, Any]:
        return {
            "input": self.input,
            "output": self.output,
            "status": self.status,
            "error": self.error,
            "stage": self.stage,
            "diagnostics": [diag.to_json() for diag in self.diagnostics],
        }


def transpile_source(
    source: str,
    filename: Optional[str] = None,
    options: Optional[PipelineOptions] = None,
    engine: Optional[InferenceEngine] = None,
) -> Transpiled:
    """Run one source unit through the whole transformation; errors propagate."""
    options = options or PipelineOptions()
    program = parse_program(source, options.parser, filename=filename)
    record = analyze(program, engine=engine)
    annotated = annotate(program, record)
    return Transpiled(program, record, annotated, emit(annotated, compact=options.compact))


def output_path(path: PathLike, output_dir: PathLike) -> Path:
    return Path(output_dir) / f"{Path(path).stem}.ts"


def _too_deep(name: str, stage: str, phase: str, output: Optional[str] = None) -> FileResult:
    message = "expression nesting is too deep to process"
    diag = Diagnostic(message=message, code="E-DEPTH", phase=phase, span=Span(file=name))
    return FileResult(name, output, "failed", message, stage, [diag])


def process_file(path: PathLike, output_dir: PathLike, options: Optional[PipelineOptions] = None) -> FileResult:
    options = options or PipelineOptions()
    source_path = Path(path)
    name = str(source_path)
    target = output_path(source_path, output_dir)

    try:
        source = source_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        return FileResult(name, None, "failed", str(err), "read")

    try:
        program = parse_program(source, options.parser, filename=name)
    except ParseFailure as failure:
        return FileResult(name, None, "failed", str(failure), "parse", [failure.to_diagnostic()])
    except RecursionError:
        return _too_deep(name, "parse", "parser")

    try:
        record = analyze(program, engine=InferenceEngine())
        annotated = annotate(program, record)
        text = emit(annotated, compact=options.compact)
    except MalformedAnalysisError as err:
        diag = Diagnostic(message=str(err), code="E-ANALYSIS", phase="annotator")
        return FileResult(name, None, "failed", str(err), "annotate", [diag])
    except RecursionError:
        return _too_deep(name, "annotate", "annotator")

    try:
        write_atomic(target, text + "\n")
        if options.emit_analysis:
            record_path = target.with_name(f"{source_path.stem}.analysis.json")
            write_atomic(record_path, json.dumps(record.as_dict(), indent=2) + "\n")
    except OSError as err:
        return FileResult(name, None, "failed", str(err), "write")

    if options.verify:
        try:
            diagnostics = verify(text, str(target))
        except RecursionError:
            return _too_deep(name, "verify", "verifier", str(target))
        if diagnostics:
            failure = VerificationFailure(str(target), diagnostics)
            # The output stays on disk; the file is still reported as failed.
            return FileResult(name, str(target), "failed", str(failure), "verify", failure.diagnostics)
    return FileResult(name, str(target), "success")


def process_files(
    paths: Sequence[PathLike],
    output_dir: PathLike,
    options: Optional[PipelineOptions] = None,
) -> List[FileResult]:
    """Process every file; results are returned in input order."""
    options = options or PipelineOptions()
    Path(output_dir).mkdir(parents=True, exist_ok=True)
    if options.jobs == 1 or len(paths) < 2:
        return [process_file(path, output_dir, options) for path in paths]
    with ThreadPoolExecutor(max_workers=options.jobs) as pool:
        return list(pool.map(lambda path: process_file(path, output_dir, options), paths))


def resolve_inputs(pattern: PathLike) -> List[str]:
    """Expand a file, a directory (its `*.js` files) or a glob pattern."""
    candidate = Path(pattern)
    if candidate.is_dir():
        return sorted(str(path) for path in candidate.glob("*.js") if path.is_file())
    if candidate.is_file():
        return [str(candidate)]
    return sorted(match for match in glob.glob(str(pattern), recursive=True) if os.path.isfile(match))


def write_atomic(target: Path, text: str) -> None:
    """Write through a temporary file in the same directory, then rename over `target`."""
    fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp", text=True)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_path, target)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


__all__ = [
    "FileResult",
    "PipelineOptions",
    "Transpiled",
    "VerificationFailure",
    "output_path",
    "process_file",
    "process_files",
    "resolve_inputs",
    "transpile_source",
    "write_atomic",
]
